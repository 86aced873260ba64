"""Tests for the catalog module."""

import json
from unittest.mock import MagicMock, patch

import pytest

from catalog_rag.catalog import index_catalog, load_products


def _write(tmp_path, data) -> str:
    path = tmp_path / "catalog.json"
    path.write_text(json.dumps(data, ensure_ascii=False), encoding="utf-8")
    return str(path)


class TestLoadProducts:
    def test_loads_all_records(self, catalog_file) -> None:
        products = load_products(catalog_file)
        assert [p.name for p in products] == [
            "AMD Ryzen 7 7800X3D",
            "Intel Core i5-14600K",
            "NVIDIA GeForce RTX 4070 Super",
            "Apple MacBook Air 13",
        ]
        assert products[0].specifications == {"socket": "AM5", "cores": 8}

    def test_missing_file(self, tmp_path) -> None:
        with pytest.raises(FileNotFoundError, match="Catalog not found"):
            load_products(tmp_path / "missing.json")

    def test_invalid_json(self, tmp_path) -> None:
        path = tmp_path / "broken.json"
        path.write_text("[{", encoding="utf-8")
        with pytest.raises(ValueError, match="Failed to parse catalog"):
            load_products(path)

    def test_not_an_array(self, tmp_path) -> None:
        with pytest.raises(ValueError, match="JSON array"):
            load_products(_write(tmp_path, {"products": []}))

    def test_skips_invalid_records(self, tmp_path) -> None:
        path = _write(
            tmp_path,
            [
                "not an object",
                {"id": 1, "name": "No price", "brand": "X", "category": "memory", "description": "d"},
                {"id": 2, "name": "Bad price", "brand": "X", "category": "memory",
                 "price": "free", "description": "d"},
                {"id": 3, "name": "Bad specs", "brand": "X", "category": "memory",
                 "price": 1, "description": "d", "specifications": ["a"]},
                {"id": 4, "name": "Kingston Fury 32GB", "brand": "Kingston",
                 "category": "memory", "price": 899000, "description": "DDR5 kit."},
            ],
        )
        products = load_products(path)
        assert [p.id for p in products] == [4]
        assert products[0].specifications == {}

    def test_empty_array(self, tmp_path) -> None:
        assert load_products(_write(tmp_path, [])) == []

    def test_bundled_catalog_loads(self) -> None:
        products = load_products("data/products.json")
        assert len(products) == 10
        assert {p.category for p in products} >= {"processors", "graphics_cards", "laptops"}


class TestIndexCatalog:
    @patch("catalog_rag.catalog.vs")
    def test_delegates_to_vector_store(self, mock_vs, sample_products) -> None:
        mock_vs.add_products.return_value = 4
        collection, embedder = MagicMock(), MagicMock()

        count = index_catalog(sample_products, collection, embedder, batch_size=2)

        assert count == 4
        mock_vs.add_products.assert_called_once_with(
            collection, sample_products, embedder, batch_size=2
        )
