"""Tests for the Ollama client wrapper."""

from unittest.mock import MagicMock, patch

import httpx
import ollama
import pytest

from catalog_rag.config import LLMConfig
from catalog_rag.exceptions import ServiceUnavailableError
from catalog_rag.llm import OllamaLLM


@pytest.fixture
def mock_client_cls():
    with patch("catalog_rag.llm.ollama.Client") as client_cls:
        yield client_cls


class TestInit:
    def test_clients_use_configured_timeouts(self, mock_client_cls) -> None:
        OllamaLLM(LLMConfig(host="http://ollama:11434", timeout=30, probe_timeout=5))
        timeouts = [c.kwargs["timeout"] for c in mock_client_cls.call_args_list]
        hosts = {c.kwargs["host"] for c in mock_client_cls.call_args_list}
        assert timeouts == [30, 5]
        assert hosts == {"http://ollama:11434"}


class TestGenerate:
    def test_returns_stripped_text(self, mock_client_cls) -> None:
        mock_client_cls.return_value.generate.return_value = {"response": "  AMD gpu \n"}
        assert OllamaLLM().generate("prompt") == "AMD gpu"

    def test_passes_options(self, mock_client_cls) -> None:
        client = mock_client_cls.return_value
        client.generate.return_value = {"response": "x"}
        OllamaLLM(LLMConfig(top_p=0.8)).generate(
            "p", model="llama3.2:3b", temperature=0.0, max_tokens=32
        )

        kwargs = client.generate.call_args.kwargs
        assert kwargs["model"] == "llama3.2:3b"
        assert kwargs["prompt"] == "p"
        assert kwargs["options"] == {"temperature": 0.0, "top_p": 0.8, "num_predict": 32}

    def test_defaults_from_config(self, mock_client_cls) -> None:
        client = mock_client_cls.return_value
        client.generate.return_value = {"response": "x"}
        OllamaLLM().generate("p")

        kwargs = client.generate.call_args.kwargs
        assert kwargs["model"] == "llama3.2:1b"
        assert kwargs["options"]["temperature"] == 0.1
        assert kwargs["options"]["num_predict"] == 500

    @pytest.mark.parametrize(
        "error",
        [
            ollama.ResponseError("model not found", 404),
            httpx.ReadTimeout("timed out"),
            ConnectionError("refused"),
        ],
    )
    def test_transport_errors_become_service_unavailable(self, mock_client_cls, error) -> None:
        mock_client_cls.return_value.generate.side_effect = error
        with pytest.raises(ServiceUnavailableError) as exc_info:
            OllamaLLM().generate("p")
        assert exc_info.value.service == "language model"
        assert exc_info.value.__cause__ is error


class TestProbe:
    def test_is_available(self, mock_client_cls) -> None:
        mock_client_cls.return_value.list.return_value = {"models": []}
        assert OllamaLLM().is_available() is True

    def test_is_unavailable(self, mock_client_cls) -> None:
        mock_client_cls.return_value.list.side_effect = ConnectionError("refused")
        assert OllamaLLM().is_available() is False

    def test_list_models(self, mock_client_cls) -> None:
        mock_client_cls.return_value.list.return_value = {
            "models": [{"model": "llama3.2:1b"}, {"model": "llama3.2:3b"}]
        }
        assert OllamaLLM().list_models() == ["llama3.2:1b", "llama3.2:3b"]

    def test_list_models_failure(self, mock_client_cls) -> None:
        mock_client_cls.return_value.list.side_effect = httpx.ConnectError("down")
        assert OllamaLLM().list_models() == []


def test_probe_uses_separate_client() -> None:
    main, probe = MagicMock(), MagicMock()
    with patch("catalog_rag.llm.ollama.Client", side_effect=[main, probe]):
        llm = OllamaLLM()
    llm.is_available()
    probe.list.assert_called_once()
    main.list.assert_not_called()
