"""Retrieval-augmented product search over a small hardware catalog."""

__version__ = "0.1.0"
