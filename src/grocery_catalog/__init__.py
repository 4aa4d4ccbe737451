"""Grocery catalog — product embeddings and typed MongoDB collections."""

__version__ = "0.1.0"
