"""Linkstash: shared link feed with scraping and deduplication."""

__version__ = "0.1.0"
