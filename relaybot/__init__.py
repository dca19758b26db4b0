"""Message types and services for relaying chat messages: filters, albums, deduplication, rate limiting and text transformation."""

__version__ = "0.1.0"