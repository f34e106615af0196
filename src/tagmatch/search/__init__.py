"""Catalog search entry point.

No imports from session controller/tag.

Public API:
- SearchClient
- EnrichResult
"""

from .client import EnrichResult, SearchClient

__all__ = ["SearchClient", "EnrichResult"]
