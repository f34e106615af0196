"""Tag storage entry point.

Public API:
- TagStore
- TagHandle
- TagSnapshot
"""

from .models import TagSnapshot
from .store import TagHandle, TagStore

__all__ = ["TagStore", "TagHandle", "TagSnapshot"]
