"""Multi-file edit session entry point.

Public API:
- SessionController
- CommitCoordinator, CommitReport, FileCommitResult
- FileState, Session, SearchTicket, SessionPolicy
- error types (FileOpenError, SearchUnavailable, IndexOutOfRange,
  PreconditionFailed, CommitPartialFailure, TagWriteError)
"""

from .commit import CommitCoordinator, CommitReport, FileCommitResult
from .controller import SessionController
from .errors import (
    CommitPartialFailure,
    FileOpenError,
    IndexOutOfRange,
    PreconditionFailed,
    SearchUnavailable,
    TagMatchError,
    TagWriteError,
)
from .models import FileState, SearchTicket, Session, SessionPolicy

__all__ = [
    "SessionController",
    "CommitCoordinator",
    "CommitReport",
    "FileCommitResult",
    "FileState",
    "Session",
    "SearchTicket",
    "SessionPolicy",
    "TagMatchError",
    "FileOpenError",
    "TagWriteError",
    "SearchUnavailable",
    "IndexOutOfRange",
    "PreconditionFailed",
    "CommitPartialFailure",
]
