from typing import Optional


class TagMatchError(RuntimeError):
    """Base error for tagmatch."""


class FileOpenError(TagMatchError):
    """A file could not be opened for editing."""

    def __init__(self, path: str, cause: Optional[Exception] = None):
        detail = f": {cause!r}" if cause is not None else ""
        super().__init__(f"Cannot open {path}{detail}")
        self.path = path
        self.cause = cause


class TagWriteError(TagMatchError):
    """Writing metadata into a file failed."""

    def __init__(self, path: str, cause: Optional[Exception] = None):
        detail = f": {cause!r}" if cause is not None else ""
        super().__init__(f"Cannot write tags to {path}{detail}")
        self.path = path
        self.cause = cause


class SearchUnavailable(TagMatchError):
    """The catalog could not be reached or returned an unusable response."""


class IndexOutOfRange(TagMatchError, IndexError):
    """A candidate index outside the current result list was selected."""


class PreconditionFailed(TagMatchError):
    """An intent was issued while its gate was closed."""


class CommitPartialFailure(TagMatchError):
    """One or more files failed to be written during a commit."""

    def __init__(self, report):
        failed = ", ".join(report.failed)
        super().__init__(f"Commit failed for {len(report.failed)} file(s): {failed}")
        self.report = report
