from __future__ import annotations

from dataclasses import dataclass, field
from typing import Dict, List, Optional

from tagmatch import logger as logger_mod

from .errors import CommitPartialFailure, PreconditionFailed

log = logger_mod.get_logger()


@dataclass(frozen=True)
class FileCommitResult:
    path: str
    ok: bool
    error: Optional[Exception] = None


@dataclass(frozen=True)
class CommitReport:
    """Outcome of one batch commit, one entry per file in path order."""

    results: List[FileCommitResult] = field(default_factory=list)

    @property
    def succeeded(self) -> List[str]:
        return [r.path for r in self.results if r.ok]

    @property
    def failed(self) -> Dict[str, Exception]:
        return {r.path: r.error for r in self.results if not r.ok}

    @property
    def ok(self) -> bool:
        return all(r.ok for r in self.results)

    def raise_for_failures(self) -> None:
        if not self.ok:
            raise CommitPartialFailure(self)


class CommitCoordinator:
    """Write each file's selected candidate into its tags.

    Files are independent: a failed write is recorded and the remaining files
    are still attempted. Nothing is rolled back.
    """

    def apply_all(self, session) -> CommitReport:
        results: List[FileCommitResult] = []
        for state in session.file_states():
            candidate = state.selected_candidate
            if candidate is None:
                err = PreconditionFailed(f"{state.path} has no selected match")
                log.error(f"[COMMIT] {err}")
                results.append(FileCommitResult(state.path, False, err))
                continue

            try:
                state.handle.write_metadata(candidate)
            except Exception as e:
                log.error(f"[COMMIT] {state.path}: {e!r}")
                results.append(FileCommitResult(state.path, False, e))
                continue

            results.append(FileCommitResult(state.path, True))

        report = CommitReport(results=results)
        log.info(
            f"[COMMIT] {len(report.succeeded)} written, {len(report.failed)} failed"
        )
        return report
