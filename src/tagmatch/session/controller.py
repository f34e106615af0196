from __future__ import annotations

import os
from typing import List, Optional, Sequence

from tagmatch import logger as logger_mod

from ..models import Candidate
from .commit import CommitCoordinator, CommitReport
from .errors import IndexOutOfRange, PreconditionFailed, SearchUnavailable
from .models import FileState, SearchTicket, Session, SessionPolicy

log = logger_mod.get_logger()


class SessionController:
    """Drive a batch tag-matching session one intent at a time.

    The Presentation Layer calls the intent methods (set_query, run_search,
    select_candidate, go_previous/go_next, commit) and re-renders from
    current_file() and the can_* gates afterwards. Intents must not run
    concurrently on one controller.

    Collaborators:
    - store.open(path) -> handle with file_name and write_metadata(candidate)
    - search_client.search(query) / search_client.enrich(candidate)
    """

    def __init__(
        self,
        paths: Sequence[str],
        *,
        search_client,
        store,
        committer: Optional[CommitCoordinator] = None,
        policy: Optional[SessionPolicy] = None,
    ) -> None:
        self._session = Session(paths)
        self._search = search_client
        self._store = store
        self._committer = committer or CommitCoordinator()
        self._policy = policy or SessionPolicy()

    @classmethod
    def from_env(
        cls, paths: Sequence[str], *, catalog: Optional[str] = None
    ) -> "SessionController":
        """Create a controller wired to the configured catalog and tag store."""

        from tagmatch import config

        from ..search import SearchClient
        from ..tag import TagStore

        policy = SessionPolicy(
            clear_stale_selection=config.TAGMATCH_CLEAR_STALE_SELECTION,
            search_limit=config.TAGMATCH_SEARCH_LIMIT,
        )
        return cls(
            paths,
            search_client=SearchClient.from_env(
                catalog=catalog, limit=policy.search_limit
            ),
            store=TagStore.from_env(),
            policy=policy,
        )

    @property
    def session(self) -> Session:
        return self._session

    @property
    def policy(self) -> SessionPolicy:
        return self._policy

    def _state_for(self, path: str) -> FileState:
        state = self._session.get(path)
        if state is not None:
            return state

        # FileOpenError propagates; nothing is cached for this path.
        handle = self._store.open(path)
        state = self._session.add(FileState(path=path, handle=handle))
        log.info(f"[NAV] opened {path}")
        return state

    # ------------------------------------------------------------------
    # Navigation
    # ------------------------------------------------------------------

    def current_file(self) -> FileState:
        return self._state_for(self._session.current_path)

    def can_go_previous(self) -> bool:
        return self._session.position > 0

    def can_go_next(self) -> bool:
        if self._session.position >= self._session.last_index:
            return False
        state = self._session.get(self._session.current_path)
        return state is not None and state.has_selection

    def go_previous(self) -> bool:
        if not self.can_go_previous():
            log.error("[NAV] go_previous() called while can_go_previous() is False")
            return False
        return self._move_to(self._session.position - 1)

    def go_next(self) -> bool:
        if not self.can_go_next():
            log.error("[NAV] go_next() called while can_go_next() is False")
            return False
        return self._move_to(self._session.position + 1)

    def _move_to(self, index: int) -> bool:
        # Load first so a FileOpenError leaves the position untouched.
        self._state_for(self._session.paths[index])
        self._session.position = index
        return True

    def position_label(self) -> str:
        path = self._session.current_path
        state = self._session.get(path)
        name = state.handle.file_name if state is not None else os.path.basename(path)
        return f"File {self._session.position + 1} of {len(self._session)} ({name})"

    # ------------------------------------------------------------------
    # Query / search
    # ------------------------------------------------------------------

    def set_query(self, text: str) -> None:
        self.current_file().query = text

    def query_text(self) -> str:
        return self.current_file().effective_query

    def begin_search(self) -> SearchTicket:
        state = self.current_file()
        return SearchTicket(
            path=state.path, seq=state.next_search_seq(), query=state.effective_query
        )

    def apply_search(self, ticket: SearchTicket, results: Sequence[Candidate]) -> bool:
        """Store results for the ticket's file unless a newer search was issued."""
        state = self._session.get(ticket.path)
        if state is None:
            raise PreconditionFailed(f"No search was started for {ticket.path}")
        if ticket.seq != state.search_seq:
            log.info(
                f"[SEARCH] dropping stale results for {ticket.path} "
                f"(seq {ticket.seq}, latest {state.search_seq})"
            )
            return False

        state.replace_candidates(
            results, clear_stale_selection=self._policy.clear_stale_selection
        )
        state.search_error = None
        return True

    def run_search(self) -> List[Candidate]:
        ticket = self.begin_search()
        state = self._session.get(ticket.path)
        try:
            results = self._search.search(ticket.query)
        except SearchUnavailable as e:
            if ticket.seq == state.search_seq:
                state.search_error = e
            log.warning(f"[SEARCH] keeping previous results for {ticket.path}: {e}")
            return list(state.candidates)

        self.apply_search(ticket, results)
        return list(state.candidates)

    # ------------------------------------------------------------------
    # Selection
    # ------------------------------------------------------------------

    def select_candidate(self, index: int) -> Candidate:
        state = self.current_file()
        if not 0 <= index < len(state.candidates):
            raise IndexOutOfRange(
                f"Candidate index {index} out of range for {len(state.candidates)} "
                f"result(s) on {state.path}"
            )

        result = self._search.enrich(state.candidates[index])
        state.enrich_error = result.error
        if result.error is not None:
            log.warning(
                f"[ENRICH] selecting {state.path}[{index}] without extra metadata: "
                f"{result.error!r}"
            )
        state.select(index, result.candidate)
        return result.candidate

    # ------------------------------------------------------------------
    # Commit
    # ------------------------------------------------------------------

    def can_commit(self) -> bool:
        return self._session.is_complete()

    def commit(self) -> CommitReport:
        if not self.can_commit():
            log.error("[COMMIT] commit() called before every file has a selection")
            raise PreconditionFailed("Every file needs a selected match before commit")
        return self._committer.apply_all(self._session)
