from __future__ import annotations

from dataclasses import dataclass, field
from typing import Dict, Iterator, List, Optional, Sequence, Tuple

from ..helpers import default_query_for_path
from ..models import Candidate


@dataclass(frozen=True)
class SessionPolicy:
    """Policy knobs for an edit session."""

    clear_stale_selection: bool = False
    search_limit: int = 25


@dataclass(frozen=True)
class SearchTicket:
    """Tag handed out for one search call on one file."""

    path: str
    seq: int
    query: str


@dataclass
class FileState:
    """Editing state for one file: query, candidates and selection.

    ``selected_candidate`` and ``selected_index`` are always set or cleared
    together; only the methods below touch them. After a re-search drops the
    selected candidate, ``selected_index`` points into the old list; it only
    indexes ``candidates`` while ``selection_in_results`` is true. Renderers
    should use ``selected_row``.
    """

    path: str
    handle: object
    candidates: List[Candidate] = field(default_factory=list)
    query: Optional[str] = None
    selected_candidate: Optional[Candidate] = None
    selected_index: Optional[int] = None
    search_seq: int = 0
    search_error: Optional[Exception] = None
    enrich_error: Optional[Exception] = None

    @property
    def has_selection(self) -> bool:
        return self.selected_candidate is not None

    @property
    def effective_query(self) -> str:
        if self.query is not None:
            return self.query
        return default_query_for_path(self.path)

    @property
    def selection_in_results(self) -> bool:
        i = self.selected_index
        if self.selected_candidate is None or i is None:
            return False
        return 0 <= i < len(self.candidates) and (
            self.candidates[i] is self.selected_candidate
        )

    @property
    def selected_row(self) -> Optional[int]:
        """Row to highlight in ``candidates``, or None for a stale selection."""
        return self.selected_index if self.selection_in_results else None

    def next_search_seq(self) -> int:
        self.search_seq += 1
        return self.search_seq

    def select(self, index: int, candidate: Candidate) -> None:
        self.candidates[index] = candidate
        self.selected_candidate = candidate
        self.selected_index = index

    def clear_selection(self) -> None:
        self.selected_candidate = None
        self.selected_index = None

    def replace_candidates(
        self, candidates: Sequence[Candidate], *, clear_stale_selection: bool = False
    ) -> None:
        """Swap in a new result list, keeping the current selection.

        If the selected candidate is among the new results, that slot takes
        the selected (possibly enriched) object and the index follows it.
        Otherwise the selection is kept as-is unless ``clear_stale_selection``.
        """
        new = list(candidates)
        selected = self.selected_candidate
        if selected is not None:
            for i, c in enumerate(new):
                if c.key == selected.key:
                    new[i] = selected
                    self.selected_index = i
                    break
            else:
                if clear_stale_selection:
                    self.clear_selection()
        self.candidates = new


class Session:
    """The batch under edit: ordered paths, position, and per-path state.

    Paths are fixed for the session; ``states`` only ever grows.
    """

    def __init__(self, paths: Sequence[str]):
        paths = tuple(str(p) for p in paths)
        if not paths:
            raise ValueError("A session needs at least one file")
        if len(set(paths)) != len(paths):
            raise ValueError("Session paths must be unique")
        self._paths: Tuple[str, ...] = paths
        self._position = 0
        self._states: Dict[str, FileState] = {}

    @property
    def paths(self) -> Tuple[str, ...]:
        return self._paths

    @property
    def position(self) -> int:
        return self._position

    @position.setter
    def position(self, value: int) -> None:
        if not 0 <= value < len(self._paths):
            raise ValueError(
                f"position {value} outside [0, {len(self._paths)}) for this session"
            )
        self._position = value

    @property
    def last_index(self) -> int:
        return len(self._paths) - 1

    @property
    def current_path(self) -> str:
        return self._paths[self._position]

    def get(self, path: str) -> Optional[FileState]:
        return self._states.get(path)

    def add(self, state: FileState) -> FileState:
        if state.path not in self._paths:
            raise ValueError(f"{state.path!r} is not part of this session")
        if state.path in self._states:
            raise ValueError(f"{state.path!r} already has a FileState")
        self._states[state.path] = state
        return state

    def file_states(self) -> Iterator[FileState]:
        """FileStates created so far, in path order."""
        for p in self._paths:
            state = self._states.get(p)
            if state is not None:
                yield state

    def is_complete(self) -> bool:
        for p in self._paths:
            state = self._states.get(p)
            if state is None or not state.has_selection:
                return False
        return True

    def __len__(self) -> int:
        return len(self._paths)
