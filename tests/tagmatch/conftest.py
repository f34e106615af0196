import os
import sys
from pathlib import Path

import pytest

# src/ layout: make the package importable without an editable install.
repo_root = Path(__file__).resolve().parents[2]
src_path = str(repo_root / "src")
if src_path not in sys.path:
    sys.path.insert(0, src_path)

from tagmatch.models import Candidate  # noqa: E402
from tagmatch.search.client import SearchClient  # noqa: E402
from tagmatch.session.controller import SessionController  # noqa: E402
from tagmatch.session.errors import FileOpenError  # noqa: E402


def make_candidate(id_, title=None, **kw):
    return Candidate(
        provider=kw.pop("provider", "itunes"),
        id=str(id_),
        title=title or f"Song {id_}",
        artist=kw.pop("artist", "Artist"),
        album=kw.pop("album", "Album"),
        **kw,
    )


class FakeHandle:
    def __init__(self, path, fail_write=None):
        self.path = path
        self.fail_write = fail_write
        self.writes = []

    @property
    def file_name(self):
        return os.path.basename(self.path)

    def write_metadata(self, candidate):
        if self.fail_write is not None:
            raise self.fail_write
        self.writes.append(candidate)


class FakeStore:
    def __init__(self, unopenable=(), failing_writes=None):
        self.unopenable = set(unopenable)
        self.failing_writes = dict(failing_writes or {})
        self.opened = []
        self.handles = {}

    def open(self, path):
        self.opened.append(path)
        if path in self.unopenable:
            raise FileOpenError(path, ValueError("not an audio file"))
        h = FakeHandle(path, fail_write=self.failing_writes.get(path))
        self.handles[path] = h
        return h


class FakeCatalog:
    """Query -> results table; lookup adds a genre."""

    def __init__(self, results=None):
        self.results = dict(results or {})
        self.search_calls = []
        self.lookup_calls = []
        self.fail_search = None
        self.fail_lookup = None

    def search(self, query, limit):
        self.search_calls.append((query, limit))
        if self.fail_search is not None:
            raise self.fail_search
        return list(self.results.get(query, []))

    def lookup(self, candidate):
        self.lookup_calls.append(candidate.id)
        if self.fail_lookup is not None:
            raise self.fail_lookup
        return candidate.with_enrichment(genre="Pop", album_artist=candidate.artist)


@pytest.fixture
def candidate():
    return make_candidate


@pytest.fixture
def make_controller():
    """Factory: (paths, results, **kw) -> (controller, store, catalog)."""

    def _factory(paths, results=None, *, unopenable=(), failing_writes=None, policy=None):
        store = FakeStore(unopenable=unopenable, failing_writes=failing_writes)
        catalog = FakeCatalog(results)
        controller = SessionController(
            paths,
            search_client=SearchClient(catalog, limit=10),
            store=store,
            policy=policy,
        )
        return controller, store, catalog

    return _factory
