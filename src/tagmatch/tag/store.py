from __future__ import annotations

import os
from typing import Optional

from tagmatch import logger as logger_mod

from ..models import Candidate
from ..session.errors import FileOpenError, TagWriteError
from .io.music_tag_io import MusicTagIO
from .models import TagSnapshot

log = logger_mod.get_logger()


class TagHandle:
    """An open audio file whose tags can be read and rewritten.

    A handle belongs to exactly one FileState for the life of a session.
    """

    def __init__(self, path: str, file_obj, io: MusicTagIO, *, ensure_id3_v23: bool):
        self.path = path
        self._file = file_obj
        self._io = io
        self._ensure_id3_v23 = ensure_id3_v23

    @property
    def file_name(self) -> str:
        return os.path.basename(self.path)

    def read(self) -> TagSnapshot:
        return self._io.read(self._file, self.path)

    def write_metadata(self, candidate: Candidate) -> None:
        metadata = candidate.as_tag_metadata()
        try:
            self._io.write(
                self._file,
                self.path,
                metadata,
                ensure_id3_v23=self._ensure_id3_v23,
            )
        except Exception as e:
            raise TagWriteError(self.path, e) from e
        log.info(
            f"[TAG-WRITE] {self.file_name}: {candidate.artist} - {candidate.title} "
            f"({len(metadata)} field(s))"
        )


class TagStore:
    """Open local audio files for tag editing via `music-tag`."""

    def __init__(self, io: Optional[MusicTagIO] = None, *, ensure_id3_v23: bool = False):
        self._io = io or MusicTagIO()
        self._ensure_id3_v23 = ensure_id3_v23

    @classmethod
    def from_env(cls) -> "TagStore":
        from tagmatch import config

        return cls(ensure_id3_v23=config.TAGMATCH_ID3_V23)

    def open(self, path: str) -> TagHandle:
        if not os.path.isfile(path):
            raise FileOpenError(path, FileNotFoundError(path))
        try:
            file_obj = self._io.load(path)
        except Exception as e:
            log.error(f"[TAG-OPEN] {path}: {e!r}")
            raise FileOpenError(path, e) from e
        return TagHandle(path, file_obj, self._io, ensure_id3_v23=self._ensure_id3_v23)
