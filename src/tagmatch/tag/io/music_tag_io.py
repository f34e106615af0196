from __future__ import annotations

import os
from typing import Any, Dict, Mapping, Optional

import music_tag
from mutagen.id3 import ID3, TDRC, TYER, ID3NoHeaderError

from tagmatch import logger as logger_mod

from ...helpers import normalize_year_for_tag
from ..models import TagSnapshot

log = logger_mod.get_logger()

# Keys read back into a TagSnapshot
TAG_FIELDS = [
    "tracktitle",
    "artist",
    "album",
    "albumartist",
    "year",
    "genre",
    "isrc",
    "tracknumber",
    "totaltracks",
    "discnumber",
    "totaldiscs",
]


def _as_text(v: Any) -> str:
    if isinstance(v, list):
        return ", ".join([str(x) for x in v if x is not None])
    return "" if v is None else str(v)


class MusicTagIO:
    """Adapter around the `music_tag` library.

    This module is *only* about reading/writing tags on local files. The
    loaded file object is passed back in by the caller, which owns it.
    """

    def load(self, path: str):
        return music_tag.load_file(path)

    def read(self, f, path: str) -> TagSnapshot:
        tags: Dict[str, str] = {}
        for k in TAG_FIELDS:
            try:
                if k in f:
                    tags[k] = _as_text(f[k])
            except Exception as e:
                log.error(f"[TAG-READ] {path}: failed reading {k}: {e!r}")

        has_artwork = False
        try:
            has_artwork = "artwork" in f and bool(f["artwork"])
        except Exception as e:
            log.debug(f"[TAG-READ] {path}: artwork unreadable: {e!r}")

        return TagSnapshot(tags=tags, has_artwork=has_artwork)

    def write(
        self,
        f,
        path: str,
        metadata: Mapping[str, Any],
        *,
        ensure_id3_v23: bool = False,
    ) -> None:
        """Write tags from a metadata mapping and save the file.

        Supported keys (case-sensitive):
          - title, artist, album, album_artist, year, genre, isrc,
            track_number, track_count, disc_number, disc_count

        Extra keys are ignored. A key that cannot be set is logged and
        skipped; a failed save raises.
        """

        mapping = {
            "tracktitle": metadata.get("title"),
            "artist": metadata.get("artist"),
            "album": metadata.get("album"),
            "albumartist": metadata.get("album_artist"),
            "year": metadata.get("year"),
            "genre": metadata.get("genre"),
            "isrc": metadata.get("isrc"),
            "tracknumber": metadata.get("track_number"),
            "totaltracks": metadata.get("track_count"),
            "discnumber": metadata.get("disc_number"),
            "totaldiscs": metadata.get("disc_count"),
        }

        for key, val in mapping.items():
            if val is None:
                continue
            try:
                f[key] = val if isinstance(val, int) else str(val)
            except Exception as e:
                log.error(f"[TAG-WRITE] {path}: failed setting {key}={val!r}: {e!r}")

        f.save()
        if ensure_id3_v23:
            self._save_id3_v23(path, mapping.get("year"))

    def _save_id3_v23(self, path: str, year: Optional[Any]) -> None:
        """Re-save an mp3 as ID3v2.3 with both TYER and TDRC year frames."""
        ext = os.path.splitext(path)[1].lower().lstrip(".")
        if ext != "mp3":
            return

        try:
            id3 = ID3(path)
        except ID3NoHeaderError:
            id3 = ID3()

        normalized_year = normalize_year_for_tag(year)
        if normalized_year:
            id3.setall("TYER", [TYER(encoding=3, text=normalized_year)])
            id3.setall("TDRC", [TDRC(encoding=3, text=normalized_year)])

        id3.save(path, v2_version=3)
