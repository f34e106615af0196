from __future__ import annotations

from dataclasses import dataclass, field, replace
from typing import Any, Dict, Optional, Tuple


@dataclass(frozen=True)
class Candidate:
    """One catalog search result: a possible metadata match for a file.

    Identity is ``(provider, id)``. Enrichment never mutates a candidate; it
    returns a new one with the same key and ``enriched=True``.
    """

    provider: str
    id: str
    title: str = ""
    artist: str = ""
    album: str = ""
    explicit: bool = False
    enriched: bool = False

    # Extended fields (usually only present once enriched)
    album_artist: Optional[str] = None
    genre: Optional[str] = None
    year: Optional[str] = None
    track_number: Optional[int] = None
    track_count: Optional[int] = None
    disc_number: Optional[int] = None
    disc_count: Optional[int] = None
    isrc: Optional[str] = None
    copyright: Optional[str] = None
    raw: Dict[str, Any] = field(default_factory=dict, compare=False, repr=False)

    @property
    def key(self) -> Tuple[str, str]:
        return (self.provider, self.id)

    @property
    def display_title(self) -> str:
        if self.explicit:
            return f"{self.title} (E)"
        return self.title

    def with_enrichment(self, **fields: Any) -> "Candidate":
        """Return a copy carrying the extra fields, flagged as enriched."""
        fields.pop("provider", None)
        fields.pop("id", None)
        return replace(self, enriched=True, **fields)

    def as_tag_metadata(self) -> Dict[str, Any]:
        """Metadata mapping understood by the tag writer.

        Keys with no value are left out so existing tags are not blanked.
        """
        metadata = {
            "title": self.title or None,
            "artist": self.artist or None,
            "album": self.album or None,
            "album_artist": self.album_artist,
            "genre": self.genre,
            "year": self.year,
            "track_number": self.track_number,
            "track_count": self.track_count,
            "disc_number": self.disc_number,
            "disc_count": self.disc_count,
            "isrc": self.isrc,
        }
        return {k: v for k, v in metadata.items() if v is not None}
