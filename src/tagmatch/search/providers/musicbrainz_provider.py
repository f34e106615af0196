from __future__ import annotations

import time
from typing import Any, Dict, List, Optional

import musicbrainzngs

from tagmatch import logger as logger_mod

from ...models import Candidate

log = logger_mod.get_logger()


class MusicBrainzCatalog:
    """Search MusicBrainz recordings and fetch full recording metadata.

    MusicBrainz asks for at most one request per second; every call goes
    through _throttle().
    """

    def __init__(
        self,
        app_name: str = "tagmatch",
        app_version: str = "0.1.0",
        contact: str = "",
        throttle_s: float = 1.0,
        retries: int = 3,
        retry_sleep_s: float = 1.0,
    ) -> None:
        self.throttle_s = float(throttle_s)
        self.retries = int(retries)
        self.retry_sleep_s = float(retry_sleep_s)
        self._last_call_ts = 0.0

        musicbrainzngs.set_useragent(app_name, app_version, contact)

    def _throttle(self) -> None:
        delta = time.time() - self._last_call_ts
        if delta < self.throttle_s:
            time.sleep(self.throttle_s - delta)
        self._last_call_ts = time.time()

    @staticmethod
    def _is_transient(e: Exception) -> bool:
        if isinstance(e, musicbrainzngs.NetworkError):
            return True
        if isinstance(e, musicbrainzngs.ResponseError):
            code = getattr(e.cause, "code", None)
            return isinstance(code, int) and code >= 500
        return False

    def _call(self, what: str, fn, *args, **kwargs) -> Dict[str, Any]:
        last_err: Optional[Exception] = None
        for attempt in range(1, self.retries + 1):
            try:
                self._throttle()
                out = fn(*args, **kwargs)
                return out if isinstance(out, dict) else {}
            except musicbrainzngs.WebServiceError as e:
                if not self._is_transient(e):
                    raise RuntimeError(f"MusicBrainz {what} failed: {e!r}") from e
                last_err = e
                if attempt < self.retries:
                    log.warning(f"[MUSICBRAINZ] {what} attempt {attempt} failed: {e!r}")
                    time.sleep(self.retry_sleep_s * attempt)

        raise RuntimeError(f"MusicBrainz {what} failed: {last_err!r}") from last_err

    def _best_genre(self, tags: list[dict[str, Any]] | None) -> Optional[str]:
        if not tags:
            return None
        try:
            sorted_tags = sorted(
                tags, key=lambda t: int(t.get("count", 0) or 0), reverse=True
            )
        except Exception:
            sorted_tags = tags
        for t in sorted_tags:
            name = t.get("name")
            if name:
                return str(name)
        return None

    @staticmethod
    def _artist(r: Dict[str, Any]) -> str:
        phrase = r.get("artist-credit-phrase")
        if phrase:
            return str(phrase)
        ac = r.get("artist-credit") or []
        names = []
        for part in ac:
            if isinstance(part, dict):
                names.append((part.get("artist") or {}).get("name") or part.get("name") or "")
            elif isinstance(part, str):
                names.append(part)
        return "".join(names).strip()

    @staticmethod
    def _first_release(r: Dict[str, Any]) -> Dict[str, Any]:
        releases = r.get("release-list") or []
        if releases and isinstance(releases[0], dict):
            return releases[0]
        return {}

    def search(self, query: str, limit: int = 25) -> List[Candidate]:
        out = self._call(
            "search", musicbrainzngs.search_recordings, query=query, limit=int(limit)
        )

        candidates: List[Candidate] = []
        for r in out.get("recording-list") or []:
            if not isinstance(r, dict) or not r.get("id"):
                continue
            release = self._first_release(r)
            candidates.append(
                Candidate(
                    provider="musicbrainz",
                    id=str(r["id"]),
                    title=str(r.get("title") or ""),
                    artist=self._artist(r),
                    album=str(release.get("title") or ""),
                    raw={"musicbrainz_search": r},
                )
            )

        log.debug(f"[MUSICBRAINZ] search {query!r}: {len(candidates)} recording(s)")
        return candidates

    def lookup(self, candidate: Candidate) -> Candidate:
        if candidate.provider != "musicbrainz":
            raise ValueError(
                "MusicBrainzCatalog only supports provider='musicbrainz', "
                f"got {candidate.provider!r}"
            )

        rec = self._call(
            f"lookup for {candidate.id}",
            musicbrainzngs.get_recording_by_id,
            candidate.id,
            includes=["artists", "releases", "isrcs", "tags"],
        )
        r: Dict[str, Any] = rec.get("recording") or {}
        if not r:
            raise LookupError(f"MusicBrainz has no recording {candidate.id}")

        release = self._first_release(r)
        year = None
        date = release.get("date")
        if date and isinstance(date, str) and len(date) >= 4:
            year = date[:4]

        isrcs = r.get("isrc-list") or []

        return candidate.with_enrichment(
            title=str(r.get("title") or candidate.title),
            artist=self._artist(r) or candidate.artist,
            album=str(release.get("title") or candidate.album),
            year=year,
            isrc=str(isrcs[0]) if isrcs else None,
            genre=self._best_genre(r.get("tag-list") or []),
            raw={"musicbrainz_recording": r},
        )
