from __future__ import annotations

import time
from typing import Any, Dict, List, Optional

import requests

from tagmatch import logger as logger_mod

from ...helpers import normalize_year_for_tag
from ...models import Candidate

log = logger_mod.get_logger()

SEARCH_URL = "https://itunes.apple.com/search"
LOOKUP_URL = "https://itunes.apple.com/lookup"

_RETRY_STATUSES = {429, 500, 502, 503, 504}


def _int_or_none(v: Any) -> Optional[int]:
    try:
        return int(v) if v is not None else None
    except (TypeError, ValueError):
        return None


class ItunesCatalog:
    """Search songs with the iTunes Search API and enrich them via Lookup.

    Search rows already carry most fields; lookup adds the collection
    (album artist, copyright) so the written tags are complete.
    """

    def __init__(
        self,
        *,
        country: str = "US",
        timeout_s: float = 15.0,
        retries: int = 3,
        retry_sleep_s: float = 1.0,
        session: Optional[requests.Session] = None,
        search_url: str = SEARCH_URL,
        lookup_url: str = LOOKUP_URL,
    ) -> None:
        self.country = country
        self.timeout_s = float(timeout_s)
        self.retries = int(retries)
        self.retry_sleep_s = float(retry_sleep_s)
        self.search_url = search_url
        self.lookup_url = lookup_url
        self._session = session or requests.Session()

    def _get(self, url: str, params: Dict[str, Any]) -> Dict[str, Any]:
        last_err: Optional[Exception] = None
        for attempt in range(1, self.retries + 1):
            try:
                resp = self._session.get(url, params=params, timeout=self.timeout_s)
                if resp.status_code in _RETRY_STATUSES:
                    raise RuntimeError(f"iTunes returned HTTP {resp.status_code}")
                resp.raise_for_status()
                payload = resp.json()
                if not isinstance(payload, dict):
                    raise ValueError("iTunes returned an unexpected payload")
                return payload
            except (requests.RequestException, RuntimeError) as e:
                last_err = e
                if attempt < self.retries:
                    time.sleep(self.retry_sleep_s * attempt)
            except ValueError as e:
                raise RuntimeError(f"iTunes request failed: {e!r}") from e

        raise RuntimeError(f"iTunes request failed: {last_err!r}") from last_err

    @staticmethod
    def _to_candidate(row: Dict[str, Any]) -> Optional[Candidate]:
        track_id = row.get("trackId")
        if not track_id:
            return None
        return Candidate(
            provider="itunes",
            id=str(track_id),
            title=str(row.get("trackName") or ""),
            artist=str(row.get("artistName") or ""),
            album=str(row.get("collectionName") or ""),
            explicit=row.get("trackExplicitness") == "explicit",
            genre=row.get("primaryGenreName"),
            year=normalize_year_for_tag(row.get("releaseDate")) or None,
            track_number=_int_or_none(row.get("trackNumber")),
            track_count=_int_or_none(row.get("trackCount")),
            disc_number=_int_or_none(row.get("discNumber")),
            disc_count=_int_or_none(row.get("discCount")),
            raw={"itunes_track": row},
        )

    def search(self, query: str, limit: int = 25) -> List[Candidate]:
        payload = self._get(
            self.search_url,
            {
                "term": query,
                "media": "music",
                "entity": "song",
                "limit": int(limit),
                "country": self.country,
            },
        )

        candidates: List[Candidate] = []
        for row in payload.get("results") or []:
            if not isinstance(row, dict) or row.get("wrapperType", "track") != "track":
                continue
            c = self._to_candidate(row)
            if c is not None:
                candidates.append(c)

        log.debug(f"[ITUNES] search {query!r}: {len(candidates)} track(s)")
        return candidates

    def _lookup_one(self, id_: str, wrapper_type: str, id_key: str) -> Dict[str, Any]:
        payload = self._get(self.lookup_url, {"id": id_, "country": self.country})
        for r in payload.get("results") or []:
            if (
                isinstance(r, dict)
                and r.get("wrapperType") == wrapper_type
                and str(r.get(id_key)) == id_
            ):
                return r
        return {}

    def lookup(self, candidate: Candidate) -> Candidate:
        if candidate.provider != "itunes":
            raise ValueError(
                f"ItunesCatalog only supports provider='itunes', got {candidate.provider!r}"
            )

        track = self._lookup_one(candidate.id, "track", "trackId")
        if not track:
            raise LookupError(f"iTunes lookup has no track {candidate.id}")

        collection: Dict[str, Any] = {}
        collection_id = track.get("collectionId")
        if collection_id:
            collection = self._lookup_one(
                str(collection_id), "collection", "collectionId"
            )

        base = self._to_candidate(track) or candidate
        return candidate.with_enrichment(
            title=base.title or candidate.title,
            artist=base.artist or candidate.artist,
            album=base.album or candidate.album,
            explicit=base.explicit,
            album_artist=collection.get("artistName") or base.artist or None,
            genre=base.genre or collection.get("primaryGenreName"),
            year=base.year,
            track_number=base.track_number,
            track_count=base.track_count,
            disc_number=base.disc_number,
            disc_count=base.disc_count,
            copyright=collection.get("copyright"),
            raw={"itunes_track": track, "itunes_collection": collection},
        )
