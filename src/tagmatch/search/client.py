from __future__ import annotations

from dataclasses import dataclass
from typing import List, Optional

from tagmatch import logger as logger_mod

from ..models import Candidate
from ..session.errors import SearchUnavailable

log = logger_mod.get_logger()

# NOTE: Catalog backends are imported lazily in from_env().


@dataclass(frozen=True)
class EnrichResult:
    candidate: Candidate
    error: Optional[Exception] = None

    @property
    def ok(self) -> bool:
        return self.error is None


class SearchClient:
    """Search a metadata catalog and enrich single candidates.

    The only state kept between calls is ``last_query``.

    Catalog contract:
    - catalog.search(query, limit) -> list of Candidate, best match first
    - catalog.lookup(candidate) -> Candidate with the same key, enriched
    """

    def __init__(self, catalog, *, limit: int = 25) -> None:
        self._catalog = catalog
        self._limit = int(limit)
        self.last_query: Optional[str] = None

    @classmethod
    def from_env(
        cls,
        *,
        catalog: Optional[str] = None,
        limit: Optional[int] = None,
    ) -> "SearchClient":
        """Create a client for the configured catalog backend."""

        from tagmatch import config

        name = (catalog or config.TAGMATCH_CATALOG).strip().lower()
        if name == "itunes":
            from .providers.itunes_provider import ItunesCatalog

            backend = ItunesCatalog(
                country=config.TAGMATCH_COUNTRY, timeout_s=config.HTTP_TIMEOUT_S
            )
        elif name == "musicbrainz":
            from .providers.musicbrainz_provider import MusicBrainzCatalog

            backend = MusicBrainzCatalog(
                app_name=config.MUSICBRAINZ_APP_NAME,
                app_version=config.MUSICBRAINZ_APP_VERSION,
                contact=config.MUSICBRAINZ_CONTACT,
                throttle_s=config.MUSICBRAINZ_THROTTLE_S,
            )
        else:
            raise ValueError(f"Unknown catalog {name!r}; use 'itunes' or 'musicbrainz'")

        return cls(
            backend,
            limit=limit if limit is not None else config.TAGMATCH_SEARCH_LIMIT,
        )

    def search(self, query: str) -> List[Candidate]:
        self.last_query = query
        text = (query or "").strip()
        if not text:
            log.info("[SEARCH] empty query; nothing to search")
            return []

        try:
            results = list(self._catalog.search(text, self._limit))
        except Exception as e:
            log.warning(f"[SEARCH] catalog search failed for {text!r}: {e!r}")
            raise SearchUnavailable(f"Search failed for {text!r}: {e}") from e

        log.info(f"[SEARCH] {text!r}: {len(results)} candidate(s)")
        return results

    def enrich(self, candidate: Candidate) -> EnrichResult:
        """Fetch fuller metadata for one candidate. Never raises."""
        if candidate.enriched:
            return EnrichResult(candidate)

        try:
            enriched = self._catalog.lookup(candidate)
        except Exception as e:
            log.warning(f"[ENRICH] {candidate.provider}:{candidate.id} failed: {e!r}")
            return EnrichResult(candidate, error=e)

        if enriched is None or enriched.key != candidate.key:
            err = LookupError(
                f"Lookup for {candidate.provider}:{candidate.id} returned no matching record"
            )
            log.warning(f"[ENRICH] {err}")
            return EnrichResult(candidate, error=err)

        return EnrichResult(enriched)
