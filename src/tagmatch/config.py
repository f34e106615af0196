import os

from dotenv import load_dotenv

# Load from .env if it exists (useful for local development)
load_dotenv()


def _env_bool(name: str, default: str = "") -> bool:
    return os.getenv(name, default).strip().lower() in {"1", "true", "yes", "on"}


LOGGING_LEVEL = os.getenv("LOGGING_LEVEL", "INFO").upper() or "INFO"

# Catalog backend: "itunes" or "musicbrainz"
TAGMATCH_CATALOG = os.getenv("TAGMATCH_CATALOG", "itunes").strip().lower()
TAGMATCH_COUNTRY = os.getenv("TAGMATCH_COUNTRY", "US")
TAGMATCH_SEARCH_LIMIT = int(os.getenv("TAGMATCH_SEARCH_LIMIT", "25"))

# Re-search behavior for a selection that is no longer in the results
TAGMATCH_CLEAR_STALE_SELECTION = _env_bool("TAGMATCH_CLEAR_STALE_SELECTION")

# Re-save mp3 files as ID3v2.3 after writing (VirtualDJ / older players)
TAGMATCH_ID3_V23 = _env_bool("TAGMATCH_ID3_V23")

# MusicBrainz configuration
MUSICBRAINZ_APP_NAME = os.getenv("MUSICBRAINZ_APP_NAME", "tagmatch")
MUSICBRAINZ_APP_VERSION = os.getenv("MUSICBRAINZ_APP_VERSION", "0.1.0")
MUSICBRAINZ_CONTACT = os.getenv("MUSICBRAINZ_CONTACT", "")
MUSICBRAINZ_THROTTLE_S = float(os.getenv("MUSICBRAINZ_THROTTLE_S", "1.0"))

# HTTP timeout for catalog requests
HTTP_TIMEOUT_S = float(os.getenv("HTTP_TIMEOUT_S", "15"))
