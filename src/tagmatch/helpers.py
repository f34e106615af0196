import os
import re
from typing import Any

from tagmatch import logger as log

log = log.get_logger()


def safe_str(v: Any) -> str:
    """Best-effort stringify without turning missing values into the literal 'None'."""
    if v is None:
        return ""
    try:
        s = str(v)
    except Exception:
        return ""
    # Some tag wrappers stringify missing values as "None"
    if s.strip().lower() == "none":
        return ""
    return s


def normalize_year_for_tag(v: Any) -> str:
    s = safe_str(v).strip()
    if not s:
        return ""
    if len(s) >= 4 and s[:4].isdigit():
        return s[:4]
    return ""


def default_query_for_path(path: str) -> str:
    """Search text offered for a file the user has not typed a query for yet.

    "/music/01_Some Song.m4a" -> "01 Some Song"
    """
    stem = os.path.splitext(os.path.basename(path))[0]
    query = re.sub(r"[_\s]+", " ", stem).strip()
    log.debug(f"default_query_for_path: {path!r} -> {query!r}")
    return query
