"""Common helpers shared by the EOL checker modules.

- _logger: consistent logger selection with config fallback.
- _signals_str: "k=v" pipe-joined encoding for compact log details.
- _as_utc / _to_utc_iso: timezone normalisation for "now" and log output.
- _client_region: region name of a boto3 client, for log prefixes.
"""

from __future__ import annotations

import logging
from datetime import datetime, timezone
from typing import Dict, List, Optional

from eol_checkers import config


def _logger(fallback: Optional[logging.Logger]) -> logging.Logger:
    """Return the given logger or a sensible default."""
    return fallback or config.LOGGER or logging.getLogger(__name__)


def _signals_str(pairs: Dict[str, object]) -> str:
    """Encode a small dict of details as 'k=v' joined by pipes, skipping blanks."""
    items: List[str] = []
    for k, v in pairs.items():
        if v is None or v == "":
            continue
        items.append(f"{k}={v}")
    return "|".join(items)


def _as_utc(dt_obj: datetime) -> datetime:
    """Attach UTC to naive datetimes, convert aware ones."""
    if dt_obj.tzinfo is None:
        return dt_obj.replace(tzinfo=timezone.utc)
    return dt_obj.astimezone(timezone.utc)


def _to_utc_iso(dt_obj: Optional[datetime]) -> Optional[str]:
    """Return datetime as UTC ISO8601 (no microseconds), or None if not a datetime."""
    if not isinstance(dt_obj, datetime):
        return None
    return _as_utc(dt_obj).replace(microsecond=0).isoformat()


def _client_region(client) -> str:
    return getattr(getattr(client, "meta", None), "region_name", "") or ""
