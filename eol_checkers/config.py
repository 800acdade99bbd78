"""Runtime config for checker modules (simple dependency injection)."""

from __future__ import annotations
from typing import Callable, Optional
import logging
from datetime import datetime, timezone

LOGGER: Optional[logging.Logger] = None
CLOCK: Optional[Callable[[], datetime]] = None


def setup(
    *,
    logger: Optional[logging.Logger] = None,
    clock: Optional[Callable[[], datetime]] = None,
) -> None:
    """Provide shared dependencies to all checker modules."""
    # pylint: disable=global-statement
    global LOGGER, CLOCK
    LOGGER = logger or logging.getLogger("eol_checkers")
    CLOCK = clock


def now_utc() -> datetime:
    """Current time from the injected clock, or the wall clock in UTC."""
    if CLOCK is not None:
        return CLOCK()
    return datetime.now(tz=timezone.utc)
