"""Date staging: how close a support-end date is, relative to "now".

The stage depends on the time remaining until the support-end date (taken as
00:00 UTC of that day):

    remaining <  0               -> expired
    remaining <  alert_window    -> alert
    remaining <  warning_window  -> warning
    otherwise                    -> ok

So the support-end day itself is still ``alert``, and a date exactly
``alert_window`` away is already back to ``warning``.
"""

from __future__ import annotations

import re
from datetime import date, datetime, time, timedelta, timezone
from typing import Union

from core.errors import DateParseError
from eol_checkers.common import _as_utc
from eol_checkers.models import Stage

DATE_FORMAT = "%Y-%m-%d"
_DATE_RE = re.compile(r"[0-9]{4}-[0-9]{2}-[0-9]{2}")
DEFAULT_ALERT_WINDOW = timedelta(days=90)
DEFAULT_WARNING_WINDOW = timedelta(days=180)

DateLike = Union[str, date, datetime]


def parse_support_end(value: DateLike) -> datetime:
    """Return the support-end instant (UTC midnight for dates and strings)."""
    if isinstance(value, datetime):
        return _as_utc(value)
    if isinstance(value, date):
        return datetime.combine(value, time.min, tzinfo=timezone.utc)
    if not isinstance(value, str):
        raise DateParseError(value, "expected a date or YYYY-MM-DD string")
    text = value.strip()
    # strptime alone would also take 2021-1-5
    if not _DATE_RE.fullmatch(text):
        raise DateParseError(value)
    try:
        parsed = datetime.strptime(text, DATE_FORMAT)
    except ValueError:
        raise DateParseError(value) from None
    return parsed.replace(tzinfo=timezone.utc)


def stage_for_date(
    support_end_date: DateLike,
    now: datetime,
    alert_window: timedelta = DEFAULT_ALERT_WINDOW,
    warning_window: timedelta = DEFAULT_WARNING_WINDOW,
) -> Stage:
    remaining = parse_support_end(support_end_date) - _as_utc(now)
    if remaining < timedelta(0):
        return Stage.EXPIRED
    if remaining < alert_window:
        return Stage.ALERT
    if remaining < warning_window:
        return Stage.WARNING
    return Stage.OK
