"""EOL classifier: inventory records x reference index -> stages.

For each record, every reference row of the record's engine is evaluated in
index order:

- version below the row's minimum -> stage from the row's support-end date
- version at or above the minimum -> ok
- version unparseable            -> the row is skipped
- below the minimum, date broken -> unclassified (the row still counts)

When several rows evaluate successfully the ``strategy`` decides which one
wins: ``"last"`` (default) lets later rows override earlier ones, ``"first"``
keeps the first. A record with no matching engine, or with no row that could
be evaluated, is ``unclassified``. Nothing here raises for a single bad
record; the result list always has one entry per input record, in order.
"""

from __future__ import annotations

import logging
from datetime import datetime, timedelta
from typing import Iterable, List, Optional, Tuple

from core.errors import DateParseError, ParseError
from eol_checkers.common import _as_utc, _logger, _signals_str
from eol_checkers.models import ClassificationResult, InventoryRecord, ReferenceRow, Stage
from eol_checkers.reference import ReferenceIndex
from eol_checkers.staging import DEFAULT_ALERT_WINDOW, DEFAULT_WARNING_WINDOW, stage_for_date
from eol_checkers.versions import LESS, compare_versions

STRATEGIES = ("last", "first")

__all__ = ["EOLClassifier", "classify", "STRATEGIES"]


class EOLClassifier:
    """Stateless classifier; safe to share between threads and passes."""

    def __init__(
        self,
        alert_window: timedelta = DEFAULT_ALERT_WINDOW,
        warning_window: timedelta = DEFAULT_WARNING_WINDOW,
        strategy: str = "last",
        logger: Optional[logging.Logger] = None,
    ) -> None:
        if strategy not in STRATEGIES:
            raise ValueError(f"strategy must be one of {STRATEGIES}, got {strategy!r}")
        self.alert_window = alert_window
        self.warning_window = warning_window
        self.strategy = strategy
        self._log = logger

    def evaluate(self, record: InventoryRecord, row: ReferenceRow, now: datetime) -> Stage:
        """Stage ``record`` against a single reference row; raises ParseError."""
        if compare_versions(record.engine_version, row.minimum_supported_version) != LESS:
            return Stage.OK
        return stage_for_date(row.support_end_date, now, self.alert_window, self.warning_window)

    def classify_record(
        self,
        record: InventoryRecord,
        index: ReferenceIndex,
        now: datetime,
    ) -> ClassificationResult:
        log = _logger(self._log)
        decided: Optional[Tuple[Stage, ReferenceRow]] = None
        error: Optional[str] = None

        for row in index.lookup(record.engine):
            try:
                stage = self.evaluate(record, row, now)
            except ParseError as exc:
                error = str(exc)
                log.debug("[classifier] %s", _signals_str({
                    "id": record.identifier,
                    "engine": record.engine,
                    "version": record.engine_version,
                    "min": row.minimum_supported_version,
                    "date": row.support_end_date,
                    "error": exc,
                }))
                # only reached once the version compared below the minimum
                if not isinstance(exc, DateParseError):
                    continue
                stage = Stage.UNCLASSIFIED
            decided = (stage, row)
            if self.strategy == "first":
                break

        if decided is None:
            return ClassificationResult(record=record, stage=Stage.UNCLASSIFIED, error=error)
        stage, row = decided
        return ClassificationResult(record=record, stage=stage, reference=row, error=error)

    def classify(
        self,
        records: Iterable[InventoryRecord],
        index: ReferenceIndex,
        now: datetime,
    ) -> List[ClassificationResult]:
        now = _as_utc(now)
        return [self.classify_record(record, index, now) for record in records]


def classify(
    records: Iterable[InventoryRecord],
    index: ReferenceIndex,
    now: datetime,
    *,
    alert_window: timedelta = DEFAULT_ALERT_WINDOW,
    warning_window: timedelta = DEFAULT_WARNING_WINDOW,
    strategy: str = "last",
) -> List[ClassificationResult]:
    """Classify ``records`` with a one-off :class:`EOLClassifier`."""
    return EOLClassifier(alert_window, warning_window, strategy).classify(records, index, now)
