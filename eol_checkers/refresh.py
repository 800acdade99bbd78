"""One refresh pass: fetch inventory, classify, publish.

A FetchError skips the pass: the failure is counted and the previous snapshot
stays in place until a later pass succeeds.
"""

from __future__ import annotations

import logging
from collections import Counter
from time import perf_counter
from typing import Callable, List, Optional

from core.errors import FetchError
from eol_checkers import config
from eol_checkers.classifier import EOLClassifier
from eol_checkers.common import _logger, _signals_str, _to_utc_iso
from eol_checkers.models import ClassificationResult, InventoryRecord, Stage
from eol_checkers.publisher import SnapshotPublisher
from eol_checkers.reference import ReferenceIndex


class RefreshPass:
    """Callable handed to the scheduler; each call is one complete pass."""

    def __init__(
        self,
        fetch: Callable[[], List[InventoryRecord]],
        index: ReferenceIndex,
        classifier: EOLClassifier,
        publisher: SnapshotPublisher,
        logger: Optional[logging.Logger] = None,
    ) -> None:
        self.fetch = fetch
        self.index = index
        self.classifier = classifier
        self.publisher = publisher
        self._log = logger

    def __call__(self) -> Optional[List[ClassificationResult]]:
        log = _logger(self._log)
        started = perf_counter()
        now = config.now_utc()

        try:
            records = self.fetch()
        except FetchError as exc:
            self.publisher.record_failure()
            log.error("[refresh] skipped, keeping previous snapshot: %s", exc)
            return None

        results = self.classifier.classify(records, self.index, now)
        self.publisher.replace(results, refreshed_at=now)

        counts = Counter(r.stage for r in results)
        log.info("[refresh] %d resource(s) at %s in %.2fs: %s",
                 len(results), _to_utc_iso(now), perf_counter() - started,
                 _signals_str({s.value: counts.get(s, 0) for s in Stage}))
        if counts.get(Stage.UNCLASSIFIED):
            unmatched = [r.record.identifier for r in results if r.stage is Stage.UNCLASSIFIED]
            log.warning("[refresh] unclassified: %s", ", ".join(unmatched))
        return results
