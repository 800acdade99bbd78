from datetime import datetime, timezone

import pytest

from eol_checkers.classifier import EOLClassifier
from eol_checkers.models import InventoryRecord, ReferenceRow
from eol_checkers.reference import ReferenceIndex

ENGINES = ["mysql", "postgres", "mariadb", "aurora-mysql", "aurora-postgresql", "oracle-ee"]


@pytest.mark.benchmark
def test_classify_perf(benchmark):
    index = ReferenceIndex.build(
        ReferenceRow(engine, f"{major}.0", f"20{20 + major % 10}-06-30")
        for engine in ENGINES[:-1]
        for major in range(5, 15)
    )
    records = [
        InventoryRecord(f"db-{i}", ENGINES[i % len(ENGINES)], f"{5 + i % 12}.{i % 40}.{i % 7}")
        for i in range(2000)
    ]
    classifier = EOLClassifier()
    now = datetime(2024, 1, 1, tzinfo=timezone.utc)

    results = benchmark(classifier.classify, records, index, now)
    assert len(results) == len(records)
