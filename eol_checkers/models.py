"""Value types passed between the fetcher, the classifier and the publisher."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date
from enum import Enum
from typing import Optional, Union


class Stage(str, Enum):
    """Severity of a resource's distance to (or past) its engine EOL date."""
    OK = "ok"
    WARNING = "warning"
    ALERT = "alert"
    EXPIRED = "expired"
    UNCLASSIFIED = "unclassified"


@dataclass(frozen=True)
class InventoryRecord:
    identifier: str
    engine: str
    engine_version: str
    kind: str = "cluster"   # "cluster" | "instance"


@dataclass(frozen=True)
class ReferenceRow:
    engine: str
    minimum_supported_version: str
    support_end_date: Union[str, date]   # canonical YYYY-MM-DD, parsed when staged


@dataclass(frozen=True)
class ClassificationResult:
    record: InventoryRecord
    stage: Stage
    reference: Optional[ReferenceRow] = None   # row that decided the stage
    error: Optional[str] = None                # last per-candidate parse failure
