"""Reference table: which engine versions are supported, and until when.

File format (header required, column order free, names case-insensitive)::

    Engine,MinimumSupportedVersion,ValidDate
    mysql,8.0.0,2026-07-31
    aurora-postgresql,13.0,2026-02-28

Blank lines and lines starting with ``#`` are ignored. Values are kept as
written; malformed versions or dates only affect the records they are
matched against.
"""

from __future__ import annotations

import csv
import logging
from typing import Dict, Iterable, Iterator, List, Optional, Tuple

from core.errors import FetchError
from eol_checkers.common import _logger
from eol_checkers.models import ReferenceRow

REFERENCE_COLUMNS: Tuple[str, ...] = ("engine", "minimumsupportedversion", "validdate")


class ReferenceIndex:
    """Engine name -> reference rows, in the order they were added.

    Several rows may share an engine; they are all returned by :meth:`lookup`
    and no attempt is made to reconcile them.
    """

    def __init__(self) -> None:
        self._by_engine: Dict[str, List[ReferenceRow]] = {}

    @classmethod
    def build(cls, rows: Iterable[ReferenceRow]) -> "ReferenceIndex":
        index = cls()
        for row in rows:
            index._by_engine.setdefault(row.engine, []).append(row)
        return index

    def lookup(self, engine: str) -> Tuple[ReferenceRow, ...]:
        return tuple(self._by_engine.get(engine, ()))

    def engines(self) -> Tuple[str, ...]:
        return tuple(self._by_engine)

    def rows(self) -> Iterator[ReferenceRow]:
        for rows in self._by_engine.values():
            yield from rows

    def __len__(self) -> int:
        return sum(len(rows) for rows in self._by_engine.values())

    def __contains__(self, engine: object) -> bool:
        return engine in self._by_engine

    def __repr__(self) -> str:
        return f"ReferenceIndex(engines={len(self._by_engine)}, rows={len(self)})"


def _header_positions(header: List[str], path: str) -> Dict[str, int]:
    normalized = [h.strip().lower() for h in header]
    missing = [c for c in REFERENCE_COLUMNS if c not in normalized]
    if missing:
        raise FetchError("reference", f"{path}: missing column(s) {', '.join(missing)}")
    return {c: normalized.index(c) for c in REFERENCE_COLUMNS}


def _data_lines(handle, where: List[int]) -> Iterator[str]:
    """Yield non-comment lines; ``where[0]`` holds the file line last yielded."""
    for line_no, line in enumerate(handle, start=1):
        stripped = line.strip()
        if not stripped or stripped.startswith("#"):
            continue
        where[0] = line_no
        yield line


def load_reference_rows(
    path: str,
    delimiter: str = ",",
    logger: Optional[logging.Logger] = None,
) -> List[ReferenceRow]:
    """Read reference rows from ``path``; raises FetchError if unreadable."""
    log = _logger(logger)
    try:
        with open(path, newline="", encoding="utf-8-sig") as handle:
            where = [0]
            reader = csv.reader(_data_lines(handle, where), delimiter=delimiter)
            header = next(reader, None)
            if header is None:
                raise FetchError("reference", f"{path}: file is empty")
            pos = _header_positions(header, path)
            rows: List[ReferenceRow] = []
            for cells in reader:
                values = [
                    cells[pos[c]].strip() if pos[c] < len(cells) else ""
                    for c in REFERENCE_COLUMNS
                ]
                if not all(values):
                    log.warning("[reference] %s: skipping incomplete row at line %d: %r",
                                path, where[0], cells)
                    continue
                rows.append(ReferenceRow(
                    engine=values[0],
                    minimum_supported_version=values[1],
                    support_end_date=values[2],
                ))
    except (OSError, UnicodeDecodeError, csv.Error) as exc:
        raise FetchError("reference", f"cannot read {path}: {exc}", exc) from exc

    log.info("[reference] loaded %d row(s) from %s", len(rows), path)
    return rows


def load_reference_index(
    path: str,
    delimiter: str = ",",
    logger: Optional[logging.Logger] = None,
) -> ReferenceIndex:
    return ReferenceIndex.build(load_reference_rows(path, delimiter, logger))
