"""Engine version parsing and ordering.

Accepts dotted numeric versions as reported by RDS (``"5.7.44"``, ``"13.4"``,
``"10.11.6"``) with an optional leading ``v``, pre-release suffix
(``"8.0.0-rc1"``, ``"1.2beta"``) and ``+build`` metadata. Anything else, e.g.
Aurora's ``"5.7.mysql_aurora.2.11.2"``, is rejected with ``ParseError`` so the
caller can surface it instead of guessing.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Tuple, Union

from core.errors import ParseError

LESS = -1
EQUAL = 0
GREATER = 1

_IDENT = r"[0-9A-Za-z~-]+"
_VERSION_RE = re.compile(
    r"^v?(?P<release>\d+(?:\.\d+)*)"
    rf"(?:-(?P<pre>{_IDENT}(?:\.{_IDENT})*)|(?P<pre_attached>[A-Za-z~][0-9A-Za-z~-]*(?:\.{_IDENT})*))?"
    rf"(?:\+(?P<build>{_IDENT}(?:\.{_IDENT})*))?$"
)


@dataclass(frozen=True)
class Version:
    release: Tuple[int, ...]
    prerelease: Tuple[Union[int, str], ...] = ()
    build: str = ""


def _pre_ident(token: str) -> Union[int, str]:
    return int(token) if token.isdigit() else token


def parse_version(text: str) -> Version:
    """Parse ``text`` into a :class:`Version`; raises ParseError when malformed."""
    if not isinstance(text, str):
        raise ParseError(text, "version must be a string")
    m = _VERSION_RE.match(text.strip())
    if not m:
        raise ParseError(text)
    pre = m.group("pre") or m.group("pre_attached") or ""
    return Version(
        release=tuple(int(p) for p in m.group("release").split(".")),
        prerelease=tuple(_pre_ident(p) for p in pre.split(".")) if pre else (),
        build=m.group("build") or "",
    )


def _cmp(a, b) -> int:
    return (a > b) - (a < b)


def _compare_pre(a: Tuple[Union[int, str], ...], b: Tuple[Union[int, str], ...]) -> int:
    # A release without pre-release ranks above any pre-release of it.
    if not a or not b:
        return _cmp(not a, not b)
    for x, y in zip(a, b):
        if isinstance(x, int) and isinstance(y, int):
            c = _cmp(x, y)
        elif isinstance(x, int):
            c = LESS
        elif isinstance(y, int):
            c = GREATER
        else:
            c = _cmp(x, y)
        if c:
            return c
    return _cmp(len(a), len(b))


def compare_parsed(a: Version, b: Version) -> int:
    width = max(len(a.release), len(b.release))
    ra = a.release + (0,) * (width - len(a.release))
    rb = b.release + (0,) * (width - len(b.release))
    return _cmp(ra, rb) or _compare_pre(a.prerelease, b.prerelease)


def compare_versions(a: str, b: str) -> int:
    """Return LESS, EQUAL or GREATER for ``a`` relative to ``b``.

    Missing trailing segments count as zero, so ``"5.7" == "5.7.0"``. Build
    metadata is ignored. Raises ParseError if either side is malformed.
    """
    return compare_parsed(parse_version(a), parse_version(b))
