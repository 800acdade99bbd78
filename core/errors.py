"""
Error taxonomy for the exporter.

Every failure the exporter knows how to handle is one of these classes; callers
branch on the type, never on message text.
"""
from __future__ import annotations

from typing import Any, Optional


class EolExporterError(Exception):
    """Base class for all exporter errors."""


class ParseError(EolExporterError):
    """A version string could not be parsed."""

    def __init__(self, value: Any, reason: str = "unrecognised version") -> None:
        self.value = value
        self.reason = reason
        super().__init__(f"{reason}: {value!r}")


class DateParseError(ParseError):
    """A support-end date is not a YYYY-MM-DD value."""

    def __init__(self, value: Any, reason: str = "expected YYYY-MM-DD") -> None:
        super().__init__(value, reason)


class FetchError(EolExporterError):
    """Inventory or reference data could not be retrieved."""

    def __init__(self, source: str, reason: str, cause: Optional[BaseException] = None) -> None:
        self.source = source
        self.reason = reason
        self.cause = cause
        super().__init__(f"[{source}] {reason}")


class ConfigError(EolExporterError):
    """A configuration value is present but malformed."""

    def __init__(self, key: str, value: Any, reason: str) -> None:
        self.key = key
        self.value = value
        self.reason = reason
        super().__init__(f"{key}={value!r}: {reason}")
