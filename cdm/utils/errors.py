"""Custom exceptions for core logic."""

from __future__ import annotations

from pathlib import Path


class SourceNotFoundError(Exception):
    """Raised when the file to validate does not exist."""

    def __init__(self, message: str, *, path: Path) -> None:
        super().__init__(message)
        self.path = path


class RecordParseError(Exception):
    """Raised when one physical line cannot be decomposed into fields."""

    def __init__(self, message: str, *, line_number: int) -> None:
        super().__init__(message)
        self.line_number = line_number


class RulesError(ValueError):
    """Raised when a validation rules file is missing or malformed."""

    def __init__(self, message: str, *, path: Path | None = None) -> None:
        super().__init__(message)
        self.path = path
