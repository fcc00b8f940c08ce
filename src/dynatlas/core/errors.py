"""Exceptions raised by the lookup table and its loaders."""

from __future__ import annotations

from typing import Iterable


class LookupTableError(Exception):
    """Base class for dynatlas lookup errors."""


class MissingArgumentError(LookupTableError, ValueError):
    """Raised when a required argument is None or empty."""

    def __init__(self, argument: str, operation: str) -> None:
        self.argument = argument
        self.operation = operation
        super().__init__(f"Must supply {argument} for {operation}()")


class LabelNotFoundError(LookupTableError, KeyError):
    """Raised when a stain label is not a key of the lookup map."""

    def __init__(self, label: str, available: Iterable[str] = ()) -> None:
        self.label = label
        self.available = tuple(available)
        super().__init__(label)

    def __str__(self) -> str:
        # KeyError.__str__ would only repr the key
        known = ", ".join(self.available) if self.available else "none"
        return f"Label {self.label!r} not found in lookup map (available: {known})"


class MisalignedRecordError(LookupTableError, ValueError):
    """Raised when parallel per-sample sequences differ in length."""


class TimeMatchFormatError(LookupTableError, ValueError):
    """Raised when a time-match file cannot be interpreted."""


class SnapshotFormatError(LookupTableError, ValueError):
    """Raised when a lookup map snapshot does not match the expected schema."""
