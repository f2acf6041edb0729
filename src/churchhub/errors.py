"""Exception types raised by churchhub.

Every failure of the import pipeline is detected before the write is issued
and surfaces as exactly one of these, carrying one descriptive message.
"""

from __future__ import annotations


class ChurchHubError(Exception):
    """Base class for all churchhub errors."""


class CsvParseError(ChurchHubError, ValueError):
    """The CSV text is empty or has no header row."""


class HeaderValidationError(ChurchHubError, ValueError):
    """Strict-mode import is missing one or more required headers."""

    def __init__(self, missing: list[str]):
        self.missing = list(missing)
        super().__init__(f"Missing required headers: {', '.join(self.missing)}")


class MappingValidationError(ChurchHubError, ValueError):
    """Interactive-mode import left one or more required fields unmapped."""

    def __init__(self, missing: list[str]):
        self.missing = list(missing)
        super().__init__(f"Please map all required fields: {', '.join(self.missing)}")


class GuardianRequiredError(ChurchHubError, ValueError):
    """A children/teens member has no parent or guardian."""


class RecordNotFoundError(ChurchHubError, KeyError):
    """No record with the given id exists in the collection."""

    def __str__(self) -> str:
        # KeyError.__str__ would repr() the message
        return str(self.args[0]) if self.args else ""


class WriteError(ChurchHubError, RuntimeError):
    """A bulk delete/insert against the store failed.

    The store rolls the transaction back, but callers must not assume the
    collection holds either the old or the new contents.
    """

    def __init__(self, kind: str, cause: Exception):
        self.kind = kind
        self.cause = cause
        super().__init__(f"Failed to write {kind}: {cause}")
