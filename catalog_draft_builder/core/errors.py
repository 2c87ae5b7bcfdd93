# core/errors.py

from __future__ import annotations

from typing import Dict, Iterable, Optional


class DraftBuilderError(Exception):
    """Base class for everything the draft builder raises."""


class IngestError(DraftBuilderError):
    """A local file could not be read or encoded as an embeddable reference."""


class EnrichmentError(DraftBuilderError):
    """The enrichment backend rejected, failed or timed out."""

    def __init__(self, message: str, kind: Optional[str] = None):
        super().__init__(message)
        self.kind = kind


class ValidationError(DraftBuilderError):
    """
    A draft (or a single edit) did not pass validation.

    missing_fields: required fields that are empty, in a stable order
    invalid_fields: field -> reason, for values that could not be accepted
    """

    def __init__(
        self,
        missing_fields: Iterable[str] = (),
        invalid_fields: Optional[Dict[str, str]] = None,
    ):
        self.missing_fields = tuple(missing_fields)
        self.invalid_fields = dict(invalid_fields or {})
        parts = []
        if self.missing_fields:
            parts.append("missing required field(s): " + ", ".join(self.missing_fields))
        for field_name, reason in self.invalid_fields.items():
            parts.append(f"invalid {field_name}: {reason}")
        super().__init__("; ".join(parts) or "validation failed")


class PreconditionError(DraftBuilderError):
    """An operation was invoked in a state that does not allow it."""


class SessionClosedError(PreconditionError):
    """The authoring session was already committed or cancelled."""
