"""Validation package: records are checked here before they are stored."""

from financehub.validation.validator import RecordValidationError, RecordValidator

__all__ = [
    "RecordValidationError",
    "RecordValidator",
]
