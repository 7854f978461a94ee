"""Lenient validation of model payloads against the shared pydantic contracts."""

from learnpath.schema.validation import LenientModel, ValidatedPayload, case_folded, clamped, drop_invalid, flag_strings, validate

__all__ = ["LenientModel", "ValidatedPayload", "case_folded", "clamped", "drop_invalid", "flag_strings", "validate"]
