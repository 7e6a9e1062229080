"""
Shared validation helpers for the content core.
"""

from __future__ import annotations

from typing import Optional

from contentcore.errors import ValidationIssue


def validate_required_text(value: str, field: str, max_len: int) -> None:
    if not isinstance(value, str) or not value.strip():
        raise ValidationIssue(f"{field} must be a non-empty string", field=field, error_type="required")
    if len(value) > max_len:
        raise ValidationIssue(f"{field} exceeds max length {max_len}", field=field, error_type="max_length")


def validate_optional_text(value: Optional[str], field: str, max_len: int) -> None:
    if value is None:
        return
    if not isinstance(value, str):
        raise ValidationIssue(f"{field} must be a string", field=field, error_type="invalid_type")
    if len(value) > max_len:
        raise ValidationIssue(f"{field} exceeds max length {max_len}", field=field, error_type="max_length")


def validate_limit(value: int, field: str, max_value: int) -> None:
    if value <= 0 or value > max_value:
        raise ValidationIssue(f"{field} must be between 1 and {max_value}", field=field, error_type="out_of_range")
