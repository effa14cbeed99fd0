"""
Shared validation helpers for CollabGate services.
"""

from __future__ import annotations

from typing import Optional, Sequence

from core.config import MAX_ID_LENGTH
from core.errors import ValidationIssue


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


def validate_id(value: str, field: str) -> None:
    validate_required_text(value, field, MAX_ID_LENGTH)


def validate_limit(value: int, field: str, max_value: int) -> None:
    if isinstance(value, bool) or not isinstance(value, int):
        raise ValidationIssue(f"{field} must be an integer", field=field, error_type="invalid_type")
    if value <= 0 or value > max_value:
        raise ValidationIssue(f"{field} must be between 1 and {max_value}", field=field, error_type="out_of_range")


def normalize_id_list(values: Optional[Sequence[str]], field: str, max_items: int) -> list[str]:
    """Validate a list of ids and return it de-duplicated in first-seen order."""
    if values is None:
        return []
    if isinstance(values, (str, bytes)) or not isinstance(values, (list, tuple, set)):
        raise ValidationIssue(f"{field} must be a list", field=field, error_type="invalid_type")
    if len(values) > max_items:
        raise ValidationIssue(f"{field} exceeds max items {max_items}", field=field, error_type="max_items")
    seen: dict[str, None] = {}
    for item in values:
        if not isinstance(item, str) or not item.strip():
            raise ValidationIssue(f"{field} must contain only non-empty strings", field=field, error_type="invalid_type")
        if len(item) > MAX_ID_LENGTH:
            raise ValidationIssue(
                f"{field} item exceeds max length {MAX_ID_LENGTH}",
                field=field,
                error_type="max_length",
            )
        seen.setdefault(item.strip(), None)
    return list(seen)


def count_words(text: Optional[str]) -> int:
    if not text:
        return 0
    return len(text.split())
