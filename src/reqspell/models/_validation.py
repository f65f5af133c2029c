"""Shared validation helpers for frozen dataclass models.

Private module -- not part of the public API. Used by ``__post_init__``
methods in sibling model modules to enforce runtime type constraints,
null-byte safety, and the ordered-deduplication invariant of filter arrays.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any, TypeVar


if TYPE_CHECKING:
    from collections.abc import Iterable


_T = TypeVar("_T")


def validate_instance(value: Any, expected: type, name: str) -> None:
    """Raise ``TypeError`` if *value* is not an instance of *expected*."""
    if not isinstance(value, expected):
        article = "an" if expected.__name__[0] in "AEIOUaeiou" else "a"
        raise TypeError(f"{name} must be {article} {expected.__name__}, got {type(value).__name__}")


def validate_timestamp(value: Any, name: str) -> None:
    """Raise if *value* is not a non-negative ``int`` (``bool`` excluded)."""
    if isinstance(value, bool) or not isinstance(value, int):
        raise TypeError(f"{name} must be an int, got {type(value).__name__}")
    if value < 0:
        raise ValueError(f"{name} must be non-negative")


def validate_optional_timestamp(value: Any, name: str) -> None:
    """Like [validate_timestamp][reqspell.models._validation.validate_timestamp], allowing ``None``."""
    if value is not None:
        validate_timestamp(value, name)


def validate_str_no_null(value: Any, name: str) -> None:
    """Raise if *value* is not a ``str`` or contains null bytes."""
    if not isinstance(value, str):
        raise TypeError(f"{name} must be a str, got {type(value).__name__}")
    if "\x00" in value:
        raise ValueError(f"{name} contains null bytes")


def validate_str_not_empty(value: Any, name: str) -> None:
    """Raise if *value* is not a non-empty ``str`` without null bytes."""
    validate_str_no_null(value, name)
    if not value:
        raise ValueError(f"{name} must not be empty")


def validate_tag_letter(value: Any, name: str) -> None:
    """Raise unless *value* is a single ASCII letter (``a-z`` or ``A-Z``)."""
    validate_str_no_null(value, name)
    if len(value) != 1 or not value.isascii() or not value.isalpha():
        raise ValueError(f"{name} must be a single ASCII letter, got {value!r}")


def ordered_unique(values: Iterable[_T]) -> tuple[_T, ...]:
    """Deduplicate *values* preserving first-seen order."""
    return tuple(dict.fromkeys(values))
