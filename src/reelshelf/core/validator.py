"""Accumulating validator and record invariants.

A Validator collects one message per offending field so every problem
can be reported at once instead of failing on the first check.
"""

from __future__ import annotations

from collections.abc import Hashable, Iterable
from datetime import date
from typing import Any

from reelshelf.core.errors import ValidationError

MIN_RELEASE_YEAR = 1888
MAX_TITLE_BYTES = 500
MIN_TAGS = 1
MAX_TAGS = 5


class Validator:
    """Collects validation errors keyed by field name."""

    def __init__(self) -> None:
        self.errors: dict[str, str] = {}

    def valid(self) -> bool:
        return not self.errors

    def add_error(self, key: str, message: str) -> None:
        """Record a message for key unless one is already present."""
        self.errors.setdefault(key, message)

    def check(self, ok: bool, key: str, message: str) -> None:
        if not ok:
            self.add_error(key, message)

    def raise_if_invalid(self) -> None:
        """Raise ValidationError carrying every recorded message."""
        if self.errors:
            raise ValidationError(self.errors)


def permitted_value(value: Hashable, permitted: Iterable[Hashable]) -> bool:
    """Return True if value is one of the permitted values."""
    return value in set(permitted)


def unique(values: Iterable[Hashable]) -> bool:
    """Return True if values contains no duplicates."""
    seen = set()
    for value in values:
        if value in seen:
            return False
        seen.add(value)
    return True


def validate_record(v: Validator, record: Any, today: date | None = None) -> None:
    """Check the invariants every stored record must satisfy.

    Works on any object exposing title, release_year, duration_minutes and
    tags; missing values may be None.

    Args:
        v: Validator that receives the errors.
        record: Record-like object to check.
        today: Reference date for the future-year check. Defaults to today.
    """
    current_year = (today or date.today()).year

    title = record.title
    v.check(bool(title), "title", "must be provided")
    if title:
        v.check(
            len(title.encode("utf-8")) <= MAX_TITLE_BYTES,
            "title",
            f"must not be more than {MAX_TITLE_BYTES} bytes long",
        )

    year = record.release_year
    v.check(bool(year), "release_year", "must be provided")
    if year:
        v.check(year >= MIN_RELEASE_YEAR, "release_year", f"must be greater than {MIN_RELEASE_YEAR}")
        v.check(year <= current_year, "release_year", "must not be in the future")

    duration = record.duration_minutes
    v.check(bool(duration), "duration_minutes", "must be provided")
    if duration:
        v.check(duration > 0, "duration_minutes", "must be a positive integer")

    tags = record.tags
    v.check(tags is not None, "tags", "must be provided")
    if tags is not None:
        v.check(len(tags) >= MIN_TAGS, "tags", f"must contain at least {MIN_TAGS} tag")
        v.check(len(tags) <= MAX_TAGS, "tags", f"must not contain more than {MAX_TAGS} tags")
        v.check(unique(tags), "tags", "must not contain duplicate values")
