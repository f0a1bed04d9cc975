"""Search, sort and pagination parameters.

FilterSpec is the validated, request-scoped shape that the query builder
consumes. The sort key must come from the configured safelist, and every
safelisted key must name one of SORTABLE_FIELDS; that is the only way a
caller-supplied value reaches an ORDER BY clause.
"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field
from typing import Literal

from reelshelf.core.validator import Validator, permitted_value

SortDirection = Literal["asc", "desc"]

# Record fields the query builder knows how to order by
SORTABLE_FIELDS: tuple[str, ...] = ("id", "title", "release_year", "duration_minutes")

DEFAULT_SORT_SAFELIST: tuple[str, ...] = SORTABLE_FIELDS + tuple(f"-{name}" for name in SORTABLE_FIELDS)


def sort_field(key: str) -> str:
    """Strip the direction prefix from a sort key."""
    return key[1:] if key.startswith("-") else key


@dataclass(frozen=True)
class FilterConfig:
    """Limits and the sort safelist applied to every FilterSpec.

    Raises:
        ValueError: If a safelisted key names no sortable field, or the
            default sort is not safelisted.
    """

    sort_safelist: tuple[str, ...] = DEFAULT_SORT_SAFELIST
    default_sort: str = "id"
    default_page_size: int = 20
    max_page_size: int = 100
    max_page: int = 10_000_000

    def __post_init__(self) -> None:
        unknown = [key for key in self.sort_safelist if sort_field(key) not in SORTABLE_FIELDS]
        if unknown:
            raise ValueError(f"sort safelist names unsortable fields: {', '.join(unknown)}")
        if self.default_sort not in self.sort_safelist:
            raise ValueError(f"default sort {self.default_sort!r} is not in the sort safelist")


@dataclass(frozen=True)
class FilterSpec:
    """Validated search parameters for one query."""

    page: int = 1
    page_size: int = 20
    sort: str = "id"
    title: str = ""
    tags: tuple[str, ...] = field(default_factory=tuple)

    def sort_column(self) -> str:
        """Return the field named by the sort key, without its direction prefix.

        Raises:
            ValueError: If the sort key names no sortable field.
        """
        name = sort_field(self.sort)
        if name not in SORTABLE_FIELDS:
            raise ValueError(f"unsafe sort parameter: {self.sort}")
        return name

    def sort_direction(self) -> SortDirection:
        return "desc" if self.sort.startswith("-") else "asc"

    def limit(self) -> int:
        return self.page_size

    def offset(self) -> int:
        return (self.page - 1) * self.page_size


def _describe_limit(n: int) -> str:
    if n >= 1_000_000 and n % 1_000_000 == 0:
        return f"{n // 1_000_000} million"
    return str(n)


def validate_filters(v: Validator, spec: FilterSpec, config: FilterConfig) -> None:
    """Record every problem with spec on the validator."""
    v.check(spec.page > 0, "page", "must be greater than zero")
    v.check(
        spec.page <= config.max_page,
        "page",
        f"must be a maximum of {_describe_limit(config.max_page)}",
    )
    v.check(spec.page_size > 0, "page_size", "must be greater than zero")
    v.check(
        spec.page_size <= config.max_page_size,
        "page_size",
        f"must be a maximum of {config.max_page_size}",
    )
    v.check(
        permitted_value(spec.sort, config.sort_safelist),
        "sort",
        "invalid sort value",
    )


def _read_int(
    params: Mapping[str, str], key: str, default: int, v: Validator
) -> int:
    raw = params.get(key)
    if raw is None or raw == "":
        return default
    try:
        return int(raw)
    except ValueError:
        v.add_error(key, "must be an integer value")
        return default


def _read_csv(params: Mapping[str, str], key: str) -> tuple[str, ...]:
    raw = params.get(key)
    if not raw:
        return ()
    return tuple(part.strip() for part in raw.split(",") if part.strip())


def parse_filters(params: Mapping[str, str], config: FilterConfig | None = None) -> FilterSpec:
    """Build a FilterSpec from raw query-string values.

    All checks run before anything is raised, so the ValidationError lists
    every offending field.

    Args:
        params: Raw query parameters (title, tags, page, page_size, sort).
        config: Limits and sort safelist. Defaults to FilterConfig().

    Returns:
        Validated FilterSpec.

    Raises:
        ValidationError: If any parameter is malformed or out of range.
    """
    config = config or FilterConfig()
    v = Validator()

    spec = FilterSpec(
        page=_read_int(params, "page", 1, v),
        page_size=_read_int(params, "page_size", config.default_page_size, v),
        sort=params.get("sort") or config.default_sort,
        title=(params.get("title") or "").strip(),
        tags=_read_csv(params, "tags"),
    )

    validate_filters(v, spec, config)
    v.raise_if_invalid()
    return spec
