"""Search query construction.

Builds the single SELECT behind a record search: filtering, ordering,
pagination and the pre-pagination total all come back in one result set.
"""

from __future__ import annotations

from collections.abc import Sequence

from sqlalchemy import Select, and_, exists, false, func, select, true
from sqlalchemy.sql.elements import ColumnElement

from reelshelf.core.errors import ValidationError
from reelshelf.core.filters import (
    DEFAULT_SORT_SAFELIST,
    SORTABLE_FIELDS,
    FilterSpec,
    sort_field,
)
from reelshelf.core.text import tokenize
from reelshelf.db.schema import Record, RecordTag, RecordTitleToken

# Sortable fields mapped to the columns they order by
SORT_COLUMNS = {name: getattr(Record, name) for name in SORTABLE_FIELDS}


def title_condition(title: str) -> ColumnElement[bool]:
    """Match records whose title contains every token of the query.

    An empty query matches everything; a query with no word characters
    matches nothing.
    """
    if title == "":
        return true()

    tokens = tokenize(title)
    if not tokens:
        return false()

    return and_(
        *[
            exists().where(
                RecordTitleToken.record_id == Record.id,
                RecordTitleToken.token == token,
            )
            for token in tokens
        ]
    )


def tags_condition(tags: Sequence[str]) -> ColumnElement[bool]:
    """Match records whose tag set is a superset of tags."""
    if not tags:
        return true()

    return and_(
        *[
            exists().where(RecordTag.record_id == Record.id, RecordTag.tag == tag)
            for tag in dict.fromkeys(tags)
        ]
    )


def build_search_query(
    title: str,
    tags: Sequence[str],
    spec: FilterSpec,
    sort_safelist: Sequence[str] = DEFAULT_SORT_SAFELIST,
) -> Select:
    """Build the paginated search query.

    Each row carries the matching record's columns plus total_records, the
    count of all matching rows before LIMIT/OFFSET.

    Args:
        title: Free-text title query ("" matches all).
        tags: Required tags (empty means no tag filter).
        spec: Validated filter spec supplying sort and window.
        sort_safelist: Sort keys the caller is configured to accept.

    Returns:
        SQLAlchemy Select ready to execute.

    Raises:
        ValidationError: If the sort key is not safelisted or names no
            sortable column.
    """
    sort_column = SORT_COLUMNS.get(sort_field(spec.sort)) if spec.sort in sort_safelist else None
    if sort_column is None:
        raise ValidationError({"sort": "invalid sort value"})
    primary = sort_column.desc() if spec.sort_direction() == "desc" else sort_column.asc()

    return (
        select(
            func.count().over().label("total_records"),
            Record.id,
            Record.created_at,
            Record.title,
            Record.release_year,
            Record.duration_minutes,
            Record.tags,
            Record.version,
        )
        .where(title_condition(title), tags_condition(tags))
        .order_by(primary, Record.id.asc())
        .limit(spec.limit())
        .offset(spec.offset())
    )
