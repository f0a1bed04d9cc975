"""Pagination metadata for search results."""

from __future__ import annotations

import math

from reelshelf.models.domain import Metadata


def calculate_metadata(total_records: int, page: int, page_size: int) -> Metadata:
    """Compute pagination metadata for one page of results.

    An empty result yields an all-zero block rather than dividing by the
    record count.

    Args:
        total_records: Rows matching the filter before pagination.
        page: Requested page number (1-based).
        page_size: Rows per page, always positive here.

    Returns:
        Metadata for the page.
    """
    if total_records == 0:
        return Metadata()

    return Metadata(
        current_page=page,
        page_size=page_size,
        last_page=math.ceil(total_records / page_size),
        total_records=total_records,
    )
