"""Domain models for Reelshelf.

Pure Python dataclasses representing domain entities.
These models are independent of SQLAlchemy and used throughout
the application for clean separation from the database layer.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime


# ============================================================================
# Record Domain
# ============================================================================


@dataclass
class RecordEntity:
    """Domain model for a catalog record.

    id, created_at and version are assigned by the store; a record built
    for insertion leaves them at their defaults.
    """

    title: str
    release_year: int
    duration_minutes: int
    tags: list[str] = field(default_factory=list)
    id: int = 0
    created_at: datetime | None = None
    version: int = 0


# ============================================================================
# Search Domain
# ============================================================================


@dataclass(frozen=True)
class Metadata:
    """Pagination metadata for one page of search results."""

    current_page: int = 0
    page_size: int = 0
    last_page: int = 0
    total_records: int = 0
