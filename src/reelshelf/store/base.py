"""Base record store interface.

Every operation runs under a per-call time budget (timeout, in seconds;
None means the store's configured default) and raises only catalog errors
from reelshelf.core.errors.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from collections.abc import Sequence

from reelshelf.core.filters import FilterSpec
from reelshelf.models.domain import Metadata, RecordEntity


class RecordStore(ABC):
    """Abstract base class for record stores.

    Implementations hold no state between calls and never retry: edit
    conflicts and timeouts go straight back to the caller.
    """

    @abstractmethod
    def insert(self, record: RecordEntity, *, timeout: float | None = None) -> RecordEntity:
        """Persist a new record.

        Returns:
            The record with id, created_at and version assigned.

        Raises:
            ValidationError: If the record breaks an invariant.
            StoreError: On storage failure.
        """

    @abstractmethod
    def get(self, record_id: int, *, timeout: float | None = None) -> RecordEntity:
        """Fetch a record by id.

        Raises:
            RecordNotFound: If no record has this id (ids below 1 never do).
            StoreError: On storage failure.
        """

    @abstractmethod
    def update(self, record: RecordEntity, *, timeout: float | None = None) -> RecordEntity:
        """Write record if its version still matches the stored one.

        Returns:
            The record carrying its new version.

        Raises:
            ValidationError: If the record breaks an invariant.
            EditConflict: If the record is gone or its version is stale.
            StoreError: On storage failure.
        """

    @abstractmethod
    def delete(self, record_id: int, *, timeout: float | None = None) -> None:
        """Delete a record by id.

        Raises:
            RecordNotFound: If no record has this id.
            StoreError: On storage failure.
        """

    @abstractmethod
    def search(
        self,
        title: str,
        tags: Sequence[str],
        spec: FilterSpec,
        *,
        timeout: float | None = None,
    ) -> tuple[list[RecordEntity], Metadata]:
        """Return one page of records matching title and tags.

        Raises:
            ValidationError: If spec is out of range.
            StoreError: On storage failure or an undecodable row.
        """
