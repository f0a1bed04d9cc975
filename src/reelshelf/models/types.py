"""Pydantic models for the Reelshelf API.

Request bodies accept missing fields so that record validation can report
every problem at once with field-level messages.
"""

from __future__ import annotations

from pydantic import BaseModel

from reelshelf.models.domain import Metadata, RecordEntity


class RecordInput(BaseModel):
    """Body of POST /v1/records."""

    title: str | None = None
    release_year: int | None = None
    duration_minutes: int | None = None
    tags: list[str] | None = None


class RecordPatch(BaseModel):
    """Body of PATCH /v1/records/{id}. Omitted fields are left unchanged."""

    title: str | None = None
    release_year: int | None = None
    duration_minutes: int | None = None
    tags: list[str] | None = None


class RecordDetail(BaseModel):
    """Record representation in API responses."""

    id: int
    title: str
    release_year: int
    duration_minutes: int
    tags: list[str]
    version: int

    @classmethod
    def from_entity(cls, record: RecordEntity) -> RecordDetail:
        return cls(
            id=record.id,
            title=record.title,
            release_year=record.release_year,
            duration_minutes=record.duration_minutes,
            tags=list(record.tags),
            version=record.version,
        )


class MetadataDetail(BaseModel):
    """Pagination metadata in API responses."""

    current_page: int
    page_size: int
    last_page: int
    total_records: int

    @classmethod
    def from_metadata(cls, metadata: Metadata) -> MetadataDetail:
        return cls(
            current_page=metadata.current_page,
            page_size=metadata.page_size,
            last_page=metadata.last_page,
            total_records=metadata.total_records,
        )


class RecordEnvelope(BaseModel):
    """Single-record response body."""

    record: RecordDetail


class RecordListEnvelope(BaseModel):
    """Search response body."""

    records: list[RecordDetail]
    metadata: MetadataDetail


class MessageEnvelope(BaseModel):
    """Plain message response body."""

    message: str


class SystemInfo(BaseModel):
    environment: str
    version: str


class HealthStatus(BaseModel):
    """Healthcheck response body."""

    status: str
    system_info: SystemInfo
