"""Records API endpoints.

GET /v1/records - Search records (title, tags, page, page_size, sort)
POST /v1/records - Create a record
GET /v1/records/{record_id} - Get a record
PATCH /v1/records/{record_id} - Partially update a record
DELETE /v1/records/{record_id} - Delete a record
"""

from __future__ import annotations

from fastapi import APIRouter, Depends, Request, Response

from reelshelf.api.app import get_filter_config, get_record_store
from reelshelf.core.errors import EditConflict, RecordNotFound
from reelshelf.core.filters import FilterConfig, parse_filters
from reelshelf.core.validator import Validator, validate_record
from reelshelf.models.domain import RecordEntity
from reelshelf.models.types import (
    MessageEnvelope,
    MetadataDetail,
    RecordDetail,
    RecordEnvelope,
    RecordInput,
    RecordListEnvelope,
    RecordPatch,
)
from reelshelf.store import RecordStore

router = APIRouter()

EXPECTED_VERSION_HEADER = "X-Expected-Version"


def _read_id(raw: str) -> int:
    """Parse a path id; anything but a positive integer is a missing record."""
    try:
        record_id = int(raw)
    except ValueError:
        raise RecordNotFound() from None
    if record_id < 1:
        raise RecordNotFound(record_id)
    return record_id


@router.get("/records", response_model=RecordListEnvelope)
def list_records(
    request: Request,
    store: RecordStore = Depends(get_record_store),
    filter_config: FilterConfig = Depends(get_filter_config),
) -> RecordListEnvelope:
    """Search records.

    Raises:
        ValidationError: 422 if a query parameter is invalid.
    """
    spec = parse_filters(request.query_params, filter_config)
    records, metadata = store.search(spec.title, spec.tags, spec)

    return RecordListEnvelope(
        records=[RecordDetail.from_entity(r) for r in records],
        metadata=MetadataDetail.from_metadata(metadata),
    )


@router.post("/records", response_model=RecordEnvelope, status_code=201)
def create_record(
    body: RecordInput,
    response: Response,
    store: RecordStore = Depends(get_record_store),
) -> RecordEnvelope:
    """Create a record.

    Args:
        body: Record fields.
        response: Outgoing response, receives the Location header.
        store: Record store (injected).

    Returns:
        RecordEnvelope with the stored record.

    Raises:
        ValidationError: 422 if any field is missing or invalid.
    """
    v = Validator()
    validate_record(v, body)
    v.raise_if_invalid()

    record = store.insert(
        RecordEntity(
            title=body.title,
            release_year=body.release_year,
            duration_minutes=body.duration_minutes,
            tags=list(body.tags),
        )
    )

    response.headers["Location"] = f"/v1/records/{record.id}"
    return RecordEnvelope(record=RecordDetail.from_entity(record))


@router.get("/records/{record_id}", response_model=RecordEnvelope)
def get_record(
    record_id: str,
    store: RecordStore = Depends(get_record_store),
) -> RecordEnvelope:
    """Get a record by id.

    Raises:
        RecordNotFound: 404 if the record does not exist.
    """
    record = store.get(_read_id(record_id))
    return RecordEnvelope(record=RecordDetail.from_entity(record))


@router.patch("/records/{record_id}", response_model=RecordEnvelope)
def update_record(
    record_id: str,
    body: RecordPatch,
    request: Request,
    store: RecordStore = Depends(get_record_store),
) -> RecordEnvelope:
    """Apply a partial update to a record.

    When the X-Expected-Version header is present it must equal the
    stored version, so a client can refuse to overwrite changes it has
    not seen.

    Raises:
        RecordNotFound: 404 if the record does not exist.
        EditConflict: 409 if the version moved underneath the caller.
        ValidationError: 422 if the patched record is invalid.
    """
    record = store.get(_read_id(record_id))

    expected = request.headers.get(EXPECTED_VERSION_HEADER)
    if expected is not None and expected.strip() != str(record.version):
        raise EditConflict(record.id, record.version)

    if body.title is not None:
        record.title = body.title
    if body.release_year is not None:
        record.release_year = body.release_year
    if body.duration_minutes is not None:
        record.duration_minutes = body.duration_minutes
    if body.tags is not None:
        record.tags = list(body.tags)

    updated = store.update(record)
    return RecordEnvelope(record=RecordDetail.from_entity(updated))


@router.delete("/records/{record_id}", response_model=MessageEnvelope)
def delete_record(
    record_id: str,
    store: RecordStore = Depends(get_record_store),
) -> MessageEnvelope:
    """Delete a record.

    Raises:
        RecordNotFound: 404 if the record does not exist.
    """
    store.delete(_read_id(record_id))
    return MessageEnvelope(message="record successfully deleted")
