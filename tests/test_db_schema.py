"""Tests for database schema invariants.

Invariants:
1. Record ids are unique and version defaults to 1
2. A tag appears at most once per record
3. Index rows must reference an existing record
"""

import pytest
from sqlalchemy import insert
from sqlalchemy.exc import IntegrityError

from reelshelf.db.schema import Base, Record, RecordTag, RecordTitleToken


def _record(**overrides) -> Record:
    fields = {
        "title": "Akira",
        "release_year": 1988,
        "duration_minutes": 124,
        "tags": ["sci-fi"],
    }
    fields.update(overrides)
    return Record(**fields)


class TestSchemaCreation:
    """Test that schema can be created without errors."""

    def test_all_tables_created(self, engine):
        """All required tables should exist after creation."""
        assert {"records", "record_tags", "record_title_tokens"}.issubset(
            Base.metadata.tables.keys()
        )

    def test_index_tables_indexed(self):
        """Lookups by tag and by token are indexed."""
        assert RecordTag.__table__.c.tag.index
        assert RecordTitleToken.__table__.c.token.index


class TestRecordDefaults:
    """System-assigned fields."""

    def test_defaults_assigned_on_insert(self, session):
        record = _record()
        session.add(record)
        session.commit()

        assert record.id >= 1
        assert record.version == 1
        assert record.created_at is not None


class TestIndexRows:
    """Constraints on the tag and token tables."""

    def test_duplicate_tag_rejected(self, session):
        record = _record()
        session.add(record)
        session.commit()

        with pytest.raises(IntegrityError):
            session.execute(
                insert(RecordTag),
                [{"record_id": record.id, "tag": "x"}, {"record_id": record.id, "tag": "x"}],
            )

    def test_orphan_tag_rejected(self, session):
        """Foreign keys are enforced on SQLite."""
        session.add(RecordTag(record_id=999, tag="x"))
        with pytest.raises(IntegrityError):
            session.commit()
