"""Record store: transactional CRUD and search over catalog records.

RecordStore is the narrow interface callers depend on; SqlRecordStore
implements it on SQLAlchemy.
"""

from reelshelf.store.base import RecordStore
from reelshelf.store.sql import DEFAULT_TIMEOUT, SqlRecordStore

__all__ = [
    "DEFAULT_TIMEOUT",
    "RecordStore",
    "SqlRecordStore",
]
