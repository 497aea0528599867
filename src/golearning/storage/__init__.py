"""
Storage Module - Relational persistence for modules and lessons.
================================================================

- models: SQLAlchemy tables
- database: Engine creation and schema setup
- repository: ContentStore protocol and its SQLAlchemy implementation
"""

from golearning.storage.database import create_db_engine, init_db
from golearning.storage.repository import (
    ContentRepository,
    ContentStore,
    ModuleSummary,
    StoredLesson,
)

__all__ = [
    "create_db_engine",
    "init_db",
    "ContentRepository",
    "ContentStore",
    "ModuleSummary",
    "StoredLesson",
]
