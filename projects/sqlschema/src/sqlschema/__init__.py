"""SQLAlchemy backed schema model for the constrainer rule engine."""

from sqlschema.main import (
    ddl_to_database,
    detect_enum,
    metadata_to_database,
    read_only_sqlite,
    reflect_metadata,
    sqlite_to_database,
)
from sqlschema.model import (
    CheckConstraint,
    Column,
    Database,
    ForeignKey,
    Index,
    Table,
)
from sqlschema.type_conversion import NormalizedType, normalize_type

__all__ = [
    "CheckConstraint",
    "Column",
    "Database",
    "ForeignKey",
    "Index",
    "NormalizedType",
    "Table",
    "ddl_to_database",
    "detect_enum",
    "metadata_to_database",
    "normalize_type",
    "read_only_sqlite",
    "reflect_metadata",
    "sqlite_to_database",
]
