"""Main module for building lintable databases from SQLAlchemy metadata."""

from logging import getLogger
from pathlib import Path
from warnings import catch_warnings, filterwarnings

from sqlalchemy import Engine, Enum, Inspector, MetaData, Table, create_engine, event
from sqlalchemy.engine.interfaces import ReflectedColumn
from sqlalchemy.exc import SAWarning
from sqlalchemy.pool import StaticPool

from sqlschema.check_detection import enum_values
from sqlschema.model import Database

logger = getLogger(__name__)


def detect_enum(inspector: Inspector, table: Table, column: ReflectedColumn) -> None:
    """Reflect columns restricted to a list of string literals as enums."""
    checks = inspector.get_check_constraints(table.name)
    members = (enum_values(check["sqltext"], column["name"]) for check in checks)
    if values := next((found for found in members if found), None):
        column["type"] = Enum(*values)


def read_only_sqlite(sqlite_location: Path) -> Engine:
    """Create a read-only SQLAlchemy engine for SQLite database."""
    connection_string = f"sqlite:///{sqlite_location}?mode=ro"
    return create_engine(connection_string, connect_args={"uri": True})


def reflect_metadata(sqlite_database: Engine) -> MetaData:
    """Reflect database schema from SQLite database using metadata reflection."""
    metadata = MetaData()
    event.listen(metadata, "column_reflect", detect_enum)
    with catch_warnings():
        filterwarnings("ignore", category=SAWarning)
        metadata.reflect(bind=sqlite_database, resolve_fks=False)
    logger.debug("Reflected %d tables", len(metadata.tables))
    return metadata


def metadata_to_database(metadata: MetaData, name: str = "main") -> Database:
    """Wrap declared or reflected metadata into a lintable database."""
    return Database(metadata, name)


def sqlite_to_database(sqlite_database: Engine) -> Database:
    """Reflect a SQLite database into a lintable database."""
    metadata = reflect_metadata(sqlite_database)
    return Database(metadata, sqlite_database.url.database or "unknown")


def ddl_to_database(*statements: str) -> Database:
    """Run DDL statements in an in-memory SQLite database and reflect it.

    Each statement is executed on its own, so a statement cannot hold several
    `CREATE` commands.
    """
    engine = create_engine("sqlite://", poolclass=StaticPool)
    with engine.begin() as connection:
        for statement in statements:
            connection.exec_driver_sql(statement)
    return Database(reflect_metadata(engine), "memory")
