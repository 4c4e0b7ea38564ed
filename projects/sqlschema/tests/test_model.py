"""Tests for the schema entities over declared and reflected metadata."""

from pathlib import Path
from sqlite3 import connect

import pytest
from sqlalchemy import (
    CheckConstraint,
    Column,
    Computed,
    ForeignKey,
    Identity,
    Index,
    Integer,
    MetaData,
    String,
    Table,
    text,
)

from constrainer import DefaultConstrainer, TableRuleError
from constrainer.rules import UniqueCheckRule
from sqlschema import (
    Database,
    ddl_to_database,
    metadata_to_database,
    read_only_sqlite,
    sqlite_to_database,
)

USERS = """
CREATE TABLE users (
    id INTEGER PRIMARY KEY,
    email TEXT NOT NULL,
    status TEXT NOT NULL,
    CHECK (email <> ''),
    CHECK (length(email) <= 255),
    CHECK (status IN ('active', 'inactive')),
    UNIQUE (email)
)
"""

POSTS = """
CREATE TABLE posts (
    id INTEGER PRIMARY KEY,
    user_id INTEGER NOT NULL,
    title TEXT NOT NULL,
    CHECK (title <> '' AND length(title) <= 200),
    FOREIGN KEY (user_id) REFERENCES users (id) ON DELETE CASCADE
)
"""


@pytest.fixture(name="database")
def create_database() -> Database:
    """Reflect the users and posts schema from an in-memory database."""
    return ddl_to_database(USERS, POSTS)


def test_reflected_tables(database: Database) -> None:
    """Test that every table is reflected."""
    assert database.name == "memory"
    assert {table.name for table in database.tables} == {"users", "posts"}
    assert database.table("users") is database.table("users")


def test_unknown_table(database: Database) -> None:
    """Test that looking up an unknown table raises LookupError."""
    with pytest.raises(LookupError, match="'ghosts' does not exist"):
        database.table("ghosts")


def test_unknown_column(database: Database) -> None:
    """Test that looking up an unknown column raises LookupError."""
    with pytest.raises(LookupError, match="'name' does not exist in table 'users'"):
        database.table("users").column("name")


def test_reflected_columns(database: Database) -> None:
    """Test column order, types and primary key membership."""
    users = database.table("users")

    assert [column.name for column in users.columns] == ["id", "email", "status"]
    assert [column.name for column in users.primary_key_columns] == ["id"]
    assert users.column("id").normalized_data_type == "integer"
    assert users.column("email").normalized_data_type == "text"
    assert users.column("email").is_textual
    assert users.column("status").normalized_data_type == "enum"
    assert not users.column("status").is_textual


def test_reflected_check_constraints(database: Database) -> None:
    """Test that check constraints are attributed to the columns they involve."""
    users = database.table("users")

    assert {check.expression for check in users.check_constraints} == {
        "email <> ''",
        "length(email) <= 255",
        "status IN ('active', 'inactive')",
    }
    email_checks = users.column("email").check_constraints
    assert {check.expression for check in email_checks} == {
        "email <> ''",
        "length(email) <= 255",
    }
    email = users.column("email")
    assert any(check.is_not_empty_text_constraint(email) for check in email_checks)
    limits = {check.upper_bounded_text_limit(email) for check in email_checks}
    assert limits == {None, 255}


def test_reflected_unique_constraint(database: Database) -> None:
    """Test that unique constraints count as unique indices."""
    unique_indices = database.table("users").unique_indices

    assert [index.expression for index in unique_indices] == ["email"]
    assert all(index.is_unique for index in unique_indices)


def test_reflected_foreign_key(database: Database) -> None:
    """Test the host and target of a reflected foreign key."""
    posts = database.table("posts")
    (foreign_key,) = posts.foreign_keys

    assert foreign_key.name is None
    assert foreign_key.host_table is posts
    assert [column.name for column in foreign_key.host_columns] == ["user_id"]
    assert foreign_key.referenced_table.name == "users"
    assert [column.name for column in foreign_key.referenced_columns] == ["id"]
    assert foreign_key.on_delete == "CASCADE"
    assert not foreign_key.is_extension
    assert not posts.is_extension


def test_reflected_schema_passes_default_rules(database: Database) -> None:
    """Test that the reflected schema satisfies every default rule."""
    DefaultConstrainer().validate_schema(database)


def test_duplicate_reflected_check_constraints() -> None:
    """Test that a repeated check constraint is reported on its table."""
    database = ddl_to_database(
        """
        CREATE TABLE t (
            id INT,
            CHECK (id > 0),
            CHECK (id > 0)
        )
        """,
    )

    with pytest.raises(TableRuleError) as excinfo:
        UniqueCheckRule().into_constrainer().validate_schema(database)

    assert excinfo.value.table.name == "t"
    assert excinfo.value.info.message == (
        "Table 't' has non-unique check constraints: CHECK (id > 0)"
    )


def test_single_reflected_check_constraint() -> None:
    """Test that a single check constraint passes."""
    database = ddl_to_database(
        """
        CREATE TABLE t (
            id INT,
            CHECK (id > 0)
        )
        """,
    )

    UniqueCheckRule().into_constrainer().validate_schema(database)


def test_extension_detection() -> None:
    """Test that a primary key referencing another primary key is an extension."""
    metadata = MetaData()
    Table("users", metadata, Column("id", Integer, primary_key=True))
    Table(
        "admins",
        metadata,
        Column("id", Integer, ForeignKey("users.id"), primary_key=True),
        Column("level", Integer),
    )
    database = metadata_to_database(metadata)
    admins = database.table("admins")

    assert admins.is_extension
    assert [table.name for table in admins.extended_tables] == ["users"]
    assert admins.foreign_keys[0].is_extension
    assert not database.table("users").is_extension


def test_unresolved_foreign_key() -> None:
    """Test that foreign keys to unknown tables raise LookupError when resolved."""
    metadata = MetaData()
    Table(
        "admins",
        metadata,
        Column("id", Integer, ForeignKey("ghosts.id"), primary_key=True),
    )
    admins = metadata_to_database(metadata).table("admins")
    (foreign_key,) = admins.foreign_keys

    assert [column.name for column in foreign_key.host_columns] == ["id"]
    with pytest.raises(LookupError, match="ghosts"):
        _ = foreign_key.referenced_table
    assert not admins.is_extension


@pytest.mark.parametrize(
    ("column", "generated", "default"),
    [
        (Column("value", Integer), False, False),
        (Column("value", Integer, Identity()), True, False),
        (Column("value", Integer, Computed("id + 1")), True, False),
        (Column("value", Integer, server_default=text("0")), False, True),
        (Column("value", Integer, default=0), False, True),
    ],
)
def test_generated_and_default_columns(
    column: Column[int],
    generated: bool,  # noqa: FBT001
    default: bool,  # noqa: FBT001
) -> None:
    """Test detection of generated columns and of columns with a default."""
    metadata = MetaData()
    Table("items", metadata, Column("id", Integer, primary_key=True), column)
    value = metadata_to_database(metadata).table("items").column("value")

    assert value.is_generated is generated
    assert value.has_default is default


def test_column_level_check_constraint() -> None:
    """Test that checks declared on a column are reported once."""
    metadata = MetaData()
    Table(
        "users",
        metadata,
        Column("id", Integer, primary_key=True),
        Column("name", String, CheckConstraint("name <> ''")),
        Column("nickname", String),
    )
    users = metadata_to_database(metadata).table("users")

    assert [check.expression for check in users.check_constraints] == ["name <> ''"]
    assert len(users.column("name").check_constraints) == 1
    assert users.column("nickname").check_constraints == ()


def test_declared_index() -> None:
    """Test that plain indices are listed but not unique."""
    metadata = MetaData()
    Table(
        "users",
        metadata,
        Column("id", Integer, primary_key=True),
        Column("name", String),
        Index("ix_users_name", "name"),
    )
    (index,) = metadata_to_database(metadata).table("users").indices

    assert index.name == "ix_users_name"
    assert index.expression == "name"
    assert not index.is_unique


def test_sqlite_file(tmp_path: Path) -> None:
    """Test reflecting a database file through a read-only engine."""
    sqlite_location = tmp_path / "schema.sqlite"
    connection = connect(sqlite_location)
    connection.execute(USERS)
    connection.execute(POSTS)
    connection.commit()
    connection.close()

    engine = read_only_sqlite(sqlite_location)
    try:
        database = sqlite_to_database(engine)
    finally:
        engine.dispose()

    assert database.name == str(sqlite_location)
    assert {table.name for table in database.tables} == {"users", "posts"}
