"""Tests for foreign key rules against declared SQLAlchemy schemas."""

import pytest
from sqlalchemy import (
    CheckConstraint,
    Column,
    ForeignKey,
    ForeignKeyConstraint,
    Identity,
    Integer,
    MetaData,
    String,
    Table,
    UniqueConstraint,
)

from constrainer import DefaultConstrainer
from constrainer.errors import ForeignKeyRuleError, UnapplicableRuleError
from constrainer.rules import (
    CompatibleForeignKey,
    ExtensionForeignKeyOnDeleteCascade,
    LowercaseForeignKeyName,
    NoPythonKeywordForeignKeyName,
    PrimaryKeyReferenceEndsWithId,
    ReferencesUniqueIndex,
)
from constrainer.traits import ForeignKeyRule
from sqlschema import Database, metadata_to_database


def lint(rule: ForeignKeyRule[Database], *items: object) -> None:
    """Run a single rule against a `posts` table referencing `users`."""
    metadata = MetaData()
    Table(
        "users",
        metadata,
        Column("id", Integer, primary_key=True),
        Column("email", String),
    )
    Table("posts", metadata, Column("id", Integer, primary_key=True), *items)
    rule.into_constrainer().validate_schema(metadata_to_database(metadata))


def test_incompatible_foreign_key_types() -> None:
    """Test that paired columns of different types are reported."""
    with pytest.raises(ForeignKeyRuleError) as excinfo:
        lint(CompatibleForeignKey(), Column("user_id", String, ForeignKey("users.id")))

    assert "data type 'text'" in excinfo.value.info.message
    assert excinfo.value.info.object == "posts(user_id)"
    assert excinfo.value.info.resolution == (
        "Change the data type of `posts.user_id` to 'integer' to match the "
        "referenced column"
    )


def test_both_generated_foreign_key_columns() -> None:
    """Test that a generated column may not reference a generated column."""
    metadata = MetaData()
    Table("users", metadata, Column("id", Integer, Identity(), primary_key=True))
    Table(
        "profiles",
        metadata,
        Column("id", Integer, Identity(), ForeignKey("users.id"), primary_key=True),
    )

    with pytest.raises(ForeignKeyRuleError, match="are both generative"):
        CompatibleForeignKey().into_constrainer().validate_schema(
            metadata_to_database(metadata),
        )


def test_compatible_foreign_key_passes() -> None:
    """Test that matching types pass."""
    lint(CompatibleForeignKey(), Column("user_id", Integer, ForeignKey("users.id")))


def test_lowercase_foreign_key_name() -> None:
    """Test that named foreign keys with uppercase letters are reported."""
    with pytest.raises(ForeignKeyRuleError) as excinfo:
        lint(
            LowercaseForeignKeyName(),
            Column("user_id", Integer),
            ForeignKeyConstraint(["user_id"], ["users.id"], name="FK_Posts_Users"),
        )

    assert excinfo.value.info.object == "FK_Posts_Users"
    assert excinfo.value.info.resolution == (
        "Rename foreign key 'FK_Posts_Users' to 'fk_posts_users'"
    )


def test_unnamed_foreign_key_has_no_name_to_check() -> None:
    """Test that anonymous foreign keys are skipped by naming rules."""
    lint(LowercaseForeignKeyName(), Column("user_id", Integer, ForeignKey("users.id")))


def test_no_python_keyword_foreign_key_name() -> None:
    """Test that foreign keys named after Python keywords are reported."""
    with pytest.raises(ForeignKeyRuleError, match="is a Python keyword"):
        lint(
            NoPythonKeywordForeignKeyName(),
            Column("user_id", Integer),
            ForeignKeyConstraint(["user_id"], ["users.id"], name="from"),
        )


def test_reference_without_unique_index() -> None:
    """Test that referencing columns without a unique index is reported."""
    with pytest.raises(ForeignKeyRuleError) as excinfo:
        lint(
            ReferencesUniqueIndex(),
            Column("author_email", String, ForeignKey("users.email")),
        )

    assert "(email) in table 'users'" in excinfo.value.info.message


def test_reference_with_unique_constraint_passes() -> None:
    """Test that a unique constraint covers the referenced columns."""
    metadata = MetaData()
    Table(
        "users",
        metadata,
        Column("id", Integer, primary_key=True),
        Column("email", String),
        UniqueConstraint("email"),
    )
    Table(
        "posts",
        metadata,
        Column("id", Integer, primary_key=True),
        Column("author_email", String, ForeignKey("users.email")),
    )

    ReferencesUniqueIndex().into_constrainer().validate_schema(
        metadata_to_database(metadata),
    )


def test_reference_to_primary_key_passes() -> None:
    """Test that the primary key covers the referenced columns."""
    lint(ReferencesUniqueIndex(), Column("user_id", Integer, ForeignKey("users.id")))


def test_primary_key_reference_ends_with_id() -> None:
    """Test that columns referencing a primary key are named `*_id`."""
    with pytest.raises(ForeignKeyRuleError) as excinfo:
        lint(
            PrimaryKeyReferenceEndsWithId(),
            Column("author", Integer, ForeignKey("users.id")),
        )

    assert excinfo.value.info.object == "posts(author)"
    assert excinfo.value.info.resolution == (
        "Rename column 'author' in table 'posts' to 'author_id'"
    )


def test_reference_to_other_columns_keeps_name() -> None:
    """Test that references to non key columns are not renamed."""
    lint(
        PrimaryKeyReferenceEndsWithId(),
        Column("author_email", String, ForeignKey("users.email")),
    )


def test_extension_primary_key_keeps_name() -> None:
    """Test that extension tables reuse the name of the inherited key."""
    metadata = MetaData()
    Table("users", metadata, Column("id", Integer, primary_key=True))
    Table(
        "admins",
        metadata,
        Column("id", Integer, ForeignKey("users.id"), primary_key=True),
    )

    PrimaryKeyReferenceEndsWithId().into_constrainer().validate_schema(
        metadata_to_database(metadata),
    )


def extension_schema(ondelete: str | None) -> Database:
    """Create a schema where admins extend users."""
    metadata = MetaData()
    Table("users", metadata, Column("id", Integer, primary_key=True))
    Table(
        "admins",
        metadata,
        Column(
            "id",
            Integer,
            ForeignKey("users.id", ondelete=ondelete),
            primary_key=True,
        ),
    )
    return metadata_to_database(metadata)


@pytest.mark.parametrize("ondelete", [None, "SET NULL", "RESTRICT"])
def test_extension_foreign_key_on_delete_cascade(ondelete: str | None) -> None:
    """Test that extension foreign keys must cascade on delete."""
    constrainer = ExtensionForeignKeyOnDeleteCascade().into_constrainer()

    with pytest.raises(ForeignKeyRuleError) as excinfo:
        constrainer.validate_schema(extension_schema(ondelete))

    assert excinfo.value.info.message == (
        "Foreign key making table 'admins' an extension of 'users' does not "
        "cascade on delete"
    )


@pytest.mark.parametrize("ondelete", ["CASCADE", "cascade"])
def test_extension_foreign_key_cascades(ondelete: str) -> None:
    """Test that the delete action is compared case insensitively."""
    constrainer = ExtensionForeignKeyOnDeleteCascade().into_constrainer()

    constrainer.validate_schema(extension_schema(ondelete))


def test_plain_foreign_key_need_not_cascade() -> None:
    """Test that ordinary references may keep the default delete action."""
    lint(
        ExtensionForeignKeyOnDeleteCascade(),
        Column("user_id", Integer, ForeignKey("users.id")),
    )


@pytest.mark.parametrize(
    "rule",
    [
        CompatibleForeignKey(),
        ReferencesUniqueIndex(),
        PrimaryKeyReferenceEndsWithId(),
        ExtensionForeignKeyOnDeleteCascade(),
    ],
    ids=lambda rule: rule.name,
)
def test_unknown_target_is_unapplicable(rule: ForeignKeyRule[Database]) -> None:
    """Test that rules needing the target refuse to judge unknown tables."""
    with pytest.raises(UnapplicableRuleError, match="ghosts"):
        lint(rule, Column("ghost", Integer, ForeignKey("ghosts.id")))


def test_clean_schema_passes_default_rules() -> None:
    """Test that a carefully designed schema satisfies every default rule."""
    metadata = MetaData()
    Table(
        "users",
        metadata,
        Column("id", Integer, primary_key=True),
        Column("email", String),
        CheckConstraint("email <> ''"),
        CheckConstraint("length(email) <= 255"),
        UniqueConstraint("email"),
    )
    Table(
        "posts",
        metadata,
        Column("id", Integer, primary_key=True),
        Column("user_id", Integer, ForeignKey("users.id")),
        Column("title", String),
        CheckConstraint("title <> '' AND length(title) <= 200"),
    )

    DefaultConstrainer().validate_schema(metadata_to_database(metadata))
