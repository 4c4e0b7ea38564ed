"""Tests for column rules against declared SQLAlchemy schemas."""

import pytest
from sqlalchemy import (
    CheckConstraint,
    Column,
    DateTime,
    ForeignKey,
    Identity,
    Index,
    Integer,
    MetaData,
    String,
    Table,
    text,
)

from constrainer.errors import ColumnRuleError
from constrainer.rules import (
    LowercaseColumnName,
    NoPythonKeywordColumnName,
    NonCompositePrimaryKeyNamedId,
    NoSurrogatePrimaryKeyInExtension,
    PastTimeColumnRule,
    SingularColumnName,
    SnakeCaseColumnName,
    TextualColumnRule,
)
from constrainer.traits import ColumnRule
from sqlschema import Database, metadata_to_database


def lint(rule: ColumnRule[Database], *items: object) -> None:
    """Run a single rule against a `users` table holding the given items."""
    metadata = MetaData()
    Table("users", metadata, *items)
    rule.into_constrainer().validate_schema(metadata_to_database(metadata))


def lint_extension(rule: ColumnRule[Database], *items: object) -> None:
    """Run a single rule against `admins`, an extension of `users`."""
    metadata = MetaData()
    Table("users", metadata, Column("id", Integer, primary_key=True))
    Table("admins", metadata, *items)
    rule.into_constrainer().validate_schema(metadata_to_database(metadata))


def test_lowercase_column_name() -> None:
    """Test that uppercase letters in column names are reported."""
    with pytest.raises(ColumnRuleError) as excinfo:
        lint(LowercaseColumnName(), Column("Email", String))

    assert excinfo.value.column.name == "Email"
    assert excinfo.value.info.object == "users.Email"
    assert excinfo.value.info.rule == "LowercaseColumnName"


def test_snake_case_column_name() -> None:
    """Test that names differing from their snake_case form are reported."""
    with pytest.raises(ColumnRuleError) as excinfo:
        lint(SnakeCaseColumnName(), Column("first__name", String))

    assert "contains double underscores" in excinfo.value.info.message
    assert excinfo.value.info.resolution == "Change 'first__name' to 'first_name'"


@pytest.mark.parametrize(
    ("name", "expected"),
    [("tags", "tag"), ("user_ids", "user_id"), ("categories", "category")],
)
def test_singular_column_name(name: str, expected: str) -> None:
    """Test that plural column names are reported with their singular form."""
    with pytest.raises(ColumnRuleError) as excinfo:
        lint(SingularColumnName(), Column(name, String))

    assert f"to '{expected}'" in (excinfo.value.info.resolution or "")


@pytest.mark.parametrize("name", ["id", "status", "address", "created_at", "news"])
def test_singular_column_name_passes(name: str) -> None:
    """Test that singular and uncountable column names pass."""
    lint(SingularColumnName(), Column(name, String))


def test_no_python_keyword_column_name() -> None:
    """Test that columns named after Python keywords are reported."""
    with pytest.raises(ColumnRuleError, match="is a Python keyword"):
        lint(NoPythonKeywordColumnName(), Column("from", String))


def test_soft_keywords_allowed() -> None:
    """Test that soft keywords such as `type` remain valid column names."""
    lint(NoPythonKeywordColumnName(), Column("type", String), Column("match", String))


def test_non_composite_primary_key_named_id() -> None:
    """Test that single column primary keys must be named `id`."""
    with pytest.raises(ColumnRuleError) as excinfo:
        lint(
            NonCompositePrimaryKeyNamedId(),
            Column("user_key", Integer, primary_key=True),
        )

    assert excinfo.value.info.object == "users.user_key"


def test_composite_primary_key_keeps_names() -> None:
    """Test that composite primary key columns keep descriptive names."""
    lint(
        NonCompositePrimaryKeyNamedId(),
        Column("group_id", Integer, primary_key=True),
        Column("user_id", Integer, primary_key=True),
    )


@pytest.mark.parametrize(
    ("extra", "reason"),
    [
        ((Identity(),), "is generated"),
        ((), "defines a DEFAULT value"),
    ],
)
def test_surrogate_primary_key_in_extension(
    extra: tuple[object, ...],
    reason: str,
) -> None:
    """Test that extension primary keys may not be generated or defaulted."""
    server_default = None if extra else text("0")
    with pytest.raises(ColumnRuleError) as excinfo:
        lint_extension(
            NoSurrogatePrimaryKeyInExtension(),
            Column(
                "id",
                Integer,
                ForeignKey("users.id"),
                *extra,
                primary_key=True,
                server_default=server_default,
            ),
        )

    assert reason in excinfo.value.info.message
    assert excinfo.value.info.object == "admins.id"


def test_inherited_primary_key_in_extension_passes() -> None:
    """Test that extension primary keys reusing the parent key pass."""
    lint_extension(
        NoSurrogatePrimaryKeyInExtension(),
        Column("id", Integer, ForeignKey("users.id"), primary_key=True),
    )


def test_generated_primary_key_outside_extension_passes() -> None:
    """Test that ordinary tables may generate their primary key."""
    lint(
        NoSurrogatePrimaryKeyInExtension(),
        Column("id", Integer, Identity(), primary_key=True),
    )


def test_textual_column_requires_not_empty_check() -> None:
    """Test that text columns without a not-empty check are reported."""
    with pytest.raises(ColumnRuleError, match="verifying it is not empty"):
        lint(TextualColumnRule(), Column("name", String))


def test_textual_column_requires_length_bound() -> None:
    """Test that text columns without an upper bound are reported."""
    with pytest.raises(ColumnRuleError, match="upper bound length"):
        lint(TextualColumnRule(), Column("name", String), CheckConstraint("name <> ''"))


def test_textual_column_in_index_limited() -> None:
    """Test that indexed text columns are limited to the indexed limit."""
    with pytest.raises(ColumnRuleError, match="appears in an index"):
        lint(
            TextualColumnRule(),
            Column("name", String),
            CheckConstraint("name <> '' AND length(name) <= 300"),
            Index("ix_users_name", "name"),
        )


def test_textual_primary_key_limited() -> None:
    """Test that text primary keys count as indexed."""
    with pytest.raises(ColumnRuleError, match="greater than 255"):
        lint(
            TextualColumnRule(),
            Column("code", String, primary_key=True),
            CheckConstraint("length(code) BETWEEN 1 AND 256"),
        )


def test_textual_column_document_limit() -> None:
    """Test that unindexed text columns are limited to the document limit."""
    with pytest.raises(ColumnRuleError, match="likely stores a document"):
        lint(
            TextualColumnRule(),
            Column("body", String),
            CheckConstraint("length(body) > 0"),
            CheckConstraint("length(body) < 10000"),
        )


def test_textual_column_smallest_bound_wins() -> None:
    """Test that the tightest of several bounds is used."""
    lint(
        TextualColumnRule(),
        Column("body", String),
        CheckConstraint("length(body) > 0"),
        CheckConstraint("length(body) <= 20000"),
        CheckConstraint("length(body) <= 8192"),
    )


@pytest.mark.parametrize(
    "checks",
    [
        ("name <> ''", "length(name) <= 255"),
        ("LENGTH(TRIM(name)) > 0 AND LENGTH(name) <= 100",),
        ("length(name) BETWEEN 1 AND 255",),
        ("name != '' AND 255 >= length(name)",),
    ],
)
def test_textual_column_passes(checks: tuple[str, ...]) -> None:
    """Test the shapes of not-empty and length checks that are recognized."""
    lint(
        TextualColumnRule(),
        Column("name", String),
        Index("ix_users_name", "name"),
        *(CheckConstraint(check) for check in checks),
    )


def test_textual_column_level_checks() -> None:
    """Test that checks declared on the column itself are taken into account."""
    lint(
        TextualColumnRule(),
        Column(
            "name",
            String,
            CheckConstraint("name <> ''"),
            CheckConstraint("length(name) <= 64"),
        ),
    )


def test_disjunction_is_not_a_bound() -> None:
    """Test that an OR may let empty or unbounded text through."""
    with pytest.raises(ColumnRuleError, match="verifying it is not empty"):
        lint(
            TextualColumnRule(),
            Column("name", String),
            CheckConstraint("name <> '' OR name IS NULL"),
        )


def test_non_textual_columns_ignored() -> None:
    """Test that numeric columns are not subject to text checks."""
    lint(TextualColumnRule(), Column("age", Integer))


def test_past_time_column() -> None:
    """Test that `*_at` columns need a check against the current time."""
    with pytest.raises(ColumnRuleError) as excinfo:
        lint(PastTimeColumnRule(), Column("created_at", DateTime))

    assert excinfo.value.info.object == "users.created_at"


@pytest.mark.parametrize(
    "items",
    [
        (
            Column("created_at", DateTime),
            CheckConstraint("created_at <= CURRENT_TIMESTAMP"),
        ),
        (Column("deleted_at", DateTime, CheckConstraint("deleted_at < now()")),),
        (Column("expires_at", DateTime),),
        (Column("created", DateTime),),
    ],
)
def test_past_time_column_passes(items: tuple[object, ...]) -> None:
    """Test past constrained, future and unrelated time columns."""
    lint(PastTimeColumnRule(), *items)
