"""Rules applied to every column of a schema."""

from __future__ import annotations

from typing import TYPE_CHECKING, NoReturn

from constrainer.diagnostics import DiagnosticInfo
from constrainer.errors import ColumnRuleError
from constrainer.rules.naming import (
    is_lowercase,
    is_python_keyword,
    is_singular,
    last_segment,
    singularize_last_segment,
    snake_case,
    snake_case_issue,
)
from constrainer.traits import ColumnRule, DatabaseLike

if TYPE_CHECKING:
    from constrainer.traits import ColumnLike


def qualified_name(column: ColumnLike) -> str:
    """Return the column name prefixed by its table name."""
    return f"{column.table.name}.{column.name}"


class LowercaseColumnName[DB: DatabaseLike](ColumnRule[DB]):
    """Column names contain no uppercase letters."""

    def validate_column(self, database: DB, column: ColumnLike) -> None:
        """Check the column name casing."""
        if is_lowercase(column.name):
            return

        table_name = column.table.name
        info = (
            DiagnosticInfo.builder()
            .rule(self.name)
            .object(qualified_name(column))
            .message(f"Column '{column.name}' in table '{table_name}' is not lowercase")
            .resolution(
                f"Rename column '{column.name}' in table '{table_name}' to be all "
                "lowercase",
            )
            .build()
        )
        raise ColumnRuleError(column, info)


class SnakeCaseColumnName[DB: DatabaseLike](ColumnRule[DB]):
    """Column names follow the snake_case convention."""

    def validate_column(self, database: DB, column: ColumnLike) -> None:
        """Check that the column name equals its snake_case form."""
        expected = snake_case(column.name)
        if expected == column.name:
            return

        table_name = column.table.name
        info = (
            DiagnosticInfo.builder()
            .rule(self.name)
            .object(qualified_name(column))
            .message(
                f"Column '{column.name}' in table '{table_name}' violates snake_case "
                f"naming convention: {snake_case_issue(column.name)}",
            )
            .resolution(f"Change '{column.name}' to '{expected}'")
            .build()
        )
        raise ColumnRuleError(column, info)


class SingularColumnName[DB: DatabaseLike](ColumnRule[DB]):
    """The last segment of a column name is singular."""

    def validate_column(self, database: DB, column: ColumnLike) -> None:
        """Check that singularizing the last segment leaves it unchanged."""
        segment = last_segment(column.name)
        if is_singular(segment):
            return

        table_name = column.table.name
        expected = singularize_last_segment(column.name)
        info = (
            DiagnosticInfo.builder()
            .rule(self.name)
            .object(qualified_name(column))
            .message(
                f"Column '{column.name}' in table '{table_name}' violates singular "
                f"naming convention: the last segment '{segment}' is plural, "
                "not singular",
            )
            .resolution(
                f"Change '{column.name}' to '{expected}' in table '{table_name}'",
            )
            .build()
        )
        raise ColumnRuleError(column, info)


class NoPythonKeywordColumnName[DB: DatabaseLike](ColumnRule[DB]):
    """Column names are not Python keywords."""

    def validate_column(self, database: DB, column: ColumnLike) -> None:
        """Check the column name against the Python keyword list."""
        if not is_python_keyword(column.name):
            return

        info = (
            DiagnosticInfo.builder()
            .rule(self.name)
            .object(qualified_name(column))
            .message(
                f"Column name '{column.name}' in table '{column.table.name}' is a "
                "Python keyword",
            )
            .resolution(
                f"Rename column '{column.name}' to something that is not a Python "
                "keyword",
            )
            .build()
        )
        raise ColumnRuleError(column, info)


class NonCompositePrimaryKeyNamedId[DB: DatabaseLike](ColumnRule[DB]):
    """A single column primary key is named `id`."""

    def validate_column(self, database: DB, column: ColumnLike) -> None:
        """Check the name of non composite primary key columns."""
        if not column.is_primary_key or column.name == "id":
            return
        if len(column.table.primary_key_columns) > 1:
            return

        table_name = column.table.name
        info = (
            DiagnosticInfo.builder()
            .rule(self.name)
            .object(qualified_name(column))
            .message(
                f"Column '{column.name}' in table '{table_name}' is a non-composite "
                "primary key but is not named 'id'",
            )
            .resolution(
                f"Rename the primary key column '{column.name}' to 'id' in table "
                f"'{table_name}'",
            )
            .build()
        )
        raise ColumnRuleError(column, info)


class NoSurrogatePrimaryKeyInExtension[DB: DatabaseLike](ColumnRule[DB]):
    """Primary keys of extension tables reuse the inherited key value.

    Generated columns and columns with a default value count as surrogate.
    """

    def validate_column(self, database: DB, column: ColumnLike) -> None:
        """Check primary key columns of extension tables."""
        if not column.is_primary_key or not column.table.is_extension:
            return

        match (column.is_generated, column.has_default):
            case (True, True):
                reason = "is generated and defines a DEFAULT value"
            case (True, False):
                reason = "is generated (e.g. IDENTITY/AUTOINCREMENT)"
            case (False, True):
                reason = "defines a DEFAULT value"
            case _:
                return

        name = qualified_name(column)
        info = (
            DiagnosticInfo.builder()
            .rule(self.name)
            .object(name)
            .message(
                f"Primary-key column '{name}' belongs to an extension table and "
                f"{reason}",
            )
            .resolution(
                f"Use a non-surrogate primary key for '{name}' by removing "
                "IDENTITY/AUTOINCREMENT/DEFAULT and reusing the inherited key value",
            )
            .build()
        )
        raise ColumnRuleError(column, info)


class TextualColumnRule[DB: DatabaseLike](ColumnRule[DB]):
    """Textual columns reject empty text and bound their length.

    Indexed columns are limited to `INDEXED_LIMIT` characters, other columns
    to `DOCUMENT_LIMIT`.
    """

    INDEXED_LIMIT = 255
    DOCUMENT_LIMIT = 8192

    def _fail(self, column: ColumnLike, message: str, resolution: str) -> NoReturn:
        info = (
            DiagnosticInfo.builder()
            .rule(self.name)
            .object(qualified_name(column))
            .message(message)
            .resolution(resolution)
            .build()
        )
        raise ColumnRuleError(column, info)

    def validate_column(self, database: DB, column: ColumnLike) -> None:
        """Check the not-empty and length constraints of textual columns."""
        if not column.is_textual:
            return

        constraints = column.check_constraints
        if not any(cc.is_not_empty_text_constraint(column) for cc in constraints):
            self._fail(
                column,
                f"Textual column '{column.name}' must have a check constraint "
                "verifying it is not empty.",
                "Add a check constraint verifying the column is not empty "
                "(e.g. `CHECK (col <> '')`).",
            )

        limits = [
            limit
            for cc in constraints
            if (limit := cc.upper_bounded_text_limit(column)) is not None
        ]
        if not limits:
            self._fail(
                column,
                f"Textual column '{column.name}' must have an upper bound length "
                "check constraint.",
                "Add a length check constraint (e.g. `CHECK (LENGTH(col) <= 255)`).",
            )

        limit = min(limits)
        indexed = column.is_primary_key or any(
            indexed_column.name == column.name
            for index in column.table.indices
            for indexed_column in index.columns
        )
        if indexed and limit > self.INDEXED_LIMIT:
            self._fail(
                column,
                f"Textual column '{column.name}' appears in an index but has length "
                f"limit {limit} which is greater than {self.INDEXED_LIMIT}.",
                f"Reduce the length limit to {self.INDEXED_LIMIT} or less, or remove "
                "the column from the index.",
            )
        if not indexed and limit > self.DOCUMENT_LIMIT:
            self._fail(
                column,
                f"Textual column '{column.name}' has length limit {limit} which is "
                f"greater than {self.DOCUMENT_LIMIT}. This column likely stores a "
                "document.",
                "If you intend to store large text documents, this might be better "
                "suited for a document store or Blob storage. Consider reducing the "
                "size if not necessary.",
            )


class PastTimeColumnRule[DB: DatabaseLike](ColumnRule[DB]):
    """Columns named `*_at` are constrained to be in the past."""

    FUTURE_OR_AMBIGUOUS = frozenset(
        ("expires_at", "due_at", "starts_at", "ends_at", "scheduled_at"),
    )

    def validate_column(self, database: DB, column: ColumnLike) -> None:
        """Look for a check comparing the column with the current time."""
        if not column.name.endswith("_at") or column.name in self.FUTURE_OR_AMBIGUOUS:
            return

        for check_constraint in column.check_constraints:
            expression = check_constraint.expression.lower()
            mentions_now = "now()" in expression or "current_timestamp" in expression
            if mentions_now and "<" in expression:
                return

        name = qualified_name(column)
        info = (
            DiagnosticInfo.builder()
            .rule(self.name)
            .object(name)
            .message(
                f"Time-related column '{name}' must have a check constraint "
                "ensuring it is in the past.",
            )
            .resolution(
                f"Add a check constraint like `CHECK ({column.name} <= NOW())`.",
            )
            .build()
        )
        raise ColumnRuleError(column, info)
