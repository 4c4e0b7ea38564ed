"""Rules applied to every table of a schema."""

from __future__ import annotations

from typing import TYPE_CHECKING

from constrainer.diagnostics import DiagnosticInfo
from constrainer.duplicates import (
    describe_foreign_key,
    first_adjacent_duplicate,
    first_duplicate_foreign_keys,
)
from constrainer.errors import TableRuleError, UnapplicableRuleError
from constrainer.rules.naming import (
    is_lowercase,
    is_plural,
    is_python_keyword,
    last_segment,
    pluralize_last_segment,
    snake_case,
    snake_case_issue,
)
from constrainer.traits import DatabaseLike, TableRule

if TYPE_CHECKING:
    from collections.abc import Iterator

    from constrainer.traits import TableLike


def ancestors(table: TableLike) -> Iterator[TableLike]:
    """Yield every table extended by table, directly or transitively, once."""
    seen = {table.name}
    pending = list(table.extended_tables)
    while pending:
        parent = pending.pop(0)
        if parent.name in seen:
            continue
        seen.add(parent.name)
        yield parent
        pending.extend(parent.extended_tables)


def _plural(count: int, singular: str, plural: str) -> str:
    return singular if count == 1 else plural


class HasPrimaryKey[DB: DatabaseLike](TableRule[DB]):
    """Every table declares a primary key."""

    def validate_table(self, database: DB, table: TableLike) -> None:
        """Check that the table has at least one primary key column."""
        if table.primary_key_columns:
            return

        info = (
            DiagnosticInfo.builder()
            .rule(self.name)
            .object(table.name)
            .message(f"Table '{table.name}' does not have a primary key")
            .resolution(f"Add a primary key to table '{table.name}'")
            .build()
        )
        raise TableRuleError(table, info)


class LowercaseTableName[DB: DatabaseLike](TableRule[DB]):
    """Table names contain no uppercase letters."""

    def validate_table(self, database: DB, table: TableLike) -> None:
        """Check the table name casing."""
        if is_lowercase(table.name):
            return

        info = (
            DiagnosticInfo.builder()
            .rule(self.name)
            .object(table.name)
            .message(f"Table '{table.name}' is not lowercase")
            .resolution(f"Rename table '{table.name}' to '{table.name.lower()}'")
            .build()
        )
        raise TableRuleError(table, info)


class SnakeCaseTableName[DB: DatabaseLike](TableRule[DB]):
    """Table names follow the snake_case convention."""

    def validate_table(self, database: DB, table: TableLike) -> None:
        """Check that the table name equals its snake_case form."""
        expected = snake_case(table.name)
        if expected == table.name:
            return

        info = (
            DiagnosticInfo.builder()
            .rule(self.name)
            .object(table.name)
            .message(
                f"Table '{table.name}' violates snake_case naming convention: "
                f"{snake_case_issue(table.name)}",
            )
            .resolution(
                f"Change '{table.name}' to '{expected}' "
                "(use lowercase letters and single underscores only)",
            )
            .build()
        )
        raise TableRuleError(table, info)


class PluralTableName[DB: DatabaseLike](TableRule[DB]):
    """The last segment of a table name is plural."""

    def validate_table(self, database: DB, table: TableLike) -> None:
        """Check that pluralizing the last segment leaves it unchanged."""
        segment = last_segment(table.name)
        if is_plural(segment):
            return

        expected = pluralize_last_segment(table.name)
        info = (
            DiagnosticInfo.builder()
            .rule(self.name)
            .object(table.name)
            .message(
                f"Table '{table.name}' violates plural naming convention: "
                f"the last segment '{segment}' is not plural",
            )
            .resolution(f"Change '{table.name}' to '{expected}'")
            .build()
        )
        raise TableRuleError(table, info)


class NoPythonKeywordTableName[DB: DatabaseLike](TableRule[DB]):
    """Table names are not Python keywords."""

    def validate_table(self, database: DB, table: TableLike) -> None:
        """Check the table name against the Python keyword list."""
        if not is_python_keyword(table.name):
            return

        info = (
            DiagnosticInfo.builder()
            .rule(self.name)
            .object(table.name)
            .message(f"Table name '{table.name}' is a Python keyword")
            .resolution(
                f"Rename table '{table.name}' to something that is not a Python "
                "keyword",
            )
            .build()
        )
        raise TableRuleError(table, info)


class NoTautologicalCheckRule[DB: DatabaseLike](TableRule[DB]):
    """Check constraints are not always true."""

    def validate_table(self, database: DB, table: TableLike) -> None:
        """Report the first tautological check constraint."""
        for check_constraint in table.check_constraints:
            if not check_constraint.is_tautology:
                continue

            expression = check_constraint.expression
            info = (
                DiagnosticInfo.builder()
                .rule(self.name)
                .object(table.name)
                .message(
                    f"Table '{table.name}' has a tautological check constraint: "
                    f"CHECK ({expression})",
                )
                .resolution(
                    f"Remove the tautological check constraint 'CHECK ({expression})' "
                    f"from table '{table.name}'",
                )
                .build()
            )
            raise TableRuleError(table, info)


class NoNegationCheckRule[DB: DatabaseLike](TableRule[DB]):
    """Check constraints are not always false."""

    def validate_table(self, database: DB, table: TableLike) -> None:
        """Report the first check constraint no row can satisfy."""
        for check_constraint in table.check_constraints:
            if not check_constraint.is_negation:
                continue

            info = (
                DiagnosticInfo.builder()
                .rule(self.name)
                .object(table.name)
                .message(
                    f"Table '{table.name}' has a negation check constraint: "
                    f"CHECK ({check_constraint.expression})",
                )
                .resolution("Remove the negation check constraint.")
                .build()
            )
            raise TableRuleError(table, info)


class NoForbiddenColumnInExtension[DB: DatabaseLike](TableRule[DB]):
    """Extension tables do not define a column with the forbidden name."""

    def __init__(self, forbidden_name: str = "extension") -> None:
        """Initialize with the forbidden column name, compared case-insensitively."""
        self.forbidden_name = forbidden_name

    def validate_table(self, database: DB, table: TableLike) -> None:
        """Check the columns of extension tables."""
        if not table.is_extension:
            return

        forbidden = self.forbidden_name.lower()
        if not any(column.name.lower() == forbidden for column in table.columns):
            return

        extended = [parent.name for parent in table.extended_tables]
        info = (
            DiagnosticInfo.builder()
            .rule(self.name)
            .object(table.name)
            .message(
                f"Table '{table.name}' extends "
                f"{_plural(len(extended), 'table', 'tables')} ({', '.join(extended)}) "
                f"but has a forbidden column named '{self.forbidden_name}'",
            )
            .resolution(
                f"Rename or remove the '{self.forbidden_name}' column from table "
                f"'{table.name}' (extension tables should not define this column)",
            )
            .build()
        )
        raise TableRuleError(table, info)


class NonRedundantExtensionDag[DB: DatabaseLike](TableRule[DB]):
    """A table does not directly extend a table it already extends transitively."""

    def validate_table(self, database: DB, table: TableLike) -> None:
        """Compare every direct parent with the ancestors of the others."""
        parents = list(table.extended_tables)
        for parent in parents:
            for other in parents:
                if other.name == parent.name:
                    continue
                if not any(a.name == parent.name for a in ancestors(other)):
                    continue

                info = (
                    DiagnosticInfo.builder()
                    .rule(self.name)
                    .object(table.name)
                    .message(
                        f"Table '{table.name}' extends '{parent.name}' directly, "
                        f"but '{parent.name}' is already extended through "
                        f"'{other.name}'",
                    )
                    .resolution(
                        f"Remove the foreign key from '{table.name}' to "
                        f"'{parent.name}' and rely on '{other.name}'",
                    )
                    .build()
                )
                raise TableRuleError(table, info)


class UniqueCheckRule[DB: DatabaseLike](TableRule[DB]):
    """No two check constraints of a table share the same expression."""

    def validate_table(self, database: DB, table: TableLike) -> None:
        """Detect duplicates by sorting on the canonical expression."""
        duplicate = first_adjacent_duplicate(
            table.check_constraints,
            key=lambda check_constraint: check_constraint.expression,
        )
        if duplicate is None:
            return

        expression = duplicate[0].expression
        info = (
            DiagnosticInfo.builder()
            .rule(self.name)
            .object(table.name)
            .message(
                f"Table '{table.name}' has non-unique check constraints: "
                f"CHECK ({expression})",
            )
            .resolution("Ensure all check constraints in the table are unique")
            .build()
        )
        raise TableRuleError(table, info)


class UniqueColumnNamesInExtensionGraph[DB: DatabaseLike](TableRule[DB]):
    """Non primary key column names do not repeat across an extension graph."""

    def validate_table(self, database: DB, table: TableLike) -> None:
        """Compare own columns with the columns of every ancestor."""
        own = {column.name for column in table.columns if not column.is_primary_key}
        for ancestor in ancestors(table):
            shared = sorted(
                own
                & {c.name for c in ancestor.columns if not c.is_primary_key},
            )
            if not shared:
                continue

            info = (
                DiagnosticInfo.builder()
                .rule(self.name)
                .object(f"{table.name}.{shared[0]}")
                .message(
                    f"Table '{table.name}' redefines "
                    f"{_plural(len(shared), 'column', 'columns')} "
                    f"({', '.join(shared)}) already defined by extended table "
                    f"'{ancestor.name}'",
                )
                .resolution(
                    f"Remove or rename the shared columns in '{table.name}' or "
                    f"'{ancestor.name}'",
                )
                .build()
            )
            raise TableRuleError(table, info)


class UniqueForeignKey[DB: DatabaseLike](TableRule[DB]):
    """No two foreign keys of a table share columns and target."""

    def validate_table(self, database: DB, table: TableLike) -> None:
        """Detect duplicates by sorting on the foreign key signature."""
        try:
            duplicate = first_duplicate_foreign_keys(table.foreign_keys)
        except LookupError as error:
            msg = f"{self.name} cannot resolve a foreign key of '{table.name}': {error}"
            raise UnapplicableRuleError(msg) from error

        if duplicate is None:
            return

        details = [describe_foreign_key(foreign_key) for foreign_key in duplicate]
        info = (
            DiagnosticInfo.builder()
            .rule(self.name)
            .object(table.name)
            .message(
                f"Table '{table.name}' has {len(details)} duplicate foreign key "
                "definitions:\n  - "
                + "\n  - ".join(details)
                + "\nBoth foreign keys reference the same columns and target table",
            )
            .resolution(
                "Remove one of the duplicate foreign key constraints from table "
                f"'{table.name}'. Keep only one: {details[0]}",
            )
            .build()
        )
        raise TableRuleError(table, info)


class UniqueUniqueIndex[DB: DatabaseLike](TableRule[DB]):
    """No two unique indices of a table cover the same columns."""

    def validate_table(self, database: DB, table: TableLike) -> None:
        """Detect duplicates by sorting on the canonical column list."""
        duplicate = first_adjacent_duplicate(
            table.unique_indices,
            key=lambda index: index.expression,
        )
        if duplicate is None:
            return

        info = (
            DiagnosticInfo.builder()
            .rule(self.name)
            .object(table.name)
            .message(
                f"Table '{table.name}' has non-unique unique index on columns: "
                f"{duplicate[0].expression}",
            )
            .resolution("Ensure all unique indices in the table are unique")
            .build()
        )
        raise TableRuleError(table, info)


class PoliciesRequireRowLevelSecurity[DB: DatabaseLike](TableRule[DB]):
    """Tables with policies enable row level security."""

    def validate_table(self, database: DB, table: TableLike) -> None:
        """Check that policies are backed by row level security."""
        if not table.policies or table.has_row_level_security:
            return

        info = (
            DiagnosticInfo.builder()
            .rule(self.name)
            .object(table.name)
            .message(f"Table '{table.name}' has policies but RLS is not enabled")
            .resolution("Enable Row Level Security on the table")
            .build()
        )
        raise TableRuleError(table, info)
