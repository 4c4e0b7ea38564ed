"""Rules applied to every foreign key of a schema."""

from __future__ import annotations

from typing import TYPE_CHECKING

from constrainer.diagnostics import DiagnosticInfo
from constrainer.errors import ForeignKeyRuleError, UnapplicableRuleError
from constrainer.rules.naming import is_lowercase, is_python_keyword
from constrainer.traits import DatabaseLike, ForeignKeyRule

if TYPE_CHECKING:
    from constrainer.traits import ColumnLike, ForeignKeyLike, TableLike


def foreign_key_object(foreign_key: ForeignKeyLike) -> str:
    """Return the name of the foreign key, or describe its host columns."""
    if foreign_key.name:
        return foreign_key.name
    columns = ", ".join(column.name for column in foreign_key.host_columns)
    return f"{foreign_key.host_table.name}({columns})"


def _resolve(
    rule: str,
    foreign_key: ForeignKeyLike,
) -> tuple[TableLike, tuple[ColumnLike, ...]]:
    """Return the referenced table and columns, or refuse to judge."""
    try:
        return foreign_key.referenced_table, tuple(foreign_key.referenced_columns)
    except LookupError as error:
        msg = (
            f"{rule} cannot resolve the target of foreign key "
            f"'{foreign_key_object(foreign_key)}': {error}"
        )
        raise UnapplicableRuleError(msg) from error


def _names(columns: tuple[ColumnLike, ...] | list[ColumnLike]) -> frozenset[str]:
    return frozenset(column.name for column in columns)


def is_extension_foreign_key(foreign_key: ForeignKeyLike) -> bool:
    """Check whether the foreign key maps a primary key onto another primary key."""
    host_table = foreign_key.host_table
    referenced_table = foreign_key.referenced_table
    host_key = _names(list(host_table.primary_key_columns))
    referenced_key = _names(list(referenced_table.primary_key_columns))
    return (
        referenced_table.name != host_table.name
        and bool(host_key)
        and _names(list(foreign_key.host_columns)) == host_key
        and _names(list(foreign_key.referenced_columns)) == referenced_key
    )


class CompatibleForeignKey[DB: DatabaseLike](ForeignKeyRule[DB]):
    """Paired columns share their data type and are not both generated."""

    def validate_foreign_key(self, database: DB, foreign_key: ForeignKeyLike) -> None:
        """Compare every host column with its referenced column."""
        referenced_table, referenced_columns = _resolve(self.name, foreign_key)
        host_table = foreign_key.host_table

        for host_column, referenced_column in zip(
            foreign_key.host_columns,
            referenced_columns,
            strict=False,
        ):
            host = f"`{host_table.name}.{host_column.name}`"
            referenced = f"`{referenced_table.name}.{referenced_column.name}`"
            host_type = host_column.normalized_data_type
            referenced_type = referenced_column.normalized_data_type

            if host_column.is_generated and referenced_column.is_generated:
                message = (
                    f"Foreign key column {host} and referenced column {referenced} "
                    "are both generative (auto-increment/identity), which means they "
                    "should never have the same value"
                )
                resolution = (
                    f"Remove the generative property from {host} or redesign the "
                    "foreign key relationship"
                )
            elif host_type != referenced_type:
                message = (
                    f"Foreign key column {host} has data type '{host_type}' which is "
                    f"incompatible with referenced column {referenced} data type "
                    f"'{referenced_type}'"
                )
                resolution = (
                    f"Change the data type of {host} to '{referenced_type}' to match "
                    "the referenced column"
                )
            else:
                continue

            info = (
                DiagnosticInfo.builder()
                .rule(self.name)
                .object(foreign_key_object(foreign_key))
                .message(message)
                .resolution(resolution)
                .build()
            )
            raise ForeignKeyRuleError(foreign_key, info)


class LowercaseForeignKeyName[DB: DatabaseLike](ForeignKeyRule[DB]):
    """Named foreign keys contain no uppercase letters."""

    def validate_foreign_key(self, database: DB, foreign_key: ForeignKeyLike) -> None:
        """Check the foreign key name casing."""
        name = foreign_key.name
        if name is None or is_lowercase(name):
            return

        info = (
            DiagnosticInfo.builder()
            .rule(self.name)
            .object(name)
            .message(
                f"Foreign key '{name}' in table '{foreign_key.host_table.name}' is not "
                "lowercase",
            )
            .resolution(f"Rename foreign key '{name}' to '{name.lower()}'")
            .build()
        )
        raise ForeignKeyRuleError(foreign_key, info)


class NoPythonKeywordForeignKeyName[DB: DatabaseLike](ForeignKeyRule[DB]):
    """Named foreign keys are not Python keywords."""

    def validate_foreign_key(self, database: DB, foreign_key: ForeignKeyLike) -> None:
        """Check the foreign key name against the Python keyword list."""
        name = foreign_key.name
        if name is None or not is_python_keyword(name):
            return

        info = (
            DiagnosticInfo.builder()
            .rule(self.name)
            .object(name)
            .message(f"Foreign key name '{name}' is a Python keyword.")
            .resolution(
                f"Rename the foreign key '{name}' to something that is not a Python "
                "keyword.",
            )
            .build()
        )
        raise ForeignKeyRuleError(foreign_key, info)


class ReferencesUniqueIndex[DB: DatabaseLike](ForeignKeyRule[DB]):
    """Referenced columns are covered by a primary key or a unique index."""

    def validate_foreign_key(self, database: DB, foreign_key: ForeignKeyLike) -> None:
        """Look for a unique index over exactly the referenced columns."""
        referenced_table, referenced_columns = _resolve(self.name, foreign_key)
        referenced = _names(referenced_columns)

        candidates = [
            _names(list(referenced_table.primary_key_columns)),
            *(_names(list(index.columns)) for index in referenced_table.unique_indices),
        ]
        if referenced in candidates:
            return

        columns = ", ".join(column.name for column in referenced_columns)
        host_name = foreign_key.host_table.name
        info = (
            DiagnosticInfo.builder()
            .rule(self.name)
            .object(foreign_key_object(foreign_key))
            .message(
                f"Foreign key from table '{host_name}' references columns ({columns}) "
                f"in table '{referenced_table.name}' which are not covered by a "
                "unique index",
            )
            .resolution(
                f"Add a unique constraint or primary key on columns ({columns}) in "
                f"table '{referenced_table.name}', or remove the foreign key from "
                f"table '{host_name}'",
            )
            .build()
        )
        raise ForeignKeyRuleError(foreign_key, info)


class PrimaryKeyReferenceEndsWithId[DB: DatabaseLike](ForeignKeyRule[DB]):
    """A single host column referencing a primary key is named `*_id`.

    Host columns that are themselves the host primary key (extension tables)
    keep their own name.
    """

    def validate_foreign_key(self, database: DB, foreign_key: ForeignKeyLike) -> None:
        """Check the name of single column references to a primary key."""
        host_columns = list(foreign_key.host_columns)
        if len(host_columns) != 1:
            return

        host_column = host_columns[0]
        if host_column.is_primary_key or host_column.name.endswith("_id"):
            return

        referenced_table, referenced_columns = _resolve(self.name, foreign_key)
        primary_key = _names(list(referenced_table.primary_key_columns))
        if _names(referenced_columns) != primary_key:
            return

        host_name = foreign_key.host_table.name
        info = (
            DiagnosticInfo.builder()
            .rule(self.name)
            .object(foreign_key_object(foreign_key))
            .message(
                f"Column '{host_name}.{host_column.name}' references the primary key "
                f"of table '{referenced_table.name}' but does not end with '_id'",
            )
            .resolution(
                f"Rename column '{host_column.name}' in table '{host_name}' to "
                f"'{host_column.name}_id'",
            )
            .build()
        )
        raise ForeignKeyRuleError(foreign_key, info)


class ExtensionForeignKeyOnDeleteCascade[DB: DatabaseLike](ForeignKeyRule[DB]):
    """Foreign keys making a table an extension cascade on delete."""

    def validate_foreign_key(self, database: DB, foreign_key: ForeignKeyLike) -> None:
        """Check the delete action of extension foreign keys."""
        _resolve(self.name, foreign_key)
        if not is_extension_foreign_key(foreign_key):
            return
        if foreign_key.on_delete == "CASCADE":
            return

        host_name = foreign_key.host_table.name
        parent_name = foreign_key.referenced_table.name
        info = (
            DiagnosticInfo.builder()
            .rule(self.name)
            .object(foreign_key_object(foreign_key))
            .message(
                f"Foreign key making table '{host_name}' an extension of "
                f"'{parent_name}' does not cascade on delete",
            )
            .resolution(
                f"Add ON DELETE CASCADE to the foreign key from '{host_name}' to "
                f"'{parent_name}'",
            )
            .build()
        )
        raise ForeignKeyRuleError(foreign_key, info)
