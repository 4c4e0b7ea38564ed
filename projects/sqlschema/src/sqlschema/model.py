"""Schema entities backed by SQLAlchemy Core metadata."""

from __future__ import annotations

from functools import cached_property
from typing import TYPE_CHECKING, Any

from sqlalchemy import CheckConstraint as SQLCheckConstraint
from sqlalchemy import UniqueConstraint

from sqlschema.check_detection import (
    canonical_expression,
    is_negation,
    is_tautology,
    referenced_identifiers,
    rejects_empty_text,
    text_length_limit,
)
from sqlschema.type_conversion import NormalizedType, normalize_type

if TYPE_CHECKING:
    from collections.abc import Iterable

    from sqlalchemy import ForeignKeyConstraint
    from sqlalchemy import Index as SQLIndex
    from sqlalchemy import MetaData
    from sqlalchemy import Table as SQLTable
    from sqlalchemy.schema import Column as SQLColumn

    from constrainer.traits import ColumnLike


def _creation_order(item: object) -> int:
    """Return the declaration rank SQLAlchemy assigns to schema items."""
    return getattr(item, "_creation_order", 0)


def _declared[T](items: Iterable[T]) -> list[T]:
    """Sort an unordered collection of schema items by declaration."""
    return sorted(items, key=_creation_order)


class Database:
    """Schema of a database, described by SQLAlchemy metadata."""

    def __init__(self, metadata: MetaData, database_name: str = "main") -> None:
        """Initialize with the metadata holding the tables and a display name."""
        self._metadata = metadata
        self._table_cache: dict[str, Table] = {}
        self.name = database_name

    @property
    def metadata(self) -> MetaData:
        """Return the underlying SQLAlchemy metadata."""
        return self._metadata

    @cached_property
    def tables(self) -> tuple[Table, ...]:
        """Return every table, in metadata order."""
        return tuple(self.table(table_name) for table_name in self._metadata.tables)

    def table(self, table_name: str) -> Table:
        """Return a Table instance for the given table name."""
        if table_name not in self._table_cache:
            if table_name not in self._metadata.tables:
                msg = f"Table '{table_name}' does not exist in database '{self.name}'"
                raise LookupError(msg)
            self._table_cache[table_name] = Table(
                self,
                self._metadata.tables[table_name],
            )
        return self._table_cache[table_name]


class Table:
    """A table of the database."""

    def __init__(self, database: Database, table: SQLTable) -> None:
        """Initialize with the owning database and the SQLAlchemy table."""
        self._database = database
        self._table = table
        self.name = table.name

    def __repr__(self) -> str:
        """Return the table name."""
        return f"Table({self.name!r})"

    @property
    def database(self) -> Database:
        """Return the database the table belongs to."""
        return self._database

    @cached_property
    def columns(self) -> tuple[Column, ...]:
        """Return columns in declaration order."""
        return tuple(Column(self, column) for column in self._table.columns)

    @cached_property
    def _columns_by_name(self) -> dict[str, Column]:
        return {column.name: column for column in self.columns}

    def column(self, column_name: str) -> Column:
        """Return the column with the given name."""
        try:
            return self._columns_by_name[column_name]
        except KeyError:
            msg = f"Column '{column_name}' does not exist in table '{self.name}'"
            raise LookupError(msg) from None

    @cached_property
    def primary_key_columns(self) -> tuple[Column, ...]:
        """Return primary key columns."""
        return tuple(
            self.column(column.name) for column in self._table.primary_key.columns
        )

    @cached_property
    def foreign_keys(self) -> tuple[ForeignKey, ...]:
        """Return foreign keys in declaration order."""
        return tuple(
            ForeignKey(self, constraint)
            for constraint in _declared(self._table.foreign_key_constraints)
        )

    @cached_property
    def check_constraints(self) -> tuple[CheckConstraint, ...]:
        """Return table level and column level check constraints."""
        declared = [
            constraint
            for constraint in _declared(self._table.constraints)
            if isinstance(constraint, SQLCheckConstraint)
        ]
        table_level = [CheckConstraint(self, constraint) for constraint in declared]
        column_level = [
            CheckConstraint(self, constraint, column.name)
            for column in self._table.columns
            for constraint in _declared(column.constraints)
            if isinstance(constraint, SQLCheckConstraint)
            and constraint not in declared
        ]
        return (*table_level, *column_level)

    @cached_property
    def indices(self) -> tuple[Index, ...]:
        """Return indices and unique constraints."""
        indexes = [Index(self, index) for index in _declared(self._table.indexes)]
        unique_constraints = [
            Index(self, constraint)
            for constraint in _declared(self._table.constraints)
            if isinstance(constraint, UniqueConstraint)
        ]
        return (*indexes, *unique_constraints)

    @property
    def unique_indices(self) -> tuple[Index, ...]:
        """Return indices enforcing uniqueness."""
        return tuple(index for index in self.indices if index.is_unique)

    @cached_property
    def extended_tables(self) -> tuple[Table, ...]:
        """Return tables whose primary key the primary key of this table references."""
        extended: dict[str, Table] = {}
        for foreign_key in self.foreign_keys:
            try:
                if foreign_key.is_extension:
                    parent = foreign_key.referenced_table
                    extended.setdefault(parent.name, parent)
            except LookupError:
                continue
        return tuple(extended.values())

    @property
    def is_extension(self) -> bool:
        """Return whether the table extends another table."""
        return bool(self.extended_tables)

    @property
    def has_row_level_security(self) -> bool:
        """Return the `row_level_security` flag of the table info."""
        return bool(self._table.info.get("row_level_security", False))

    @property
    def policies(self) -> tuple[str, ...]:
        """Return the `policies` listed in the table info."""
        return tuple(self._table.info.get("policies", ()))


class Column:
    """A column of a table."""

    def __init__(self, table: Table, column: SQLColumn[Any]) -> None:
        """Initialize with the owning table and the SQLAlchemy column."""
        self._table = table
        self._column = column
        self.name = column.name

    def __repr__(self) -> str:
        """Return the qualified column name."""
        return f"Column('{self._table.name}.{self.name}')"

    @property
    def table(self) -> Table:
        """Return the table the column belongs to."""
        return self._table

    @cached_property
    def normalized_data_type(self) -> NormalizedType:
        """Return the dialect independent type name."""
        return normalize_type(self._column.type)

    @property
    def is_primary_key(self) -> bool:
        """Return whether the column is part of the primary key."""
        return bool(self._column.primary_key)

    @property
    def is_generated(self) -> bool:
        """Return whether the database computes or generates the column value."""
        column = self._column
        return (
            column.computed is not None
            or column.identity is not None
            or column.autoincrement is True
            or (
                column.primary_key
                and bool(column.table.kwargs.get("sqlite_autoincrement"))
            )
        )

    @property
    def has_default(self) -> bool:
        """Return whether the column declares a client or server default."""
        column = self._column
        # Identity and Computed attach themselves as the server default
        server_default = column.server_default
        if server_default is not None and server_default in (
            column.identity,
            column.computed,
        ):
            server_default = None
        return server_default is not None or column.default is not None

    @property
    def is_textual(self) -> bool:
        """Return whether the column stores free text."""
        return self.normalized_data_type == "text"

    @property
    def check_constraints(self) -> tuple[CheckConstraint, ...]:
        """Return check constraints involving the column."""
        return tuple(
            constraint
            for constraint in self._table.check_constraints
            if self.name in constraint.column_names
        )


class ForeignKey:
    """A foreign key, wrapping a SQLAlchemy `ForeignKeyConstraint`."""

    def __init__(self, table: Table, constraint: ForeignKeyConstraint) -> None:
        """Initialize with the host table and the SQLAlchemy constraint."""
        self._table = table
        self._constraint = constraint
        self.name: str | None = (
            constraint.name if isinstance(constraint.name, str) else None
        )

    def __repr__(self) -> str:
        """Return the foreign key in DDL form."""
        host = ", ".join(element.parent.name for element in self._constraint.elements)
        return f"ForeignKey({self._table.name}({host}) -> {self._target[0]})"

    @cached_property
    def _target(self) -> tuple[str, tuple[str, ...]]:
        """Return the referenced table name and column names."""
        targets = [
            element.target_fullname.rsplit(".", 1)
            for element in self._constraint.elements
        ]
        return targets[0][0], tuple(column for _, column in targets)

    @property
    def host_table(self) -> Table:
        """Return the table declaring the foreign key."""
        return self._table

    @cached_property
    def host_columns(self) -> tuple[Column, ...]:
        """Return host columns, paired with the referenced columns."""
        return tuple(
            self._table.column(element.parent.name)
            for element in self._constraint.elements
        )

    @property
    def referenced_table(self) -> Table:
        """Return the referenced table, or raise LookupError if unknown."""
        return self._table.database.table(self._target[0])

    @property
    def referenced_columns(self) -> tuple[Column, ...]:
        """Return referenced columns, or raise LookupError if unknown."""
        table = self.referenced_table
        return tuple(table.column(column_name) for column_name in self._target[1])

    @property
    def on_delete(self) -> str | None:
        """Return the upper case action on delete, if declared."""
        ondelete = self._constraint.ondelete
        return ondelete.upper() if ondelete else None

    @property
    def is_extension(self) -> bool:
        """Return whether the key maps the full primary key onto another one."""
        host_key = {column.name for column in self._table.primary_key_columns}
        referenced = self.referenced_table
        return (
            referenced.name != self._table.name
            and bool(host_key)
            and {column.name for column in self.host_columns} == host_key
            and {column.name for column in self.referenced_columns}
            == {column.name for column in referenced.primary_key_columns}
        )


class CheckConstraint:
    """A check constraint declared on a table or on one of its columns."""

    def __init__(
        self,
        table: Table,
        constraint: SQLCheckConstraint,
        column_name: str | None = None,
    ) -> None:
        """Initialize with the host table, the constraint and its owning column."""
        self._table = table
        self._constraint = constraint
        self._column_name = column_name
        self.name: str | None = (
            constraint.name if isinstance(constraint.name, str) else None
        )

    def __repr__(self) -> str:
        """Return the constraint in DDL form."""
        return f"CheckConstraint(CHECK ({self.expression}))"

    @cached_property
    def expression(self) -> str:
        """Return the canonical expression."""
        compiled = self._constraint.sqltext.compile(
            compile_kwargs={"literal_binds": True, "include_table": False},
        )
        return canonical_expression(str(compiled))

    @cached_property
    def column_names(self) -> frozenset[str]:
        """Return names of the table columns the expression involves."""
        identifiers = referenced_identifiers(self.expression)
        names = {
            column.name
            for column in self._table.columns
            if column.name.lower() in identifiers
        }
        if self._column_name is not None:
            names.add(self._column_name)
        return frozenset(names)

    @property
    def is_tautology(self) -> bool:
        """Return whether the expression holds for every row."""
        return is_tautology(self.expression)

    @property
    def is_negation(self) -> bool:
        """Return whether the expression holds for no row."""
        return is_negation(self.expression)

    def is_not_empty_text_constraint(self, column: ColumnLike) -> bool:
        """Return whether the expression rejects empty text in the column."""
        return rejects_empty_text(self.expression, column.name)

    def upper_bounded_text_limit(self, column: ColumnLike) -> int | None:
        """Return the maximum text length allowed in the column, if bounded."""
        return text_length_limit(self.expression, column.name)


class Index:
    """An index or unique constraint over columns of a table."""

    def __init__(self, table: Table, index: SQLIndex | UniqueConstraint) -> None:
        """Initialize with the host table and the SQLAlchemy index or constraint."""
        self._table = table
        self._index = index
        self.name: str | None = index.name if isinstance(index.name, str) else None

    def __repr__(self) -> str:
        """Return the indexed columns."""
        return f"Index({self.expression})"

    @cached_property
    def columns(self) -> tuple[Column, ...]:
        """Return indexed columns in declaration order."""
        return tuple(self._table.column(column.name) for column in self._index.columns)

    @property
    def is_unique(self) -> bool:
        """Return whether the index enforces uniqueness."""
        return isinstance(self._index, UniqueConstraint) or bool(self._index.unique)

    @property
    def expression(self) -> str:
        """Return the comma separated column names."""
        return ", ".join(column.name for column in self.columns)
