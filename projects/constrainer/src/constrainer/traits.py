"""Capability protocols for schema entities and the rule base classes."""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import TYPE_CHECKING, ClassVar, Literal, Protocol

if TYPE_CHECKING:
    from collections.abc import Iterable, Sequence

    from constrainer.constrainer import GenericConstrainer


class ColumnLike(Protocol):
    """A column belonging to exactly one table."""

    @property
    def name(self) -> str:
        """Column name."""
        ...

    @property
    def table(self) -> TableLike:
        """Table the column belongs to."""
        ...

    @property
    def normalized_data_type(self) -> str:
        """Dialect independent name of the column type."""
        ...

    @property
    def is_primary_key(self) -> bool:
        """Whether the column is part of the primary key."""
        ...

    @property
    def is_generated(self) -> bool:
        """Whether values are produced by the database (identity, computed)."""
        ...

    @property
    def has_default(self) -> bool:
        """Whether the column declares a default value."""
        ...

    @property
    def is_textual(self) -> bool:
        """Whether the column stores text."""
        ...

    @property
    def check_constraints(self) -> Sequence[CheckConstraintLike]:
        """Check constraints whose expression involves this column."""
        ...


class CheckConstraintLike(Protocol):
    """A check constraint declared on a table or a column."""

    @property
    def expression(self) -> str:
        """Canonical expression, used to compare constraints."""
        ...

    @property
    def is_tautology(self) -> bool:
        """Whether the expression holds for every row."""
        ...

    @property
    def is_negation(self) -> bool:
        """Whether the expression holds for no row."""
        ...

    def is_not_empty_text_constraint(self, column: ColumnLike) -> bool:
        """Whether the expression rejects empty text in the given column."""
        ...

    def upper_bounded_text_limit(self, column: ColumnLike) -> int | None:
        """Return the maximum text length allowed for the column, if bounded."""
        ...


class IndexLike(Protocol):
    """An index or unique constraint over columns of a table."""

    @property
    def columns(self) -> Sequence[ColumnLike]:
        """Indexed columns in declaration order."""
        ...

    @property
    def is_unique(self) -> bool:
        """Whether the index enforces uniqueness."""
        ...

    @property
    def expression(self) -> str:
        """Canonical expression, used to compare indices."""
        ...


class ForeignKeyLike(Protocol):
    """A foreign key hosted by a table.

    Host and referenced columns are paired positionally. Resolving a
    referenced table that is not part of the database raises `LookupError`.
    """

    @property
    def name(self) -> str | None:
        """Optional constraint name."""
        ...

    @property
    def host_table(self) -> TableLike:
        """Table declaring the foreign key."""
        ...

    @property
    def host_columns(self) -> Sequence[ColumnLike]:
        """Columns of the host table."""
        ...

    @property
    def referenced_table(self) -> TableLike:
        """Table referenced by the foreign key."""
        ...

    @property
    def referenced_columns(self) -> Sequence[ColumnLike]:
        """Columns of the referenced table."""
        ...

    @property
    def on_delete(self) -> str | None:
        """Referential action on delete, upper case."""
        ...


class TableLike(Protocol):
    """A table of a database."""

    @property
    def name(self) -> str:
        """Table name, unique within the database."""
        ...

    @property
    def columns(self) -> Sequence[ColumnLike]:
        """Columns in declaration order."""
        ...

    @property
    def primary_key_columns(self) -> Sequence[ColumnLike]:
        """Columns making up the primary key."""
        ...

    @property
    def foreign_keys(self) -> Sequence[ForeignKeyLike]:
        """Foreign keys declared by the table."""
        ...

    @property
    def check_constraints(self) -> Sequence[CheckConstraintLike]:
        """Check constraints declared on the table or its columns."""
        ...

    @property
    def indices(self) -> Sequence[IndexLike]:
        """Indices and unique constraints of the table."""
        ...

    @property
    def unique_indices(self) -> Sequence[IndexLike]:
        """Indices enforcing uniqueness."""
        ...

    @property
    def is_extension(self) -> bool:
        """Whether the table extends at least one other table."""
        ...

    @property
    def extended_tables(self) -> Sequence[TableLike]:
        """Tables directly extended by this table."""
        ...

    @property
    def has_row_level_security(self) -> bool:
        """Whether row level security is enabled."""
        ...

    @property
    def policies(self) -> Sequence[str]:
        """Names of the row level security policies."""
        ...

    def column(self, column_name: str) -> ColumnLike:
        """Return the column with the given name."""
        ...


class DatabaseLike(Protocol):
    """A database schema made of tables."""

    @property
    def tables(self) -> Iterable[TableLike]:
        """Tables in a stable order."""
        ...

    def table(self, table_name: str) -> TableLike:
        """Return the table with the given name."""
        ...


class Rule[DB: DatabaseLike](ABC):
    """Common base of table, column and foreign key rules."""

    kind: ClassVar[str]

    @property
    def name(self) -> str:
        """Identifier reported in diagnostics."""
        return type(self).__name__

    def into_constrainer(self) -> GenericConstrainer[DB]:
        """Return a constrainer holding only this rule."""
        from constrainer.constrainer import GenericConstrainer  # noqa: PLC0415

        return GenericConstrainer.from_rules(self)


class TableRule[DB: DatabaseLike](Rule[DB]):
    """Rule applied to every table."""

    kind: ClassVar[Literal["table"]] = "table"

    @abstractmethod
    def validate_table(self, database: DB, table: TableLike) -> None:
        """Raise a `RuleError` if the table violates the rule."""


class ColumnRule[DB: DatabaseLike](Rule[DB]):
    """Rule applied to every column."""

    kind: ClassVar[Literal["column"]] = "column"

    @abstractmethod
    def validate_column(self, database: DB, column: ColumnLike) -> None:
        """Raise a `RuleError` if the column violates the rule."""


class ForeignKeyRule[DB: DatabaseLike](Rule[DB]):
    """Rule applied to every foreign key."""

    kind: ClassVar[Literal["foreign_key"]] = "foreign_key"

    @abstractmethod
    def validate_foreign_key(self, database: DB, foreign_key: ForeignKeyLike) -> None:
        """Raise a `RuleError` if the foreign key violates the rule."""
