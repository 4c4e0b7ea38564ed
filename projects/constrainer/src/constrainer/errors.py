"""Errors raised when a schema entity violates a rule."""

from __future__ import annotations

from typing import TYPE_CHECKING, ClassVar, Literal

if TYPE_CHECKING:
    from constrainer.diagnostics import DiagnosticInfo
    from constrainer.traits import ColumnLike, ForeignKeyLike, TableLike

type Kind = Literal["table", "column", "foreign_key", "unapplicable"]


class RuleError(Exception):
    """Base class of every error produced while applying rules."""

    kind: ClassVar[Kind]


class RuleViolationError(RuleError):
    """A schema entity violated a rule."""

    label: ClassVar[str]

    def __init__(self, entity: object, info: DiagnosticInfo) -> None:
        """Initialize with the offending entity and its diagnostic."""
        self.entity = entity
        self.info = info
        super().__init__(f"{self.label} rule violated:\n{info}")


class TableRuleError(RuleViolationError):
    """A table violated a table rule."""

    kind = "table"
    label = "Table"

    def __init__(self, table: TableLike, info: DiagnosticInfo) -> None:
        """Initialize with the offending table."""
        super().__init__(table, info)
        self.table = table


class ColumnRuleError(RuleViolationError):
    """A column violated a column rule."""

    kind = "column"
    label = "Column"

    def __init__(self, column: ColumnLike, info: DiagnosticInfo) -> None:
        """Initialize with the offending column."""
        super().__init__(column, info)
        self.column = column


class ForeignKeyRuleError(RuleViolationError):
    """A foreign key violated a foreign key rule."""

    kind = "foreign_key"
    label = "Foreign key"

    def __init__(self, foreign_key: ForeignKeyLike, info: DiagnosticInfo) -> None:
        """Initialize with the offending foreign key."""
        super().__init__(foreign_key, info)
        self.foreign_key = foreign_key


class UnapplicableRuleError(RuleError):
    """A rule cannot judge the entity it was given."""

    kind = "unapplicable"

    def __init__(self, message: str) -> None:
        """Initialize with an explanation."""
        self.message = message
        super().__init__(f"Unapplicable rule: {message}")
