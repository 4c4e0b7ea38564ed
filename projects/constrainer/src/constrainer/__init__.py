"""Rule engine linting relational database schemas."""

from constrainer.constrainer import (
    Constrainer,
    DefaultConstrainer,
    GenericConstrainer,
)
from constrainer.diagnostics import (
    DiagnosticBuilder,
    DiagnosticBuilderError,
    DiagnosticInfo,
    EmptyAttributeError,
    EmptyMessageError,
    EmptyObjectError,
    EmptyResolutionError,
    EmptyRuleError,
    MissingAttributeError,
)
from constrainer.errors import (
    ColumnRuleError,
    ForeignKeyRuleError,
    RuleError,
    RuleViolationError,
    TableRuleError,
    UnapplicableRuleError,
)
from constrainer.traits import (
    CheckConstraintLike,
    ColumnLike,
    ColumnRule,
    DatabaseLike,
    ForeignKeyLike,
    ForeignKeyRule,
    IndexLike,
    Rule,
    TableLike,
    TableRule,
)

__all__ = [
    "CheckConstraintLike",
    "ColumnLike",
    "ColumnRule",
    "ColumnRuleError",
    "Constrainer",
    "DatabaseLike",
    "DefaultConstrainer",
    "DiagnosticBuilder",
    "DiagnosticBuilderError",
    "DiagnosticInfo",
    "EmptyAttributeError",
    "EmptyMessageError",
    "EmptyObjectError",
    "EmptyResolutionError",
    "EmptyRuleError",
    "ForeignKeyLike",
    "ForeignKeyRule",
    "ForeignKeyRuleError",
    "GenericConstrainer",
    "IndexLike",
    "MissingAttributeError",
    "Rule",
    "RuleError",
    "RuleViolationError",
    "TableLike",
    "TableRule",
    "TableRuleError",
    "UnapplicableRuleError",
]
