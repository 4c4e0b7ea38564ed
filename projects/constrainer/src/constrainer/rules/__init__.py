"""Catalogue of table, column and foreign key rules."""

from typing import Any

from constrainer.rules.column_rules import (
    LowercaseColumnName,
    NoPythonKeywordColumnName,
    NonCompositePrimaryKeyNamedId,
    NoSurrogatePrimaryKeyInExtension,
    PastTimeColumnRule,
    SingularColumnName,
    SnakeCaseColumnName,
    TextualColumnRule,
)
from constrainer.rules.foreign_key_rules import (
    CompatibleForeignKey,
    ExtensionForeignKeyOnDeleteCascade,
    LowercaseForeignKeyName,
    NoPythonKeywordForeignKeyName,
    PrimaryKeyReferenceEndsWithId,
    ReferencesUniqueIndex,
)
from constrainer.rules.table_rules import (
    HasPrimaryKey,
    LowercaseTableName,
    NoForbiddenColumnInExtension,
    NoNegationCheckRule,
    NonRedundantExtensionDag,
    NoPythonKeywordTableName,
    NoTautologicalCheckRule,
    PluralTableName,
    PoliciesRequireRowLevelSecurity,
    SnakeCaseTableName,
    UniqueCheckRule,
    UniqueColumnNamesInExtensionGraph,
    UniqueForeignKey,
    UniqueUniqueIndex,
)
from constrainer.traits import Rule

RULES: tuple[type[Rule[Any]], ...] = (
    HasPrimaryKey,
    LowercaseTableName,
    SnakeCaseTableName,
    PluralTableName,
    NoPythonKeywordTableName,
    NoTautologicalCheckRule,
    NoNegationCheckRule,
    NoForbiddenColumnInExtension,
    NonRedundantExtensionDag,
    UniqueCheckRule,
    UniqueColumnNamesInExtensionGraph,
    UniqueForeignKey,
    UniqueUniqueIndex,
    PoliciesRequireRowLevelSecurity,
    LowercaseColumnName,
    NonCompositePrimaryKeyNamedId,
    SnakeCaseColumnName,
    SingularColumnName,
    NoPythonKeywordColumnName,
    NoSurrogatePrimaryKeyInExtension,
    TextualColumnRule,
    PastTimeColumnRule,
    CompatibleForeignKey,
    LowercaseForeignKeyName,
    ReferencesUniqueIndex,
    PrimaryKeyReferenceEndsWithId,
    ExtensionForeignKeyOnDeleteCascade,
    NoPythonKeywordForeignKeyName,
)

# Opt-in rules left out of the default constrainer
OPTIONAL_RULES = frozenset(
    (
        "NoSurrogatePrimaryKeyInExtension",
        "PastTimeColumnRule",
        "PoliciesRequireRowLevelSecurity",
    ),
)


def rule_catalogue() -> dict[str, type[Rule[Any]]]:
    """Return every rule class keyed by its identifier."""
    return {rule.__name__: rule for rule in RULES}


def default_rules() -> list[Rule[Any]]:
    """Instantiate the rules of the default constrainer, in registration order."""
    rules: list[Rule[Any]] = []
    for rule in RULES:
        if rule.__name__ in OPTIONAL_RULES:
            continue
        if rule is NoForbiddenColumnInExtension:
            rules.append(NoForbiddenColumnInExtension("most_concrete_table"))
        else:
            rules.append(rule())
    return rules


__all__ = [
    "OPTIONAL_RULES",
    "RULES",
    "CompatibleForeignKey",
    "ExtensionForeignKeyOnDeleteCascade",
    "HasPrimaryKey",
    "LowercaseColumnName",
    "LowercaseForeignKeyName",
    "LowercaseTableName",
    "NoForbiddenColumnInExtension",
    "NoNegationCheckRule",
    "NoPythonKeywordColumnName",
    "NoPythonKeywordForeignKeyName",
    "NoPythonKeywordTableName",
    "NoSurrogatePrimaryKeyInExtension",
    "NoTautologicalCheckRule",
    "NonCompositePrimaryKeyNamedId",
    "NonRedundantExtensionDag",
    "PastTimeColumnRule",
    "PluralTableName",
    "PoliciesRequireRowLevelSecurity",
    "PrimaryKeyReferenceEndsWithId",
    "ReferencesUniqueIndex",
    "SingularColumnName",
    "SnakeCaseColumnName",
    "SnakeCaseTableName",
    "TextualColumnRule",
    "UniqueCheckRule",
    "UniqueColumnNamesInExtensionGraph",
    "UniqueForeignKey",
    "UniqueUniqueIndex",
    "default_rules",
    "rule_catalogue",
]
