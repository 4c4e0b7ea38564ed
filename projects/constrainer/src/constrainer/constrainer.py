"""Rule registries applying rules while visiting a schema."""

from __future__ import annotations

from logging import getLogger
from typing import TYPE_CHECKING, Self

from constrainer.errors import RuleError
from constrainer.rules import default_rules
from constrainer.traits import (
    ColumnRule,
    DatabaseLike,
    ForeignKeyRule,
    Rule,
    TableRule,
)

if TYPE_CHECKING:
    from collections.abc import Callable, Iterator

    from constrainer.traits import ColumnLike, ForeignKeyLike, TableLike

logger = getLogger(__name__)


class Constrainer[DB: DatabaseLike]:
    """Holds ordered table, column and foreign key rules and applies them.

    Rules run in registration order. `validate_schema` stops at the first
    failure; `violations` keeps going and yields every failure.
    """

    def __init__(self) -> None:
        """Initialize with no registered rule."""
        self._table_rules: list[TableRule[DB]] = []
        self._column_rules: list[ColumnRule[DB]] = []
        self._foreign_key_rules: list[ForeignKeyRule[DB]] = []

    @classmethod
    def from_rules(cls, *rules: Rule[DB]) -> Self:
        """Create a constrainer holding the given rules."""
        constrainer = cls()
        for rule in rules:
            constrainer.register(rule)
        return constrainer

    def register(self, rule: Rule[DB]) -> None:
        """Register a rule in the collection matching its kind."""
        match rule:
            case TableRule():
                self.register_table_rule(rule)
            case ColumnRule():
                self.register_column_rule(rule)
            case ForeignKeyRule():
                self.register_foreign_key_rule(rule)
            case _:
                msg = f"Unsupported rule type: {type(rule).__name__}"
                raise TypeError(msg)

    def register_table_rule(self, rule: TableRule[DB]) -> None:
        """Register a rule applied to every table."""
        logger.debug("Registering table rule %s", rule.name)
        self._table_rules.append(rule)

    def register_column_rule(self, rule: ColumnRule[DB]) -> None:
        """Register a rule applied to every column."""
        logger.debug("Registering column rule %s", rule.name)
        self._column_rules.append(rule)

    def register_foreign_key_rule(self, rule: ForeignKeyRule[DB]) -> None:
        """Register a rule applied to every foreign key."""
        logger.debug("Registering foreign key rule %s", rule.name)
        self._foreign_key_rules.append(rule)

    @property
    def table_rules(self) -> Iterator[TableRule[DB]]:
        """Registered table rules."""
        return iter(self._table_rules)

    @property
    def column_rules(self) -> Iterator[ColumnRule[DB]]:
        """Registered column rules."""
        return iter(self._column_rules)

    @property
    def foreign_key_rules(self) -> Iterator[ForeignKeyRule[DB]]:
        """Registered foreign key rules."""
        return iter(self._foreign_key_rules)

    @property
    def rules(self) -> Iterator[Rule[DB]]:
        """All registered rules, table rules first."""
        yield from self._table_rules
        yield from self._column_rules
        yield from self._foreign_key_rules

    def __len__(self) -> int:
        """Return the number of registered rules."""
        return (
            len(self._table_rules)
            + len(self._column_rules)
            + len(self._foreign_key_rules)
        )

    def encounter_table(self, database: DB, table: TableLike) -> None:
        """Apply every table rule to the table."""
        for rule in self._table_rules:
            rule.validate_table(database, table)

    def encounter_column(self, database: DB, column: ColumnLike) -> None:
        """Apply every column rule to the column."""
        for rule in self._column_rules:
            rule.validate_column(database, column)

    def encounter_foreign_key(self, database: DB, foreign_key: ForeignKeyLike) -> None:
        """Apply every foreign key rule to the foreign key."""
        for rule in self._foreign_key_rules:
            rule.validate_foreign_key(database, foreign_key)

    def validate_schema(self, database: DB) -> None:
        """Apply every rule to every entity, raising the first failure."""
        try:
            for table in database.tables:
                logger.debug("Validating table %s", table.name)
                self.encounter_table(database, table)
                for column in table.columns:
                    self.encounter_column(database, column)
                for foreign_key in table.foreign_keys:
                    self.encounter_foreign_key(database, foreign_key)
        except RuleError as error:
            logger.info("Schema validation failed: %s", error)
            raise

    def violations(self, database: DB) -> Iterator[RuleError]:
        """Yield every failure, in the order `validate_schema` would meet them.

        Each rule contributes at most one error per entity.
        """
        for table in database.tables:
            logger.debug("Validating table %s", table.name)
            for table_rule in self._table_rules:
                if error := _failure(table_rule.validate_table, database, table):
                    yield error
            for column in table.columns:
                for column_rule in self._column_rules:
                    if error := _failure(column_rule.validate_column, database, column):
                        yield error
            for foreign_key in table.foreign_keys:
                for foreign_key_rule in self._foreign_key_rules:
                    if error := _failure(
                        foreign_key_rule.validate_foreign_key,
                        database,
                        foreign_key,
                    ):
                        yield error


def _failure[D, E](
    validate: Callable[[D, E], None],
    database: D,
    entity: E,
) -> RuleError | None:
    """Run one validation and return its error instead of raising it."""
    try:
        validate(database, entity)
    except RuleError as error:
        return error
    return None


class GenericConstrainer[DB: DatabaseLike](Constrainer[DB]):
    """A constrainer starting empty, filled by registration."""


class DefaultConstrainer[DB: DatabaseLike](Constrainer[DB]):
    """A constrainer pre-configured with the default rule catalogue."""

    def __init__(self) -> None:
        """Initialize and register the default rules."""
        super().__init__()
        for rule in default_rules():
            self.register(rule)
