"""Duplicate detection among sibling constructs of one table."""

from __future__ import annotations

from itertools import pairwise
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from collections.abc import Callable, Iterable

    from constrainer.traits import ForeignKeyLike


def first_adjacent_duplicate[T](
    items: Iterable[T],
    key: Callable[[T], str],
) -> tuple[T, T] | None:
    """Return the first pair of items sharing the same key, if any.

    Sorting by key makes every duplicate adjacent, so the pair returned is the
    one with the lexicographically smallest colliding key.
    """
    ordered = sorted(items, key=key)
    for first, second in pairwise(ordered):
        if key(first) == key(second):
            return first, second
    return None


type ForeignKeySignature = tuple[tuple[str, ...], str, tuple[str, ...]]


def foreign_key_signature(foreign_key: ForeignKeyLike) -> ForeignKeySignature:
    """Key a foreign key on host columns, referenced table and referenced columns.

    Columns keep their declaration order, so two foreign keys listing the same
    columns in a different order have different signatures.
    """
    return (
        tuple(column.name for column in foreign_key.host_columns),
        foreign_key.referenced_table.name,
        tuple(column.name for column in foreign_key.referenced_columns),
    )


def first_duplicate_foreign_keys(
    foreign_keys: Iterable[ForeignKeyLike],
) -> tuple[ForeignKeyLike, ForeignKeyLike] | None:
    """Return the first pair of foreign keys with equal signatures, if any.

    Signatures are compared by value, so the reported pair is the one with the
    smallest signature and does not change between runs.
    """
    signatures = sorted(
        ((foreign_key_signature(fk), fk) for fk in foreign_keys),
        key=lambda pair: pair[0],
    )
    for (first_signature, first), (second_signature, second) in pairwise(signatures):
        if first_signature == second_signature:
            return first, second
    return None


def describe_foreign_key(foreign_key: ForeignKeyLike) -> str:
    """Render a foreign key as its DDL clause."""
    host = ", ".join(column.name for column in foreign_key.host_columns)
    referenced = ", ".join(column.name for column in foreign_key.referenced_columns)
    return (
        f"FOREIGN KEY ({host}) "
        f"REFERENCES {foreign_key.referenced_table.name} ({referenced})"
    )
