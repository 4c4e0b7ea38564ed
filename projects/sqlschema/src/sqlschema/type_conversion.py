"""Module for mapping SQLAlchemy TypeEngine onto dialect independent type names."""

from typing import Any, Literal

from sqlalchemy.types import (
    Boolean,
    Date,
    DateTime,
    Enum,
    Float,
    Integer,
    LargeBinary,
    Numeric,
    String,
    TypeEngine,
    Uuid,
)

type NormalizedType = Literal[
    "integer",
    "text",
    "real",
    "numeric",
    "blob",
    "boolean",
    "date",
    "datetime",
    "enum",
    "uuid",
    "unknown",
]


def normalize_type(sql_type: TypeEngine[Any]) -> NormalizedType:
    """Map a SQLAlchemy TypeEngine onto a dialect independent type name.

    Columns of two dialects, or of a declared and a reflected schema, compare
    equal when they share the same name.

    Examples:
        VARCHAR(255) -> text
        DECIMAL(10,2) -> numeric
        DOUBLE -> real
        INTEGER, BIGINT -> integer

    """
    # Enum derives from String and Float from Numeric: order matters
    match sql_type:
        case Enum():
            return "enum"
        case Integer():
            return "integer"
        case String():
            return "text"
        case Float():
            return "real"
        case Numeric():
            return "numeric"
        case LargeBinary():
            return "blob"
        case Boolean():
            return "boolean"
        case DateTime():
            return "datetime"
        case Date():
            return "date"
        case Uuid():
            return "uuid"
        case _:
            return "unknown"
