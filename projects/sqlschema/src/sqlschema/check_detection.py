"""Shape detection for check constraint expressions."""

import operator
import re
from collections.abc import Callable
from decimal import Decimal

# Reusable regex components for better readability
IDENTIFIER = r"[\"'`\[]?(\w+)[\"'`\]]?"  # Captures identifier inside optional quotes
VALUE = r"'([^']*)'"  # Captures content inside single quotes
NUMBER = r"(-?\d+(?:\.\d+)?)"
COMPARISON = r"(<>|!=|<=|>=|==|=|<|>)"
WHITESPACE = r"\s*"
OPEN_PAREN = r"\("
CLOSE_PAREN = r"\)"
IN = r"IN"
VALUES = r"([^)]+)"
LENGTH = r"(?:length|char_length|character_length|len)"

STRING_LITERAL = re.compile(VALUE)
QUOTED_OR_BARE_IDENTIFIER = re.compile(
    r"\"([^\"]+)\"|`([^`]+)`|\[([^\]]+)\]|\b([A-Za-z_]\w*)\b",
)
DISJUNCTION = re.compile(r"\bor\b", re.IGNORECASE)
MEMBERSHIP = re.compile(
    WHITESPACE.join((IDENTIFIER, IN, OPEN_PAREN, VALUES, CLOSE_PAREN)),
    re.IGNORECASE,
)

SELF_COMPARISON = re.compile(
    WHITESPACE.join((IDENTIFIER, COMPARISON, IDENTIFIER)),
    re.IGNORECASE,
)
LITERAL_COMPARISON = re.compile(WHITESPACE.join((NUMBER, COMPARISON, NUMBER)))

TRUE_LITERALS = frozenset(("true", "1", "not false", "not 0"))
FALSE_LITERALS = frozenset(("false", "0", "not true", "not 1"))
REFLEXIVE = frozenset(("=", "==", "<=", ">="))

OPERATORS: dict[str, Callable[[Decimal, Decimal], bool]] = {
    "=": operator.eq,
    "==": operator.eq,
    "<>": operator.ne,
    "!=": operator.ne,
    "<": operator.lt,
    "<=": operator.le,
    ">": operator.gt,
    ">=": operator.ge,
}


def _is_wrapped(expression: str) -> bool:
    """Check whether one pair of parentheses encloses the whole expression."""
    if not (expression.startswith("(") and expression.endswith(")")):
        return False
    depth = 0
    for index, char in enumerate(expression):
        if char == "(":
            depth += 1
        elif char == ")":
            depth -= 1
            if depth == 0 and index < len(expression) - 1:
                return False
    return True


def canonical_expression(sql: str) -> str:
    """Collapse whitespace and strip enclosing parentheses.

    Examples:
        "( id  >  0 )" -> "id > 0"
        "(a > 0) AND (b > 0)" -> "(a > 0) AND (b > 0)"

    """
    expression = " ".join(sql.split())
    while _is_wrapped(expression):
        expression = expression[1:-1].strip()
    return expression


def literal_truth(sql: str) -> bool | None:
    """Evaluate expressions whose value does not depend on the row.

    Returns True for expressions such as `1`, `x = x` or `2 > 1`, False for
    `0`, `x <> x` or `1 > 2`, and None when the value depends on the row.
    """
    expression = canonical_expression(sql)
    lowered = expression.lower()
    if lowered in TRUE_LITERALS:
        return True
    if lowered in FALSE_LITERALS:
        return False

    if match := SELF_COMPARISON.fullmatch(expression):
        left, comparison, right = match.groups()
        if left.lower() == right.lower():
            return comparison in REFLEXIVE

    if match := LITERAL_COMPARISON.fullmatch(expression):
        left, comparison, right = match.groups()
        return OPERATORS[comparison](Decimal(left), Decimal(right))

    return None


def is_tautology(sql: str) -> bool:
    """Check whether the expression holds for every row."""
    return literal_truth(sql) is True


def is_negation(sql: str) -> bool:
    """Check whether the expression holds for no row."""
    return literal_truth(sql) is False


def _column(column_name: str) -> str:
    """Build a pattern matching the column name, optionally quoted."""
    return rf"(?<!\w)[\"`\[]?{re.escape(column_name)}[\"`\]]?(?!\w)"


def _conjunctive(sql: str) -> str | None:
    """Return the canonical expression unless it contains a disjunction."""
    expression = canonical_expression(sql)
    if DISJUNCTION.search(STRING_LITERAL.sub("''", expression)):
        return None
    return expression


def rejects_empty_text(sql: str, column_name: str) -> bool:
    """Detect if the expression forbids the empty string in the column.

    Handles constraints like:
    - name <> '' (also `!=`, reversed operands and `TRIM(name)`)
    - LENGTH(name) > 0, LENGTH(name) >= 1
    - LENGTH(name) BETWEEN 1 AND 255
    """
    expression = _conjunctive(sql)
    if expression is None:
        return False

    column = _column(column_name)
    text = rf"(?:trim{OPEN_PAREN}\s*{column}\s*{CLOSE_PAREN}|{column})"
    length = rf"{LENGTH}{OPEN_PAREN}\s*{text}\s*{CLOSE_PAREN}"
    patterns = (
        rf"{text}\s*(?:<>|!=|>)\s*''",
        rf"''\s*(?:<>|!=|<)\s*{text}",
        rf"{length}\s*(?:>\s*\d|>=\s*[1-9])",
        rf"(?<![\w.])(?:\d+\s*<|[1-9]\d*\s*<=)\s*{length}",
        rf"{length}\s+between\s+[1-9]\d*\s+and\s+\d+",
    )
    return any(re.search(pattern, expression, re.IGNORECASE) for pattern in patterns)


def text_length_limit(sql: str, column_name: str) -> int | None:
    """Extract the maximum text length the expression allows in the column.

    Handles constraints like:
    - LENGTH(name) <= 255 (255), LENGTH(name) < 256 (255)
    - 255 >= LENGTH(name)
    - LENGTH(name) BETWEEN 1 AND 255

    When several bounds apply, the smallest one wins.
    """
    expression = _conjunctive(sql)
    if expression is None:
        return None

    length = rf"{LENGTH}{OPEN_PAREN}\s*{_column(column_name)}\s*{CLOSE_PAREN}"
    limits: list[int] = []
    upper = re.compile(rf"{length}\s*(<=|<)\s*(\d+)", re.IGNORECASE)
    for match in upper.finditer(expression):
        comparison, bound = match.groups()
        limits.append(int(bound) - (comparison == "<"))
    reversed_upper = re.compile(rf"(?<![\w.])(\d+)\s*(>=|>)\s*{length}", re.IGNORECASE)
    for match in reversed_upper.finditer(expression):
        bound, comparison = match.groups()
        limits.append(int(bound) - (comparison == ">"))
    limits.extend(
        int(match[1])
        for match in re.finditer(
            rf"{length}\s+between\s+\d+\s+and\s+(\d+)",
            expression,
            re.IGNORECASE,
        )
    )
    return min(limits, default=None)


def referenced_identifiers(sql: str) -> frozenset[str]:
    """Return the lowercase identifiers appearing outside string literals."""
    expression = STRING_LITERAL.sub("''", sql)
    return frozenset(
        next(group for group in match.groups() if group is not None).lower()
        for match in QUOTED_OR_BARE_IDENTIFIER.finditer(expression)
    )


def enum_values(sql: str, column_name: str) -> list[str]:
    """Return the string literals a membership test allows in the column.

    Matches `status IN ('a', 'b')` and its quoted-identifier forms. Column
    names compare case-insensitively, and a list without string literals
    yields nothing.
    """
    for match in MEMBERSHIP.finditer(sql):
        identifier, members = match.groups()
        if identifier.lower() == column_name.lower():
            return STRING_LITERAL.findall(members)
    return []
