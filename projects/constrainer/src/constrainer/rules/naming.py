"""Naming convention predicates shared by table, column and foreign key rules."""

import keyword
from re import sub

from inflection import pluralize, singularize


def snake_case(name: str) -> str:
    """Convert name to snake_case."""
    name = sub("([a-z0-9])([A-Z])|([A-Z])([A-Z][a-z])", r"\1\3_\2\4", name)
    name = sub(r"[\s\-]+", "_", name)
    return sub("_{2,}", "_", name).strip("_").lower()


def snake_case_issue(name: str) -> str:
    """Describe why a name is not snake_case."""
    if "__" in name:
        return "contains double underscores"
    if any(char.isupper() for char in name):
        return "contains uppercase letters"
    return "does not follow snake_case convention"


def is_lowercase(name: str) -> bool:
    """Check that every letter in name is lowercase."""
    return all(not char.isalpha() or char.islower() for char in name)


def last_segment(name: str) -> str:
    """Return the part of name after its last underscore."""
    return name.rsplit("_", 1)[-1]


def replace_last_segment(name: str, segment: str) -> str:
    """Replace the part of name after its last underscore."""
    prefix, _, _ = name.rpartition("_")
    return f"{prefix}_{segment}" if prefix else segment


def is_singular(word: str) -> bool:
    """Check that singularizing the word leaves it unchanged."""
    return singularize(word) == word


def is_plural(word: str) -> bool:
    """Check that pluralizing the word leaves it unchanged."""
    return pluralize(word) == word


def is_python_keyword(name: str) -> bool:
    """Check if name would need renaming in generated Python models."""
    return keyword.iskeyword(name)


def pluralize_last_segment(name: str) -> str:
    """Return name with its last segment pluralized."""
    return replace_last_segment(name, pluralize(last_segment(name)))


def singularize_last_segment(name: str) -> str:
    """Return name with its last segment singularized."""
    return replace_last_segment(name, singularize(last_segment(name)))
