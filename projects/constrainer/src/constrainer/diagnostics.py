"""Diagnostic records describing a rule failure and their validating builder."""

from __future__ import annotations

from dataclasses import asdict, dataclass
from typing import ClassVar


class DiagnosticBuilderError(ValueError):
    """Raised when a diagnostic cannot be assembled."""


class MissingAttributeError(DiagnosticBuilderError):
    """A required attribute was never set before building."""

    def __init__(self, attribute: str) -> None:
        """Initialize with the name of the missing attribute."""
        self.attribute = attribute
        super().__init__(f"missing attribute: {attribute}")


class EmptyAttributeError(DiagnosticBuilderError):
    """An attribute was set to an empty or whitespace-only string."""

    attribute: ClassVar[str]

    def __init__(self) -> None:
        """Initialize with the message naming the offending attribute."""
        super().__init__(f"attribute '{self.attribute}' cannot be empty")


class EmptyRuleError(EmptyAttributeError):
    """The rule identifier is empty."""

    attribute = "rule"


class EmptyObjectError(EmptyAttributeError):
    """The object identifier is empty."""

    attribute = "object"


class EmptyMessageError(EmptyAttributeError):
    """The message is empty."""

    attribute = "message"


class EmptyResolutionError(EmptyAttributeError):
    """The resolution is empty."""

    attribute = "resolution"


def _require(value: str, error: type[EmptyAttributeError]) -> str:
    """Return the value unless it is blank."""
    if not value.strip():
        raise error
    return value


@dataclass(frozen=True, slots=True)
class DiagnosticInfo:
    """What failed, on which object, why, and how to fix it.

    Instances are created through `DiagnosticInfo.builder()`, which guarantees
    that no diagnostic is ever emitted with a blank identifier or message:

        info = (
            DiagnosticInfo.builder()
            .rule("LowercaseTableName")
            .object("Users")
            .message("Table 'Users' is not lowercase")
            .resolution("Rename table 'Users' to 'users'")
            .build()
        )
    """

    rule: str
    object: str
    message: str
    resolution: str | None = None

    def __post_init__(self) -> None:
        """Reject blank attributes, including on direct construction."""
        _require(self.rule, EmptyRuleError)
        _require(self.object, EmptyObjectError)
        _require(self.message, EmptyMessageError)
        if self.resolution is not None:
            _require(self.resolution, EmptyResolutionError)

    @staticmethod
    def builder() -> DiagnosticBuilder:
        """Start building a diagnostic."""
        return DiagnosticBuilder()

    def to_dict(self) -> dict[str, str | None]:
        """Return the diagnostic as a JSON serializable mapping."""
        return asdict(self)

    def __str__(self) -> str:
        """Render the fixed multi-line layout."""
        lines = [
            f"Rule: {self.rule}",
            f"Object: {self.object}",
            f"Message: {self.message}",
        ]
        if self.resolution is not None:
            lines.append(f"Resolution: {self.resolution}")
        return "\n".join(lines)


class DiagnosticBuilder:
    """A fluent builder validating every attribute as it is set."""

    def __init__(self) -> None:
        """Initialize with no attribute set."""
        self._rule: str | None = None
        self._object: str | None = None
        self._message: str | None = None
        self._resolution: str | None = None

    def rule(self, rule: str) -> DiagnosticBuilder:
        """Set the identifier of the failed rule."""
        self._rule = _require(rule, EmptyRuleError)
        return self

    def object(self, obj: str) -> DiagnosticBuilder:
        """Set the identifier of the offending schema object."""
        self._object = _require(obj, EmptyObjectError)
        return self

    def message(self, message: str) -> DiagnosticBuilder:
        """Set the description of the failure."""
        self._message = _require(message, EmptyMessageError)
        return self

    def resolution(self, resolution: str) -> DiagnosticBuilder:
        """Set the suggested fix."""
        self._resolution = _require(resolution, EmptyResolutionError)
        return self

    def build(self) -> DiagnosticInfo:
        """Finalize the diagnostic."""
        if self._rule is None:
            raise MissingAttributeError("rule")
        if self._object is None:
            raise MissingAttributeError("object")
        if self._message is None:
            raise MissingAttributeError("message")

        return DiagnosticInfo(
            rule=self._rule,
            object=self._object,
            message=self._message,
            resolution=self._resolution,
        )
