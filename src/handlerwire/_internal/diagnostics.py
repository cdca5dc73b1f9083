from __future__ import annotations

from dataclasses import dataclass
from enum import Enum

from handlerwire._internal.catalog import SourceLocation

DIAGNOSTIC_CATEGORY = "handlerwire.generator"


class DiagnosticSeverity(Enum):
    """Severity attached to a reported diagnostic."""

    INFO = "info"
    WARNING = "warning"
    ERROR = "error"


@dataclass(frozen=True, slots=True)
class DiagnosticDescriptor:
    """Static description of one kind of diagnostic.

    ``message_format`` uses positional ``str.format`` fields that are filled
    from the arguments passed to ``create``.
    """

    id: str
    title: str
    message_format: str
    category: str = DIAGNOSTIC_CATEGORY
    default_severity: DiagnosticSeverity = DiagnosticSeverity.WARNING

    def create(self, location: SourceLocation | None, *arguments: object) -> Diagnostic:
        """Build a diagnostic instance for ``location``.

        Args:
            location: Best available source position, or ``None`` when the
                diagnostic is not tied to a declaration.
            *arguments: Values substituted into ``message_format``.

        """
        return Diagnostic(descriptor=self, location=location, arguments=arguments)


@dataclass(frozen=True, slots=True)
class Diagnostic:
    """A reported problem, immutable once created."""

    descriptor: DiagnosticDescriptor
    location: SourceLocation | None
    arguments: tuple[object, ...] = ()

    @property
    def id(self) -> str:
        return self.descriptor.id

    @property
    def severity(self) -> DiagnosticSeverity:
        return self.descriptor.default_severity

    @property
    def message(self) -> str:
        return self.descriptor.message_format.format(*self.arguments)

    def __str__(self) -> str:
        prefix = f"{self.location}: " if self.location is not None else ""
        return f"{prefix}{self.severity.value}[{self.id}]: {self.message}"


MISSING_TARGET_CONTRACT = DiagnosticDescriptor(
    id="missing-target-contract",
    title="Request handler contract not found",
    message_format=(
        "The '{0}' contract could not be found. "
        "Ensure handlerwire is available to the scanned sources."
    ),
)

ARITY_MISMATCH = DiagnosticDescriptor(
    id="arity-mismatch",
    title="Invalid request handler implementation",
    message_format="Handler '{0}' implements '{1}' with {2} type arguments instead of 2",
)

DUPLICATE_HANDLER = DiagnosticDescriptor(
    id="duplicate-handler",
    title="Duplicate request handler",
    message_format=(
        "Multiple handlers found for request type '{0}' returning '{1}'. Handler: '{2}'"
    ),
)


class DiagnosticBag:
    """Ordered collector of diagnostics reported during one generation run."""

    def __init__(self) -> None:
        self._diagnostics: list[Diagnostic] = []

    def report(self, diagnostic: Diagnostic) -> None:
        self._diagnostics.append(diagnostic)

    def __len__(self) -> int:
        return len(self._diagnostics)

    def to_tuple(self) -> tuple[Diagnostic, ...]:
        return tuple(self._diagnostics)


__all__ = [
    "ARITY_MISMATCH",
    "DUPLICATE_HANDLER",
    "MISSING_TARGET_CONTRACT",
    "Diagnostic",
    "DiagnosticBag",
    "DiagnosticDescriptor",
    "DiagnosticSeverity",
]
