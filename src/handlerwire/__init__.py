from handlerwire._internal.catalog import (
    Accessibility,
    BaseListEntry,
    ConstructorDescriptor,
    ContractInstantiation,
    InMemoryTypeCatalog,
    SourceLocation,
    TypeCatalog,
    TypeDescriptor,
    TypeReference,
)
from handlerwire._internal.diagnostics import Diagnostic, DiagnosticSeverity
from handlerwire._internal.emitter import GeneratedUnit
from handlerwire._internal.generator import (
    CancellationToken,
    GenerationResult,
    HandlerRegistrationGenerator,
)
from handlerwire._internal.settings import GeneratorSettings, load_settings
from handlerwire._internal.snapshot import CatalogSnapshot
from handlerwire._internal.source_catalog import SourceTypeCatalog
from handlerwire._internal.validation import HandlerRecord
from handlerwire.contracts import Request, RequestHandler
from handlerwire.exceptions import (
    GenerationCancelledError,
    HandlerWireCatalogError,
    HandlerWireConfigurationError,
    HandlerWireError,
)

__all__ = [
    "Accessibility",
    "BaseListEntry",
    "CancellationToken",
    "CatalogSnapshot",
    "ConstructorDescriptor",
    "ContractInstantiation",
    "Diagnostic",
    "DiagnosticSeverity",
    "GeneratedUnit",
    "GenerationCancelledError",
    "GenerationResult",
    "GeneratorSettings",
    "HandlerRecord",
    "HandlerRegistrationGenerator",
    "HandlerWireCatalogError",
    "HandlerWireConfigurationError",
    "HandlerWireError",
    "InMemoryTypeCatalog",
    "Request",
    "RequestHandler",
    "SourceLocation",
    "SourceTypeCatalog",
    "TypeCatalog",
    "TypeDescriptor",
    "TypeReference",
    "load_settings",
]
