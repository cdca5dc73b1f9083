class HandlerWireError(Exception):
    """Represent a base class for all handlerwire-specific failures.

    Catch this type when you want to handle any handlerwire error path without
    matching each concrete exception class individually.
    """


class HandlerWireCatalogError(HandlerWireError):
    """Signal that a type catalog could not be built.

    Raised by ``SourceTypeCatalog.from_directory`` when the source root does not
    exist and by ``CatalogSnapshot`` loaders when a serialized catalog payload
    fails validation.

    Problems inside individual user types never raise this error: ineligible
    types are skipped and malformed contract implementations are reported as
    diagnostics.
    """


class HandlerWireConfigurationError(HandlerWireError):
    """Signal invalid generator configuration.

    Raised by ``load_settings`` when explicit overrides or ``HANDLERWIRE_*``
    environment variables fail validation, for example when the generated
    function name is not a valid Python identifier.
    """


class GenerationCancelledError(HandlerWireError):
    """Signal that a generation run was abandoned by its host.

    Raised by ``HandlerRegistrationGenerator.run`` when the supplied
    ``CancellationToken`` is cancelled mid-run. A cancelled run produces no
    generated unit and no diagnostics.
    """
