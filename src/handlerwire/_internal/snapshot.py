from __future__ import annotations

from typing import TYPE_CHECKING, Literal

from pydantic import BaseModel, ConfigDict, Field, ValidationError

from handlerwire._internal.catalog import (
    Accessibility,
    BaseListEntry,
    ConstructorDescriptor,
    InMemoryTypeCatalog,
    SourceLocation,
    TypeDescriptor,
    TypeReference,
)
from handlerwire.exceptions import HandlerWireCatalogError

if TYPE_CHECKING:
    from typing_extensions import Self


class _SnapshotModel(BaseModel):
    model_config = ConfigDict(frozen=True, extra="forbid")


class LocationModel(_SnapshotModel):
    path: str
    line: int = Field(ge=1)
    column: int = Field(default=1, ge=1)

    def to_location(self) -> SourceLocation:
        return SourceLocation(path=self.path, line=self.line, column=self.column)


class TypeReferenceModel(_SnapshotModel):
    module: str = ""
    qualname: str
    arguments: tuple[TypeReferenceModel, ...] = ()
    kind: Literal["class", "parameter", "literal"] = "class"

    def to_reference(self) -> TypeReference:
        return TypeReference(
            module=self.module,
            qualname=self.qualname,
            arguments=tuple(argument.to_reference() for argument in self.arguments),
            kind=self.kind,
        )


class BaseListEntryModel(_SnapshotModel):
    type: TypeReferenceModel
    location: LocationModel | None = None


class ConstructorModel(_SnapshotModel):
    accessibility: Accessibility = Accessibility.PUBLIC
    is_static: bool = False


class TypeDescriptorModel(_SnapshotModel):
    module: str
    qualname: str
    accessibility: Accessibility = Accessibility.PUBLIC
    is_abstract: bool = False
    is_static: bool = False
    type_parameters: tuple[TypeReferenceModel, ...] = ()
    type_arguments: tuple[TypeReferenceModel, ...] = ()
    bases: tuple[BaseListEntryModel, ...] = ()
    constructors: tuple[ConstructorModel, ...] = (ConstructorModel(),)
    locations: tuple[LocationModel, ...] = ()

    def to_descriptor(self) -> TypeDescriptor:
        return TypeDescriptor(
            module=self.module,
            qualname=self.qualname,
            accessibility=self.accessibility,
            is_abstract=self.is_abstract,
            is_static=self.is_static,
            type_parameters=tuple(parameter.to_reference() for parameter in self.type_parameters),
            type_arguments=tuple(argument.to_reference() for argument in self.type_arguments),
            bases=tuple(
                BaseListEntry(
                    type=entry.type.to_reference(),
                    location=entry.location.to_location() if entry.location else None,
                )
                for entry in self.bases
            ),
            constructors=tuple(
                ConstructorDescriptor(
                    accessibility=constructor.accessibility,
                    is_static=constructor.is_static,
                )
                for constructor in self.constructors
            ),
            locations=tuple(location.to_location() for location in self.locations),
        )


class CatalogSnapshot(_SnapshotModel):
    """Serialized type catalog handed over by an external analysis front end.

    ``declared`` types are discovery candidates; ``referenced`` types only take
    part in name lookups and inheritance, like library types a compilation
    references.
    """

    declared: tuple[TypeDescriptorModel, ...] = ()
    referenced: tuple[TypeDescriptorModel, ...] = ()

    @classmethod
    def from_json(cls, payload: str | bytes) -> Self:
        """Validate a JSON payload into a snapshot.

        Args:
            payload: JSON document matching the snapshot schema.

        Raises:
            HandlerWireCatalogError: If the payload is not a valid snapshot.

        """
        try:
            return cls.model_validate_json(payload)
        except ValidationError as error:
            msg = f"Invalid catalog snapshot: {error}"
            raise HandlerWireCatalogError(msg) from error

    def to_catalog(self) -> InMemoryTypeCatalog:
        return InMemoryTypeCatalog(
            (descriptor.to_descriptor() for descriptor in self.declared),
            referenced=(descriptor.to_descriptor() for descriptor in self.referenced),
        )


__all__ = ["CatalogSnapshot", "TypeDescriptorModel", "TypeReferenceModel"]
