from __future__ import annotations

from abc import ABC, abstractmethod
from collections.abc import Iterable, Iterator, Mapping, Sequence
from dataclasses import dataclass, field
from enum import Enum
from typing import TYPE_CHECKING, Any, Literal, Protocol

if TYPE_CHECKING:
    from typing_extensions import Self

TypeReferenceKind = Literal["class", "parameter", "literal"]

_BUILTINS_MODULE = "builtins"
_BARE_BUILTINS = frozenset({"None", "Ellipsis"})


class Accessibility(Enum):
    """Declared accessibility of a type, ordered from most to least visible."""

    PUBLIC = "public"
    INTERNAL = "internal"
    PROTECTED = "protected"
    PRIVATE = "private"

    @property
    def is_container_visible(self) -> bool:
        """Return whether a DI container outside the declaring scope can build the type."""
        return self in {Accessibility.PUBLIC, Accessibility.INTERNAL}


@dataclass(frozen=True, slots=True)
class SourceLocation:
    """Position of a declaration in a source file, with 1-based line and column."""

    path: str
    line: int
    column: int

    def __str__(self) -> str:
        return f"{self.path}:{self.line}:{self.column}"


@dataclass(frozen=True, slots=True)
class TypeReference:
    """Fully-qualified reference to a type, a type variable, or a literal value.

    ``module`` and ``qualname`` are kept apart so generated code can import the
    module and spell the reference as ``module.qualname``. Type variables use
    the declaring scope as ``module``; literals keep their ``repr`` in
    ``qualname`` and an empty ``module``.
    """

    module: str
    qualname: str
    arguments: tuple[TypeReference, ...] = ()
    kind: TypeReferenceKind = "class"

    @classmethod
    def parameter(cls, scope: str, name: str) -> Self:
        return cls(module=scope, qualname=name, kind="parameter")

    @classmethod
    def literal(cls, value: object) -> Self:
        return cls(module="", qualname=repr(value), kind="literal")

    @property
    def full_name(self) -> str:
        """Return the dotted name of the generic origin, without arguments."""
        if self.kind != "class":
            return self.qualname
        if self.module == _BUILTINS_MODULE and self.qualname in _BARE_BUILTINS:
            return "None" if self.qualname == "None" else "..."
        if not self.module:
            return self.qualname
        return f"{self.module}.{self.qualname}"

    @property
    def display_name(self) -> str:
        """Return the fully-qualified spelling including bracketed type arguments."""
        if not self.arguments:
            return self.full_name
        arguments = ", ".join(argument.display_name for argument in self.arguments)
        return f"{self.full_name}[{arguments}]"

    @property
    def is_type_parameter(self) -> bool:
        return self.kind == "parameter"

    def contains_type_parameter(self) -> bool:
        """Return whether this reference or any nested argument is still open."""
        if self.is_type_parameter:
            return True
        return any(argument.contains_type_parameter() for argument in self.arguments)

    def substitute(self, mapping: Mapping[TypeReference, TypeReference]) -> TypeReference:
        """Replace type parameters using ``mapping``, recursing into arguments.

        Args:
            mapping: Mapping from type-parameter references to their closing arguments.

        """
        if self.is_type_parameter:
            return mapping.get(self, self)
        if not self.arguments or not mapping:
            return self
        return TypeReference(
            module=self.module,
            qualname=self.qualname,
            arguments=tuple(argument.substitute(mapping) for argument in self.arguments),
            kind=self.kind,
        )

    def iter_modules(self) -> Iterator[str]:
        """Yield every module that must be imported to spell this reference."""
        if self.kind == "class" and self.module:
            if not (self.module == _BUILTINS_MODULE and self.qualname in _BARE_BUILTINS):
                yield self.module
        for argument in self.arguments:
            yield from argument.iter_modules()

    def __str__(self) -> str:
        return self.display_name


@dataclass(frozen=True, slots=True)
class ConstructorDescriptor:
    """Accessibility and static-ness of one constructor of a type."""

    accessibility: Accessibility = Accessibility.PUBLIC
    is_static: bool = False

    @property
    def is_usable(self) -> bool:
        return not self.is_static and self.accessibility.is_container_visible


@dataclass(frozen=True, slots=True)
class BaseListEntry:
    """One entry of a type's declared base list and where it was written."""

    type: TypeReference
    location: SourceLocation | None = None


@dataclass(frozen=True, slots=True)
class TypeDescriptor:
    """Structural metadata of one declared type.

    Descriptors are produced by a ``TypeCatalog`` and are read-only to the
    discovery pipeline. ``type_parameters`` holds the declared generic
    parameters; ``type_arguments`` is non-empty only for a constructed generic
    instantiation.
    """

    module: str
    qualname: str
    accessibility: Accessibility = Accessibility.PUBLIC
    is_abstract: bool = False
    is_static: bool = False
    type_parameters: tuple[TypeReference, ...] = ()
    type_arguments: tuple[TypeReference, ...] = ()
    bases: tuple[BaseListEntry, ...] = ()
    constructors: tuple[ConstructorDescriptor, ...] = (ConstructorDescriptor(),)
    locations: tuple[SourceLocation, ...] = ()
    abstract_members: frozenset[str] = field(default_factory=frozenset)

    @property
    def full_name(self) -> str:
        return f"{self.module}.{self.qualname}" if self.module else self.qualname

    @property
    def name(self) -> str:
        return self.qualname.rsplit(".", 1)[-1]

    @property
    def generic_arity(self) -> int:
        return len(self.type_parameters)

    @property
    def is_generic(self) -> bool:
        return self.generic_arity > 0

    @property
    def is_unbound_generic(self) -> bool:
        """Return whether the type is a generic definition with no arguments supplied."""
        return self.is_generic and not self.type_arguments

    @property
    def base_count(self) -> int:
        return len(self.bases)

    @property
    def reference(self) -> TypeReference:
        """Return a reference spelling this type, closed over its type arguments."""
        return TypeReference(
            module=self.module,
            qualname=self.qualname,
            arguments=self.type_arguments,
        )

    @property
    def primary_location(self) -> SourceLocation | None:
        return self.locations[0] if self.locations else None

    def argument_mapping(self) -> dict[TypeReference, TypeReference]:
        """Map declared type parameters to supplied type arguments, if any."""
        if not self.type_arguments:
            return {}
        return dict(zip(self.type_parameters, self.type_arguments, strict=False))


@dataclass(frozen=True, slots=True)
class ImplementedType:
    """One member of a type's transitive implemented set.

    ``via`` is the base-list entry of the examined type through which this
    implementation was inherited.
    """

    type: TypeReference
    via: BaseListEntry


@dataclass(frozen=True, slots=True)
class ContractInstantiation:
    """A specific implementation of the target contract by one type."""

    origin: str
    type_arguments: tuple[TypeReference, ...]
    location: SourceLocation | None = None

    @property
    def arity(self) -> int:
        return len(self.type_arguments)


class Declaration(Protocol):
    """Syntactic view of a declared type used by the candidate filter."""

    @property
    def base_count(self) -> int: ...


class TypeCatalog(ABC):
    """Semantic model over a snapshot of declared and referenced types.

    Subclasses supply declarations, resolve them to descriptors, and look up
    types by their fully-qualified name. Transitive interface resolution is
    shared and works purely on descriptors.
    """

    @abstractmethod
    def declarations(self) -> Sequence[Any]:
        """Return the syntactic declarations of every scanned type, in source order."""

    @abstractmethod
    def resolve_declaration(self, declaration: Any) -> TypeDescriptor | None:
        """Return the semantic descriptor for ``declaration`` or ``None`` if unresolvable.

        Args:
            declaration: A value previously returned by ``declarations``.

        """

    @abstractmethod
    def get_type_by_name(self, full_name: str) -> TypeDescriptor | None:
        """Return a declared or referenced type by its fully-qualified name.

        Args:
            full_name: Dotted module path followed by the type's qualified name.

        """

    def all_interfaces(self, descriptor: TypeDescriptor) -> tuple[ImplementedType, ...]:
        """Return every type ``descriptor`` inherits from, closed over its arguments.

        The walk follows base lists through the catalog, substituting each base's
        type parameters with the arguments it was inherited with. Identical
        instantiations reached through several paths are reported once, in
        first-seen order.

        Args:
            descriptor: Type whose implemented set is requested.

        """
        found: dict[str, ImplementedType] = {}
        mapping = descriptor.argument_mapping()
        for entry in descriptor.bases:
            self._collect_implemented(
                entry.type.substitute(mapping),
                via=entry,
                found=found,
                visiting=frozenset({descriptor.full_name}),
            )
        return tuple(found.values())

    def _collect_implemented(
        self,
        reference: TypeReference,
        *,
        via: BaseListEntry,
        found: dict[str, ImplementedType],
        visiting: frozenset[str],
    ) -> None:
        found.setdefault(reference.display_name, ImplementedType(type=reference, via=via))
        if reference.kind != "class" or reference.full_name in visiting:
            return
        base = self.get_type_by_name(reference.full_name)
        if base is None:
            return
        mapping = dict(zip(base.type_parameters, reference.arguments, strict=False))
        for entry in base.bases:
            self._collect_implemented(
                entry.type.substitute(mapping),
                via=via,
                found=found,
                visiting=visiting | {base.full_name},
            )


class InMemoryTypeCatalog(TypeCatalog):
    """Catalog whose declarations are already-resolved descriptors.

    Used for catalogs produced by external front ends and in tests. Referenced
    types take part in name lookups and inheritance but are never candidates.
    """

    def __init__(
        self,
        declared: Iterable[TypeDescriptor],
        *,
        referenced: Iterable[TypeDescriptor] = (),
    ) -> None:
        self._declared = tuple(declared)
        self._types_by_name: dict[str, TypeDescriptor] = {}
        for descriptor in referenced:
            self._types_by_name[descriptor.full_name] = descriptor
        for descriptor in self._declared:
            self._types_by_name[descriptor.full_name] = descriptor

    def declarations(self) -> Sequence[TypeDescriptor]:
        return self._declared

    def resolve_declaration(self, declaration: Any) -> TypeDescriptor | None:
        if not isinstance(declaration, TypeDescriptor):
            return None
        if self._types_by_name.get(declaration.full_name) is not declaration:
            return None
        return declaration

    def get_type_by_name(self, full_name: str) -> TypeDescriptor | None:
        return self._types_by_name.get(full_name)


__all__ = [
    "Accessibility",
    "BaseListEntry",
    "ConstructorDescriptor",
    "ContractInstantiation",
    "Declaration",
    "ImplementedType",
    "InMemoryTypeCatalog",
    "SourceLocation",
    "TypeCatalog",
    "TypeDescriptor",
    "TypeReference",
]
