from __future__ import annotations

import ast
import builtins
import logging
import threading
from collections.abc import Callable, Iterable, Iterator, Mapping, Sequence
from dataclasses import dataclass, field
from pathlib import Path
from typing import TYPE_CHECKING, Union

from handlerwire._internal.catalog import (
    Accessibility,
    BaseListEntry,
    ConstructorDescriptor,
    SourceLocation,
    TypeCatalog,
    TypeDescriptor,
    TypeReference,
)
from handlerwire.exceptions import HandlerWireCatalogError

if TYPE_CHECKING:
    from typing_extensions import Self

logger = logging.getLogger(__name__)

_GENERIC_BASES = frozenset({"typing.Generic"})
_PROTOCOL_BASES = frozenset({"typing.Protocol", "typing_extensions.Protocol"})
_LITERAL_FORMS = frozenset({"typing.Literal", "typing_extensions.Literal"})
_TYPEVAR_FACTORIES = frozenset({"TypeVar", "ParamSpec", "TypeVarTuple"})
_ABSTRACT_DECORATORS = frozenset(
    {
        "abc.abstractmethod",
        "abc.abstractproperty",
        "abc.abstractclassmethod",
        "abc.abstractstaticmethod",
    },
)
_STATIC_CONSTRUCTOR_DECORATORS = frozenset({"builtins.staticmethod", "builtins.classmethod"})
_ACCESSIBILITY_ORDER = (
    Accessibility.PUBLIC,
    Accessibility.INTERNAL,
    Accessibility.PROTECTED,
    Accessibility.PRIVATE,
)
_COMPOUND_BODY_FIELDS = ("body", "orelse", "finalbody")
_TYPE_CHECKING_FLAGS = frozenset({"typing.TYPE_CHECKING", "typing_extensions.TYPE_CHECKING"})


@dataclass(frozen=True, slots=True)
class SourceModule:
    """One parsed Python module taking part in a catalog."""

    name: str
    path: str
    tree: ast.Module
    is_package: bool = False

    @property
    def package(self) -> str:
        return self.name if self.is_package else self.name.rpartition(".")[0]

    def location(self, node: ast.expr | ast.stmt) -> SourceLocation:
        return SourceLocation(path=self.path, line=node.lineno, column=node.col_offset + 1)


@dataclass(frozen=True, slots=True, eq=False)
class ClassDeclaration:
    """Syntactic declaration of one ``class`` statement.

    ``parent`` is set only when the class is declared directly in another class
    body, whose names are then visible to this class's base list.
    """

    module: SourceModule
    node: ast.ClassDef
    qualname: str
    accessibility: Accessibility
    parent: ClassDeclaration | None = None

    @property
    def base_count(self) -> int:
        return len(self.node.bases)

    @property
    def full_name(self) -> str:
        return f"{self.module.name}.{self.qualname}"

    @property
    def location(self) -> SourceLocation:
        return self.module.location(self.node)

    def __repr__(self) -> str:
        return f"ClassDeclaration({self.full_name!r})"


@dataclass(frozen=True, slots=True)
class _ModuleBinding:
    module: str


@dataclass(frozen=True, slots=True)
class _ObjectBinding:
    module: str
    qualname: str

    @property
    def full_name(self) -> str:
        return f"{self.module}.{self.qualname}"


@dataclass(frozen=True, slots=True)
class _TypeVarBinding:
    reference: TypeReference


@dataclass(frozen=True, slots=True)
class _ImportedName:
    source: str
    name: str


@dataclass(frozen=True, slots=True)
class _AliasBinding:
    value: ast.expr


_SymbolEntry = Union[_ModuleBinding, _ObjectBinding, _TypeVarBinding, _ImportedName, _AliasBinding]
_Resolved = Union[_ModuleBinding, _ObjectBinding, _TypeVarBinding, TypeReference]


@dataclass(frozen=True, slots=True)
class _Scope:
    module: SourceModule
    class_names: Mapping[str, _ObjectBinding] = field(default_factory=dict)
    type_parameters: Mapping[str, TypeReference] = field(default_factory=dict)


class _DeclarationCollector(ast.NodeVisitor):
    """Collect class statements that exist when the module is imported.

    Bodies of ``if TYPE_CHECKING:`` blocks are skipped; their ``else`` branch
    is still visited.
    """

    def __init__(
        self,
        module: SourceModule,
        *,
        is_type_checking: Callable[[ast.expr], bool],
    ) -> None:
        self._module = module
        self._is_type_checking = is_type_checking
        self._prefix: list[str] = []
        self._parents: list[ClassDeclaration | None] = [None]
        self._function_depth = 0
        self.declarations: list[ClassDeclaration] = []

    def visit_ClassDef(self, node: ast.ClassDef) -> None:
        parent = self._parents[-1]
        declaration = ClassDeclaration(
            module=self._module,
            node=node,
            qualname=".".join([*self._prefix, node.name]),
            accessibility=_declared_accessibility(
                node.name,
                enclosing=parent.accessibility if parent is not None else None,
                in_function=self._function_depth > 0,
                nested=bool(self._prefix),
            ),
            parent=parent,
        )
        self.declarations.append(declaration)
        self._prefix.append(node.name)
        self._parents.append(declaration)
        for statement in node.body:
            self.visit(statement)
        self._parents.pop()
        self._prefix.pop()

    def visit_FunctionDef(self, node: ast.FunctionDef | ast.AsyncFunctionDef) -> None:
        self._prefix.extend([node.name, "<locals>"])
        self._parents.append(None)
        self._function_depth += 1
        for statement in node.body:
            self.visit(statement)
        self._function_depth -= 1
        self._parents.pop()
        del self._prefix[-2:]

    visit_AsyncFunctionDef = visit_FunctionDef

    def visit_If(self, node: ast.If) -> None:
        if not self._is_type_checking(node.test):
            for statement in node.body:
                self.visit(statement)
        for statement in node.orelse:
            self.visit(statement)

    def generic_visit(self, node: ast.AST) -> None:
        if isinstance(node, ast.expr):
            return
        super().generic_visit(node)


def _declared_accessibility(
    name: str,
    *,
    enclosing: Accessibility | None,
    in_function: bool,
    nested: bool,
) -> Accessibility:
    if in_function:
        return Accessibility.PRIVATE
    if not nested:
        return Accessibility.INTERNAL if name.startswith("_") else Accessibility.PUBLIC
    if name.startswith("__") and not name.endswith("__"):
        declared = Accessibility.PRIVATE
    elif name.startswith("_"):
        declared = Accessibility.PROTECTED
    else:
        declared = Accessibility.PUBLIC
    if enclosing is None:
        return declared
    return max(declared, enclosing, key=_ACCESSIBILITY_ORDER.index)


def parse_module(
    name: str,
    source: str | bytes,
    *,
    path: str,
    is_package: bool = False,
) -> SourceModule:
    """Parse ``source`` into a ``SourceModule``.

    Args:
        name: Dotted module name.
        source: Module source text, or raw file bytes decoded according to
            their coding cookie (UTF-8 when there is none).
        path: Path recorded in source locations.
        is_package: Whether the module is a package ``__init__``.

    Raises:
        SyntaxError: If ``source`` is not valid Python.
        ValueError: If ``source`` cannot be decoded or holds null bytes.

    """
    tree = ast.parse(source, filename=path)
    return SourceModule(name=name, path=path, tree=tree, is_package=is_package)


def default_reference_sources() -> dict[str, str]:
    """Return the sources of the installed handlerwire contract modules."""
    package_root = Path(__file__).resolve().parents[1]
    return {
        "handlerwire": (package_root / "__init__.py").read_text(encoding="utf-8"),
        "handlerwire.contracts": (package_root / "contracts.py").read_text(encoding="utf-8"),
    }


class SourceTypeCatalog(TypeCatalog):
    """Type catalog built from Python source by static analysis.

    Declared modules supply candidate declarations. Referenced modules, the
    handlerwire contracts by default, only take part in name resolution and
    inheritance. Declarations are resolved lazily and cached per declaration.
    """

    def __init__(
        self,
        modules: Iterable[SourceModule],
        *,
        references: Iterable[SourceModule] = (),
    ) -> None:
        self._declared_modules = tuple(modules)
        self._reference_modules = tuple(references)
        self._modules_by_name: dict[str, SourceModule] = {}
        for module in (*self._reference_modules, *self._declared_modules):
            self._modules_by_name[module.name] = module

        self._known_modules = set(self._modules_by_name)
        for module in self._modules_by_name.values():
            self._known_modules.update(_imported_module_names(module))

        self._symbols: dict[str, dict[str, _SymbolEntry]] = {}
        self._star_imports: dict[str, tuple[str, ...]] = {}
        self._exports: dict[str, frozenset[str] | None] = {}
        self._resolved: dict[ClassDeclaration, TypeDescriptor | None] = {}
        self._in_progress: set[ClassDeclaration] = set()
        self._lock = threading.RLock()

        self._declarations_by_name: dict[str, ClassDeclaration] = {}
        for module in self._reference_modules:
            for declaration in self._collect_declarations(module):
                self._declarations_by_name[declaration.full_name] = declaration
        declared: list[ClassDeclaration] = []
        for module in self._declared_modules:
            for declaration in self._collect_declarations(module):
                declared.append(declaration)
                self._declarations_by_name[declaration.full_name] = declaration
        self._declarations = self._drop_redefined(declared)

    @classmethod
    def from_sources(
        cls,
        sources: Mapping[str, str],
        *,
        references: Mapping[str, str] | None = None,
    ) -> Self:
        """Build a catalog from in-memory module sources.

        A module counts as a package when another given module is nested under
        it. Modules that fail to parse are skipped with a warning.

        Args:
            sources: Mapping of dotted module name to source text.
            references: Referenced module sources. ``None`` uses the installed
                handlerwire contracts; an empty mapping references nothing.

        """
        reference_sources = default_reference_sources() if references is None else references
        return cls(
            _parse_sources(sources),
            references=_parse_sources(reference_sources),
        )

    @classmethod
    def from_directory(
        cls,
        root: Path,
        *,
        references: Mapping[str, str] | None = None,
    ) -> Self:
        """Build a catalog from every ``.py`` file below a source root.

        Module names are derived from paths relative to ``root``, so pass the
        directory that would be on ``sys.path`` (for example ``src``).

        Args:
            root: Source root directory.
            references: Referenced module sources, as for ``from_sources``.

        Raises:
            HandlerWireCatalogError: If ``root`` is not a directory.

        """
        if not root.is_dir():
            msg = f"Source root '{root}' is not a directory."
            raise HandlerWireCatalogError(msg)

        modules: list[SourceModule] = []
        for path in sorted(root.rglob("*.py")):
            relative = path.relative_to(root).with_suffix("")
            parts = list(relative.parts)
            is_package = parts[-1] == "__init__"
            if is_package:
                parts = parts[:-1]
            if not parts or not all(part.isidentifier() for part in parts):
                logger.debug("Skipping '%s': not an importable module path", path)
                continue
            module = _parse_or_skip(
                ".".join(parts),
                path.read_bytes(),
                path=str(path),
                is_package=is_package,
            )
            if module is not None:
                modules.append(module)

        reference_sources = default_reference_sources() if references is None else references
        logger.info("Scanned %d modules below '%s'", len(modules), root)
        return cls(modules, references=_parse_sources(reference_sources))

    def declarations(self) -> Sequence[ClassDeclaration]:
        return tuple(self._declarations)

    def resolve_declaration(self, declaration: ClassDeclaration) -> TypeDescriptor | None:
        with self._lock:
            if declaration in self._resolved:
                return self._resolved[declaration]
            if declaration in self._in_progress:
                return None
            self._in_progress.add(declaration)
            try:
                descriptor = self._build_descriptor(declaration)
            finally:
                self._in_progress.discard(declaration)
            self._resolved[declaration] = descriptor
            return descriptor

    def get_type_by_name(self, full_name: str) -> TypeDescriptor | None:
        declaration = self._declarations_by_name.get(full_name)
        if declaration is None:
            return None
        return self.resolve_declaration(declaration)

    def _collect_declarations(self, module: SourceModule) -> list[ClassDeclaration]:
        collector = _DeclarationCollector(
            module,
            is_type_checking=lambda test: self._is_type_checking_flag(module, test),
        )
        collector.visit(module.tree)
        return collector.declarations

    def _is_type_checking_flag(self, module: SourceModule, test: ast.expr) -> bool:
        if not isinstance(test, (ast.Name, ast.Attribute)):
            return False
        resolved = self._resolve_symbol(test, _Scope(module=module), seen=frozenset())
        return isinstance(resolved, _ObjectBinding) and resolved.full_name in _TYPE_CHECKING_FLAGS

    def _drop_redefined(self, declarations: list[ClassDeclaration]) -> list[ClassDeclaration]:
        # A name bound by several class statements (if/else branches) keeps
        # the last one, together with the classes nested in it.
        kept: list[ClassDeclaration] = []
        kept_set: set[ClassDeclaration] = set()
        for declaration in declarations:
            is_current = self._declarations_by_name.get(declaration.full_name) is declaration
            parent = declaration.parent
            if is_current and (parent is None or parent in kept_set):
                kept.append(declaration)
                kept_set.add(declaration)
            elif is_current:
                del self._declarations_by_name[declaration.full_name]
        return kept

    def _build_descriptor(self, declaration: ClassDeclaration) -> TypeDescriptor | None:
        node = declaration.node
        scope = self._scope_for(declaration)

        bases: list[BaseListEntry] = []
        for base_node in node.bases:
            reference = self._resolve_type(base_node, scope)
            if reference is None or reference.kind != "class":
                logger.debug(
                    "Cannot resolve base '%s' of '%s'",
                    ast.unparse(base_node),
                    declaration.full_name,
                )
                return None
            bases.append(
                BaseListEntry(type=reference, location=declaration.module.location(base_node)),
            )

        base_names = {entry.type.full_name for entry in bases}
        abstract_members = self._abstract_members(declaration, bases=bases, scope=scope)
        return TypeDescriptor(
            module=declaration.module.name,
            qualname=declaration.qualname,
            accessibility=declaration.accessibility,
            is_abstract=bool(base_names & _PROTOCOL_BASES) or bool(abstract_members),
            type_parameters=self._type_parameters(scope=scope, bases=bases),
            bases=tuple(bases),
            constructors=(self._constructor(declaration, scope=scope),),
            locations=(declaration.location,),
            abstract_members=abstract_members,
        )

    def _scope_for(self, declaration: ClassDeclaration) -> _Scope:
        class_names: dict[str, _ObjectBinding] = {}
        if declaration.parent is not None:
            parent = declaration.parent
            for statement in parent.node.body:
                if isinstance(statement, ast.ClassDef):
                    class_names[statement.name] = _ObjectBinding(
                        module=declaration.module.name,
                        qualname=f"{parent.qualname}.{statement.name}",
                    )
        type_parameters = {
            parameter.name: TypeReference.parameter(declaration.full_name, parameter.name)
            for parameter in getattr(declaration.node, "type_params", ())
        }
        return _Scope(
            module=declaration.module,
            class_names=class_names,
            type_parameters=type_parameters,
        )

    def _type_parameters(
        self,
        *,
        scope: _Scope,
        bases: Sequence[BaseListEntry],
    ) -> tuple[TypeReference, ...]:
        if scope.type_parameters:
            return tuple(scope.type_parameters.values())
        for entry in bases:
            if entry.type.full_name in _GENERIC_BASES | _PROTOCOL_BASES and entry.type.arguments:
                return tuple(
                    argument for argument in entry.type.arguments if argument.is_type_parameter
                )
        parameters: dict[TypeReference, None] = {}
        for entry in bases:
            for parameter in _iter_type_parameters(entry.type):
                parameters.setdefault(parameter, None)
        return tuple(parameters)

    def _abstract_members(
        self,
        declaration: ClassDeclaration,
        *,
        bases: Sequence[BaseListEntry],
        scope: _Scope,
    ) -> frozenset[str]:
        declared_abstract: set[str] = set()
        declared_concrete: set[str] = set()
        for statement in declaration.node.body:
            if isinstance(statement, (ast.FunctionDef, ast.AsyncFunctionDef)):
                decorators = self._decorator_names(statement, scope=scope)
                if decorators & _ABSTRACT_DECORATORS:
                    declared_abstract.add(statement.name)
                else:
                    declared_concrete.add(statement.name)
            elif isinstance(statement, ast.Assign):
                declared_concrete.update(
                    target.id for target in statement.targets if isinstance(target, ast.Name)
                )
            elif isinstance(statement, ast.AnnAssign) and statement.value is not None:
                if isinstance(statement.target, ast.Name):
                    declared_concrete.add(statement.target.id)

        inherited: set[str] = set()
        for entry in bases:
            base = self.get_type_by_name(entry.type.full_name)
            if base is not None:
                inherited.update(base.abstract_members)
        return frozenset(declared_abstract | (inherited - declared_concrete))

    def _constructor(
        self,
        declaration: ClassDeclaration,
        *,
        scope: _Scope,
    ) -> ConstructorDescriptor:
        for statement in declaration.node.body:
            if isinstance(statement, ast.FunctionDef) and statement.name == "__init__":
                decorators = self._decorator_names(statement, scope=scope)
                return ConstructorDescriptor(
                    is_static=bool(decorators & _STATIC_CONSTRUCTOR_DECORATORS),
                )
        return ConstructorDescriptor()

    def _decorator_names(
        self,
        function: ast.FunctionDef | ast.AsyncFunctionDef,
        *,
        scope: _Scope,
    ) -> set[str]:
        names: set[str] = set()
        for decorator in function.decorator_list:
            resolved = self._resolve_symbol(decorator, scope, seen=frozenset())
            if isinstance(resolved, _ObjectBinding):
                names.add(resolved.full_name)
        return names

    def _resolve_type(
        self,
        node: ast.expr,
        scope: _Scope,
        *,
        seen: frozenset[tuple[str, str]] = frozenset(),
    ) -> TypeReference | None:
        if isinstance(node, ast.Constant):
            return self._resolve_constant(node.value, scope, seen=seen)
        if isinstance(node, (ast.Name, ast.Attribute)):
            return _as_type_reference(self._resolve_symbol(node, scope, seen=seen))
        if isinstance(node, ast.Subscript):
            return self._resolve_subscript(node, scope, seen=seen)
        if isinstance(node, ast.BinOp) and isinstance(node.op, ast.BitOr):
            left = self._resolve_type(node.left, scope, seen=seen)
            right = self._resolve_type(node.right, scope, seen=seen)
            if left is None or right is None:
                return None
            members = (*_union_members(left), *_union_members(right))
            return TypeReference(module="typing", qualname="Union", arguments=members)
        if isinstance(node, ast.List):
            elements: list[TypeReference] = []
            for element_node in node.elts:
                element = self._resolve_type(element_node, scope, seen=seen)
                if element is None:
                    return None
                elements.append(element)
            return TypeReference(module="", qualname="", arguments=tuple(elements))
        return None

    def _resolve_constant(
        self,
        value: object,
        scope: _Scope,
        *,
        seen: frozenset[tuple[str, str]],
    ) -> TypeReference | None:
        if value is None:
            return TypeReference(module="builtins", qualname="None")
        if value is Ellipsis:
            return TypeReference(module="builtins", qualname="Ellipsis")
        if isinstance(value, str):
            try:
                expression = ast.parse(value, mode="eval").body
            except SyntaxError:
                return None
            return self._resolve_type(expression, scope, seen=seen)
        return TypeReference.literal(value)

    def _resolve_subscript(
        self,
        node: ast.Subscript,
        scope: _Scope,
        *,
        seen: frozenset[tuple[str, str]],
    ) -> TypeReference | None:
        origin = self._resolve_type(node.value, scope, seen=seen)
        if origin is None or origin.kind != "class":
            return None
        argument_nodes = node.slice.elts if isinstance(node.slice, ast.Tuple) else [node.slice]

        arguments: list[TypeReference] = []
        for argument_node in argument_nodes:
            if origin.full_name in _LITERAL_FORMS and isinstance(argument_node, ast.Constant):
                argument: TypeReference | None = TypeReference.literal(argument_node.value)
            else:
                argument = self._resolve_type(argument_node, scope, seen=seen)
            if argument is None:
                return None
            arguments.append(argument)

        if origin.arguments:
            open_parameters = list(dict.fromkeys(_iter_type_parameters(origin)))
            return origin.substitute(dict(zip(open_parameters, arguments, strict=False)))
        return TypeReference(
            module=origin.module,
            qualname=origin.qualname,
            arguments=tuple(arguments),
        )

    def _resolve_symbol(
        self,
        node: ast.expr,
        scope: _Scope,
        *,
        seen: frozenset[tuple[str, str]],
    ) -> _Resolved | None:
        if isinstance(node, ast.Name):
            if node.id in scope.type_parameters:
                return _TypeVarBinding(scope.type_parameters[node.id])
            if node.id in scope.class_names:
                return scope.class_names[node.id]
            return self._lookup_module_name(scope.module, node.id, seen=seen)
        if isinstance(node, ast.Attribute):
            owner = self._resolve_symbol(node.value, scope, seen=seen)
            return self._resolve_attribute(owner, node.attr, seen=seen)
        if isinstance(node, (ast.Subscript, ast.BinOp, ast.Constant)):
            return self._resolve_type(node, scope, seen=seen)
        return None

    def _resolve_attribute(
        self,
        owner: _Resolved | None,
        attribute: str,
        *,
        seen: frozenset[tuple[str, str]],
    ) -> _Resolved | None:
        if isinstance(owner, _ModuleBinding):
            submodule = f"{owner.module}.{attribute}"
            if submodule in self._known_modules:
                return _ModuleBinding(submodule)
            module = self._modules_by_name.get(owner.module)
            if module is not None:
                resolved = self._lookup_module_name(
                    module,
                    attribute,
                    seen=seen,
                    include_builtins=False,
                )
                if resolved is not None:
                    return resolved
            return _ObjectBinding(module=owner.module, qualname=attribute)
        if isinstance(owner, _ObjectBinding):
            return _ObjectBinding(module=owner.module, qualname=f"{owner.qualname}.{attribute}")
        return None

    def _lookup_module_name(
        self,
        module: SourceModule,
        name: str,
        *,
        seen: frozenset[tuple[str, str]],
        include_builtins: bool = True,
    ) -> _Resolved | None:
        key = (module.name, name)
        if key in seen:
            return None
        seen = seen | {key}

        entry = self._module_symbols(module).get(name)
        if entry is None:
            starred = self._lookup_star_imports(module, name, seen=seen)
            if starred is not None:
                return starred
            if include_builtins and hasattr(builtins, name):
                return _ObjectBinding(module="builtins", qualname=name)
            return None
        if isinstance(entry, _ImportedName):
            return self._resolve_imported_name(entry, seen=seen)
        if isinstance(entry, _AliasBinding):
            return self._resolve_symbol(entry.value, _Scope(module=module), seen=seen)
        return entry

    def _resolve_imported_name(
        self,
        imported: _ImportedName,
        *,
        seen: frozenset[tuple[str, str]],
    ) -> _Resolved | None:
        qualified = f"{imported.source}.{imported.name}"
        if qualified in self._known_modules:
            return _ModuleBinding(qualified)
        source_module = self._modules_by_name.get(imported.source)
        if source_module is None:
            return _ObjectBinding(module=imported.source, qualname=imported.name)
        resolved = self._lookup_module_name(
            source_module,
            imported.name,
            seen=seen,
            include_builtins=False,
        )
        if resolved is None:
            return _ObjectBinding(module=imported.source, qualname=imported.name)
        return resolved

    def _module_symbols(self, module: SourceModule) -> dict[str, _SymbolEntry]:
        symbols = self._symbols.get(module.name)
        if symbols is None:
            symbols = {}
            for statement in _iter_module_statements(module.tree.body):
                symbols.update(_statement_symbols(statement, module=module))
            self._symbols[module.name] = symbols
        return symbols

    def _lookup_star_imports(
        self,
        module: SourceModule,
        name: str,
        *,
        seen: frozenset[tuple[str, str]],
    ) -> _Resolved | None:
        sources = self._star_imports.get(module.name)
        if sources is None:
            sources = _star_import_sources(module)
            self._star_imports[module.name] = sources
        # Later star imports shadow earlier ones.
        for source in reversed(sources):
            source_module = self._modules_by_name.get(source)
            if source_module is None or not self._exports_name(source_module, name):
                continue
            resolved = self._lookup_module_name(
                source_module,
                name,
                seen=seen,
                include_builtins=False,
            )
            if resolved is not None:
                return resolved
        return None

    def _exports_name(self, module: SourceModule, name: str) -> bool:
        if module.name not in self._exports:
            self._exports[module.name] = _declared_exports(module)
        exports = self._exports[module.name]
        if exports is None:
            return not name.startswith("_")
        return name in exports


def _iter_module_statements(statements: Iterable[ast.stmt]) -> Iterator[ast.stmt]:
    for statement in statements:
        yield statement
        if isinstance(statement, (ast.FunctionDef, ast.AsyncFunctionDef, ast.ClassDef)):
            continue
        for field_name in _COMPOUND_BODY_FIELDS:
            yield from _iter_module_statements(getattr(statement, field_name, ()))
        for handler in getattr(statement, "handlers", ()):
            yield from _iter_module_statements(handler.body)


def _statement_symbols(statement: ast.stmt, *, module: SourceModule) -> dict[str, _SymbolEntry]:
    if isinstance(statement, ast.Import):
        return {
            alias.asname or alias.name.split(".")[0]: _ModuleBinding(
                alias.name if alias.asname else alias.name.split(".")[0],
            )
            for alias in statement.names
        }
    if isinstance(statement, ast.ImportFrom):
        source = _import_source(statement, module=module)
        if source is None:
            return {}
        return {
            alias.asname or alias.name: _ImportedName(source=source, name=alias.name)
            for alias in statement.names
            if alias.name != "*"
        }
    if isinstance(statement, ast.ClassDef):
        return {statement.name: _ObjectBinding(module=module.name, qualname=statement.name)}
    if isinstance(statement, ast.Assign) and len(statement.targets) == 1:
        target = statement.targets[0]
        if isinstance(target, ast.Name):
            entry = _assignment_symbol(target.id, statement.value, module=module)
            if entry is not None:
                return {target.id: entry}
    if isinstance(statement, ast.AnnAssign) and statement.value is not None:
        if isinstance(statement.target, ast.Name):
            entry = _assignment_symbol(statement.target.id, statement.value, module=module)
            if entry is not None:
                return {statement.target.id: entry}
    type_alias_node = getattr(ast, "TypeAlias", None)
    if type_alias_node is not None and isinstance(statement, type_alias_node):
        return {statement.name.id: _AliasBinding(statement.value)}
    return {}


def _assignment_symbol(name: str, value: ast.expr, *, module: SourceModule) -> _SymbolEntry | None:
    if isinstance(value, ast.Call):
        factory = value.func
        if isinstance(factory, ast.Name):
            factory_name: str | None = factory.id
        else:
            factory_name = getattr(factory, "attr", None)
        if factory_name in _TYPEVAR_FACTORIES:
            return _TypeVarBinding(TypeReference.parameter(module.name, name))
        return None
    if isinstance(value, (ast.Name, ast.Attribute, ast.Subscript, ast.BinOp)):
        return _AliasBinding(value)
    return None


def _import_source(statement: ast.ImportFrom, *, module: SourceModule) -> str | None:
    if statement.level == 0:
        return statement.module
    package_parts = module.package.split(".") if module.package else []
    if statement.level - 1 > len(package_parts):
        return None
    base_parts = package_parts[: len(package_parts) - (statement.level - 1)]
    if statement.module:
        base_parts.append(statement.module)
    return ".".join(base_parts) or None


def _star_import_sources(module: SourceModule) -> tuple[str, ...]:
    sources: list[str] = []
    for statement in _iter_module_statements(module.tree.body):
        if not isinstance(statement, ast.ImportFrom):
            continue
        if not any(alias.name == "*" for alias in statement.names):
            continue
        source = _import_source(statement, module=module)
        if source is not None:
            sources.append(source)
    return tuple(sources)


def _declared_exports(module: SourceModule) -> frozenset[str] | None:
    """Return the names listed in a literal ``__all__``, or ``None`` without one."""
    exports: set[str] | None = None
    for statement in module.tree.body:
        if isinstance(statement, ast.Assign):
            targets = statement.targets
        elif isinstance(statement, (ast.AnnAssign, ast.AugAssign)):
            targets = [statement.target]
        else:
            continue
        if not any(isinstance(target, ast.Name) and target.id == "__all__" for target in targets):
            continue
        if statement.value is None:
            continue
        if not isinstance(statement.value, (ast.List, ast.Tuple)):
            return None
        names = {
            element.value
            for element in statement.value.elts
            if isinstance(element, ast.Constant) and isinstance(element.value, str)
        }
        if isinstance(statement, ast.AugAssign) and exports is not None:
            exports |= names
        else:
            exports = names
    return frozenset(exports) if exports is not None else None


def _imported_module_names(module: SourceModule) -> set[str]:
    names: set[str] = set()
    for node in ast.walk(module.tree):
        if isinstance(node, ast.Import):
            for alias in node.names:
                parts = alias.name.split(".")
                names.update(".".join(parts[: index + 1]) for index in range(len(parts)))
    return names


def _parse_sources(sources: Mapping[str, str]) -> list[SourceModule]:
    modules: list[SourceModule] = []
    for name in sorted(sources):
        is_package = any(other.startswith(f"{name}.") for other in sources)
        path = name.replace(".", "/") + ("/__init__.py" if is_package else ".py")
        module = _parse_or_skip(name, sources[name], path=path, is_package=is_package)
        if module is not None:
            modules.append(module)
    return modules


def _parse_or_skip(
    name: str,
    source: str | bytes,
    *,
    path: str,
    is_package: bool,
) -> SourceModule | None:
    try:
        return parse_module(name, source, path=path, is_package=is_package)
    except (SyntaxError, ValueError) as error:
        logger.warning("Skipping module '%s' (%s): %s", name, path, error)
        return None


def _as_type_reference(resolved: _Resolved | None) -> TypeReference | None:
    if isinstance(resolved, TypeReference):
        return resolved
    if isinstance(resolved, _ObjectBinding):
        return TypeReference(module=resolved.module, qualname=resolved.qualname)
    if isinstance(resolved, _TypeVarBinding):
        return resolved.reference
    return None


def _iter_type_parameters(reference: TypeReference) -> Iterator[TypeReference]:
    if reference.is_type_parameter:
        yield reference
        return
    for argument in reference.arguments:
        yield from _iter_type_parameters(argument)


def _union_members(reference: TypeReference) -> tuple[TypeReference, ...]:
    if reference.full_name == "typing.Union":
        return reference.arguments
    return (reference,)


__all__ = [
    "ClassDeclaration",
    "SourceModule",
    "SourceTypeCatalog",
    "default_reference_sources",
    "parse_module",
]
