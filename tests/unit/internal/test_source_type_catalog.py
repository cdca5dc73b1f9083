from __future__ import annotations

import logging
from collections.abc import Callable, Mapping
from pathlib import Path

import pytest

from handlerwire import HandlerWireCatalogError, SourceTypeCatalog
from handlerwire._internal.catalog import Accessibility, TypeDescriptor

CatalogFactory = Callable[[Mapping[str, str]], SourceTypeCatalog]


def _resolve(catalog: SourceTypeCatalog, full_name: str) -> TypeDescriptor:
    descriptor = catalog.get_type_by_name(full_name)
    assert descriptor is not None, full_name
    return descriptor


def test_declarations_cover_nested_and_local_classes_in_source_order(
    build_catalog: CatalogFactory,
) -> None:
    catalog = build_catalog(
        {
            "app.models": """
            class Outer:
                class Inner:
                    pass

            def factory():
                class Local:
                    pass
                return Local
            """,
        },
    )

    assert [declaration.full_name for declaration in catalog.declarations()] == [
        "app.models.Outer",
        "app.models.Outer.Inner",
        "app.models.factory.<locals>.Local",
    ]


@pytest.mark.parametrize(
    ("full_name", "accessibility"),
    [
        ("app.models.Public", Accessibility.PUBLIC),
        ("app.models._Internal", Accessibility.INTERNAL),
        ("app.models.Public.Nested", Accessibility.PUBLIC),
        ("app.models.Public._Protected", Accessibility.PROTECTED),
        ("app.models.Public.__Private", Accessibility.PRIVATE),
        ("app.models._Internal.Nested", Accessibility.INTERNAL),
        ("app.models.Public._Protected.Deep", Accessibility.PROTECTED),
        ("app.models.build.<locals>.Local", Accessibility.PRIVATE),
    ],
)
def test_accessibility_follows_naming_and_enclosing_scope(
    build_catalog: CatalogFactory,
    full_name: str,
    accessibility: Accessibility,
) -> None:
    catalog = build_catalog(
        {
            "app.models": """
            class Public:
                class Nested:
                    pass

                class _Protected:
                    class Deep:
                        pass

                class __Private:
                    pass

            class _Internal:
                class Nested:
                    pass

            def build():
                class Local:
                    pass
            """,
        },
    )
    declarations = {declaration.full_name: declaration for declaration in catalog.declarations()}

    descriptor = catalog.resolve_declaration(declarations[full_name])

    assert descriptor is not None
    assert descriptor.accessibility is accessibility


def test_protocol_and_abstract_members_make_types_abstract(build_catalog: CatalogFactory) -> None:
    catalog = build_catalog(
        {
            "app.handlers": """
            import abc
            from typing import Protocol

            from handlerwire import RequestHandler


            class Port(Protocol):
                def send(self) -> None: ...


            class Base(RequestHandler[int, str]):
                @abc.abstractmethod
                def describe(self) -> str: ...

                async def handle(self, request: int) -> str:
                    return self.describe()


            class Unfinished(RequestHandler[int, str]):
                pass


            class Finished(Base):
                def describe(self) -> str:
                    return "done"
            """,
        },
    )

    assert _resolve(catalog, "app.handlers.Port").is_abstract is True
    assert _resolve(catalog, "app.handlers.Base").abstract_members == frozenset({"describe"})
    assert _resolve(catalog, "app.handlers.Unfinished").abstract_members == frozenset({"handle"})
    assert _resolve(catalog, "app.handlers.Finished").is_abstract is False


def test_generic_parameters_from_typevars_and_generic_bases(build_catalog: CatalogFactory) -> None:
    catalog = build_catalog(
        {
            "app.handlers": """
            from typing import Generic, TypeVar

            from handlerwire import RequestHandler

            T = TypeVar("T")
            U = TypeVar("U")


            class Implicit(RequestHandler[T, str]):
                async def handle(self, request: T) -> str:
                    return ""


            class Explicit(RequestHandler[T, U], Generic[U, T]):
                async def handle(self, request: T) -> U:
                    raise NotImplementedError


            class Closed(Implicit[int]):
                pass
            """,
        },
    )

    implicit = _resolve(catalog, "app.handlers.Implicit")
    explicit = _resolve(catalog, "app.handlers.Explicit")
    closed = _resolve(catalog, "app.handlers.Closed")

    assert [parameter.qualname for parameter in implicit.type_parameters] == ["T"]
    assert implicit.is_unbound_generic is True
    assert [parameter.qualname for parameter in explicit.type_parameters] == ["U", "T"]
    assert closed.is_generic is False
    assert [item.type.display_name for item in catalog.all_interfaces(closed)][:2] == [
        "app.handlers.Implicit[builtins.int]",
        "handlerwire.contracts.RequestHandler[builtins.int, builtins.str]",
    ]


def test_names_resolve_through_aliases_relative_imports_and_forward_refs(
    build_catalog: CatalogFactory,
) -> None:
    catalog = build_catalog(
        {
            "app": "",
            "app.messages": """
            class Query:
                pass

            class Answer:
                pass
            """,
            "app.handlers": """
            from typing import Optional

            import handlerwire.contracts as contracts

            from . import messages
            from .messages import Answer as Reply

            Contract = contracts.RequestHandler


            class QueryHandler(Contract["messages.Query", Optional[Reply]]):
                async def handle(self, request):
                    return None


            class UnionHandler(contracts.RequestHandler[int | None, list[Reply]]):
                async def handle(self, request):
                    return []
            """,
        },
    )

    query_handler = _resolve(catalog, "app.handlers.QueryHandler")
    union_handler = _resolve(catalog, "app.handlers.UnionHandler")

    assert query_handler.bases[0].type.display_name == (
        "handlerwire.contracts.RequestHandler"
        "[app.messages.Query, typing.Optional[app.messages.Answer]]"
    )
    assert union_handler.bases[0].type.display_name == (
        "handlerwire.contracts.RequestHandler"
        "[typing.Union[builtins.int, None], builtins.list[app.messages.Answer]]"
    )


def test_nested_class_bases_see_enclosing_class_body(build_catalog: CatalogFactory) -> None:
    catalog = build_catalog(
        {
            "app.feature": """
            from handlerwire import Request, RequestHandler


            class Feature:
                class Command(Request[None]):
                    pass

                class Handler(RequestHandler[Command, None]):
                    async def handle(self, request):
                        return None
            """,
        },
    )

    handler = _resolve(catalog, "app.feature.Feature.Handler")

    assert handler.bases[0].type.display_name == (
        "handlerwire.contracts.RequestHandler[app.feature.Feature.Command, None]"
    )


def test_unresolvable_base_makes_declaration_unresolvable(build_catalog: CatalogFactory) -> None:
    catalog = build_catalog(
        {
            "app.handlers": """
            def make_base():
                return object


            class Dynamic(make_base()):
                pass
            """,
        },
    )

    (declaration,) = catalog.declarations()

    assert catalog.resolve_declaration(declaration) is None


def test_constructor_and_location_details(build_catalog: CatalogFactory) -> None:
    catalog = build_catalog(
        {
            "app.handlers": """
            from handlerwire import RequestHandler


            class Weird(RequestHandler[int, int]):
                @staticmethod
                def __init__():
                    pass

                async def handle(self, request: int) -> int:
                    return request
            """,
        },
    )

    descriptor = _resolve(catalog, "app.handlers.Weird")

    assert [constructor.is_usable for constructor in descriptor.constructors] == [False]
    assert str(descriptor.primary_location) == "app/handlers.py:5:1"
    assert str(descriptor.bases[0].location) == "app/handlers.py:5:13"


def test_modules_with_syntax_errors_are_skipped(
    build_catalog: CatalogFactory,
    caplog: pytest.LogCaptureFixture,
) -> None:
    with caplog.at_level(logging.WARNING, logger="handlerwire._internal.source_catalog"):
        catalog = build_catalog(
            {
                "app.broken": "class Broken(:\n",
                "app.ok": "class Ok(object):\n    pass\n",
            },
        )

    assert [declaration.full_name for declaration in catalog.declarations()] == ["app.ok.Ok"]
    assert "Skipping module 'app.broken'" in caplog.text


def test_from_directory_derives_module_names_from_paths(tmp_path: Path) -> None:
    package = tmp_path / "app"
    package.mkdir()
    (package / "__init__.py").write_text("", encoding="utf-8")
    (package / "handlers.py").write_text("class Handler(object):\n    pass\n", encoding="utf-8")
    skipped = tmp_path / "not-a-module.py"
    skipped.write_text("class Skipped(object):\n    pass\n", encoding="utf-8")

    catalog = SourceTypeCatalog.from_directory(tmp_path)

    assert [declaration.full_name for declaration in catalog.declarations()] == [
        "app.handlers.Handler",
    ]
    assert catalog.get_type_by_name("handlerwire.contracts.RequestHandler") is not None


def test_from_directory_requires_an_existing_directory(tmp_path: Path) -> None:
    with pytest.raises(HandlerWireCatalogError, match="is not a directory"):
        SourceTypeCatalog.from_directory(tmp_path / "missing")


def test_empty_references_hide_the_contract(build_catalog: CatalogFactory) -> None:
    catalog = SourceTypeCatalog.from_sources(
        {"app.handlers": "class A(object):\n    pass\n"},
        references={},
    )

    assert catalog.get_type_by_name("handlerwire.contracts.RequestHandler") is None
    assert build_catalog({}).get_type_by_name("handlerwire.contracts.RequestHandler") is not None


def test_from_directory_decodes_files_by_their_coding_cookie(tmp_path: Path) -> None:
    package = tmp_path / "app"
    package.mkdir()
    (package / "__init__.py").write_text("", encoding="utf-8")
    (package / "legacy.py").write_bytes(
        '# -*- coding: latin-1 -*-\nclass Legacy(object):\n    label = "café"\n'.encode(
            "latin-1",
        ),
    )

    catalog = SourceTypeCatalog.from_directory(tmp_path)

    assert [declaration.full_name for declaration in catalog.declarations()] == [
        "app.legacy.Legacy",
    ]


def test_from_directory_skips_undecodable_files_with_warning(
    tmp_path: Path,
    caplog: pytest.LogCaptureFixture,
) -> None:
    package = tmp_path / "app"
    package.mkdir()
    (package / "__init__.py").write_text("", encoding="utf-8")
    (package / "garbled.py").write_bytes(b"class Garbled(object):\n    label = '\xff\xfe'\n")
    (package / "ok.py").write_text("class Ok(object):\n    pass\n", encoding="utf-8")

    with caplog.at_level(logging.WARNING, logger="handlerwire._internal.source_catalog"):
        catalog = SourceTypeCatalog.from_directory(tmp_path)

    assert [declaration.full_name for declaration in catalog.declarations()] == ["app.ok.Ok"]
    assert "Skipping module 'app.garbled'" in caplog.text


def test_star_imports_from_scanned_modules_resolve(build_catalog: CatalogFactory) -> None:
    catalog = build_catalog(
        {
            "app": "",
            "app.messages": """
            class Ping(object):
                pass


            class _Hidden(object):
                pass
            """,
            "app.handlers": """
            from app.messages import *


            class UsesPing(Ping):
                pass


            class UsesHidden(_Hidden):
                pass
            """,
        },
    )

    descriptor = _resolve(catalog, "app.handlers.UsesPing")

    assert descriptor.bases[0].type.full_name == "app.messages.Ping"
    assert catalog.get_type_by_name("app.handlers.UsesHidden") is None


def test_star_imports_honour_dunder_all(build_catalog: CatalogFactory) -> None:
    catalog = build_catalog(
        {
            "app": "",
            "app.messages": """
            __all__ = ["Ping", "_Exported"]
            __all__ += ["Pong"]


            class Ping(object):
                pass


            class Pong(object):
                pass


            class _Exported(object):
                pass


            class Unlisted(object):
                pass
            """,
            "app.handlers": """
            from .messages import *


            class UsesPong(Pong):
                pass


            class UsesExported(_Exported):
                pass


            class UsesUnlisted(Unlisted):
                pass
            """,
        },
    )

    assert _resolve(catalog, "app.handlers.UsesPong").bases[0].type.full_name == (
        "app.messages.Pong"
    )
    assert _resolve(catalog, "app.handlers.UsesExported").bases[0].type.full_name == (
        "app.messages._Exported"
    )
    assert catalog.get_type_by_name("app.handlers.UsesUnlisted") is None


@pytest.mark.parametrize(
    ("imports", "guard"),
    [
        ("from typing import TYPE_CHECKING", "TYPE_CHECKING"),
        ("import typing", "typing.TYPE_CHECKING"),
        ("import typing_extensions as te", "te.TYPE_CHECKING"),
    ],
)
def test_classes_under_type_checking_guard_are_not_declared(
    build_catalog: CatalogFactory,
    imports: str,
    guard: str,
) -> None:
    catalog = build_catalog(
        {
            "app.handlers": f"{imports}\n\n"
            f"if {guard}:\n"
            "    class StubOnly(object):\n"
            "        pass\n"
            "else:\n"
            "    class RuntimeOnly(object):\n"
            "        pass\n",
        },
    )

    assert [declaration.full_name for declaration in catalog.declarations()] == [
        "app.handlers.RuntimeOnly",
    ]
    assert catalog.get_type_by_name("app.handlers.StubOnly") is None


def test_non_guard_conditions_keep_both_branches(build_catalog: CatalogFactory) -> None:
    catalog = build_catalog(
        {
            "app.handlers": """
            import sys

            DEBUG = False

            if DEBUG:
                class Debugging(object):
                    pass

            if sys.platform == "win32":
                class Windows(object):
                    pass
            else:
                class Posix(object):
                    pass
            """,
        },
    )

    assert [declaration.full_name for declaration in catalog.declarations()] == [
        "app.handlers.Debugging",
        "app.handlers.Windows",
        "app.handlers.Posix",
    ]


def test_class_redefined_in_conditional_branches_is_declared_once(
    build_catalog: CatalogFactory,
) -> None:
    catalog = build_catalog(
        {
            "app.handlers": """
            import sys

            if sys.version_info >= (3, 11):
                class Handler(object):
                    class Options(object):
                        pass
            else:
                class Handler(object):
                    pass
            """,
        },
    )

    (declaration,) = catalog.declarations()

    assert declaration.full_name == "app.handlers.Handler"
    assert declaration.location.line == 9
    descriptor = _resolve(catalog, "app.handlers.Handler")
    assert str(descriptor.primary_location) == "app/handlers.py:9:5"
    assert catalog.get_type_by_name("app.handlers.Handler.Options") is None
