"""Shared pytest fixtures for handlerwire tests."""

from __future__ import annotations

import os
import textwrap
from collections.abc import Callable, Mapping

import pytest

from handlerwire import GeneratorSettings, SourceTypeCatalog

MESSAGES_SOURCE = """
from dataclasses import dataclass

from handlerwire import Request


@dataclass
class Ping(Request[str]):
    message: str


@dataclass
class User:
    name: str


@dataclass
class GetUser(Request[User]):
    user_id: int
"""

HANDLERS_SOURCE = """
from app.messages import GetUser, Ping, User
from handlerwire import RequestHandler


class PingHandler(RequestHandler[Ping, str]):
    async def handle(self, request: Ping) -> str:
        return request.message


class GetUserHandler(RequestHandler[GetUser, User]):
    async def handle(self, request: GetUser) -> User:
        return User(name=f"user-{request.user_id}")
"""


@pytest.fixture(autouse=True)
def _isolate_handlerwire_environment(monkeypatch: pytest.MonkeyPatch) -> None:
    """Keep HANDLERWIRE_* variables of the host from leaking into settings."""
    for name in list(os.environ):
        if name.startswith("HANDLERWIRE_"):
            monkeypatch.delenv(name)


@pytest.fixture()
def settings() -> GeneratorSettings:
    """Default generator settings."""
    return GeneratorSettings()


@pytest.fixture()
def build_catalog() -> Callable[[Mapping[str, str]], SourceTypeCatalog]:
    """Build a source catalog from dedented module sources."""

    def _build(sources: Mapping[str, str]) -> SourceTypeCatalog:
        return SourceTypeCatalog.from_sources(
            {name: textwrap.dedent(source) for name, source in sources.items()},
        )

    return _build


@pytest.fixture()
def app_sources() -> dict[str, str]:
    """A small application with two handlers and their messages."""
    return {
        "app": "",
        "app.messages": MESSAGES_SOURCE,
        "app.handlers": HANDLERS_SOURCE,
    }
