from __future__ import annotations

from abc import abstractmethod
from typing import Generic, Protocol, TypeVar

TInput = TypeVar("TInput", contravariant=True)
TOutput = TypeVar("TOutput", covariant=True)


class Request(Generic[TOutput]):
    """Mark a request type and the response type its handler produces.

    Subclass ``Request[SomeResponse]`` for request payloads. The marker carries
    no behavior; it documents the pairing handlers are expected to honor.
    """


class RequestHandler(Protocol[TInput, TOutput]):
    """Handle one request type and produce one response type.

    Concrete, constructible subclasses of ``RequestHandler[SomeRequest, SomeResponse]``
    are discovered at build time and registered as scoped services keyed by the
    closed contract type.

    Examples:
        .. code-block:: python

            class Ping(Request[str]):
                pass


            class PingHandler(RequestHandler[Ping, str]):
                async def handle(self, request: Ping) -> str:
                    return "pong"

    """

    @abstractmethod
    async def handle(self, request: TInput) -> TOutput:
        """Handle ``request`` and return its response.

        Args:
            request: Request payload to handle.

        """
