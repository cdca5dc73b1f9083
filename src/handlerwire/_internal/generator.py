from __future__ import annotations

import logging
import threading
from collections.abc import Sequence
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass
from typing import Any

from handlerwire._internal.candidates import is_candidate
from handlerwire._internal.catalog import ContractInstantiation, TypeCatalog, TypeDescriptor
from handlerwire._internal.diagnostics import MISSING_TARGET_CONTRACT, Diagnostic, DiagnosticBag
from handlerwire._internal.eligibility import EligibilityResolver
from handlerwire._internal.emitter import GeneratedUnit, HandlerRegistrationRenderer
from handlerwire._internal.matching import InterfaceMatcher
from handlerwire._internal.settings import GeneratorSettings
from handlerwire._internal.sorting import sort_handler_records
from handlerwire._internal.validation import HandlerRecord, HandlerValidator
from handlerwire.exceptions import GenerationCancelledError

logger = logging.getLogger(__name__)


class CancellationToken:
    """Let a host abandon an in-flight generation run.

    The token is thread-safe and may be cancelled from any thread. Once
    cancelled it stays cancelled.
    """

    def __init__(self) -> None:
        self._event = threading.Event()

    def cancel(self) -> None:
        self._event.set()

    @property
    def is_cancelled(self) -> bool:
        return self._event.is_set()

    def raise_if_cancelled(self) -> None:
        """Raise ``GenerationCancelledError`` when the token has been cancelled."""
        if self._event.is_set():
            msg = "Handler registration generation was cancelled."
            raise GenerationCancelledError(msg)


@dataclass(frozen=True, slots=True)
class GenerationResult:
    """Outcome of one generation run."""

    unit: GeneratedUnit | None
    diagnostics: tuple[Diagnostic, ...]
    handlers: tuple[HandlerRecord, ...]


@dataclass(frozen=True, slots=True)
class _CandidateMatches:
    descriptor: TypeDescriptor
    instantiations: tuple[ContractInstantiation, ...]


class HandlerRegistrationGenerator:
    """Discover request handlers in a catalog and emit their registration module.

    One ``run`` is a pure function of the catalog snapshot and the settings:
    candidates are filtered, resolved and matched independently, then validated
    and sorted together before a single module is rendered.
    """

    def __init__(self, settings: GeneratorSettings | None = None) -> None:
        self._settings = settings if settings is not None else GeneratorSettings()
        self._renderer = HandlerRegistrationRenderer(settings=self._settings)

    @property
    def settings(self) -> GeneratorSettings:
        return self._settings

    def run(
        self,
        catalog: TypeCatalog,
        *,
        cancellation: CancellationToken | None = None,
    ) -> GenerationResult:
        """Run discovery, validation and emission over ``catalog``.

        Args:
            catalog: Snapshot of declared and referenced types.
            cancellation: Optional token checked between candidates and before
                emission.

        Returns:
            The generated unit (``None`` when no handler was accepted), the
            diagnostics reported during the run, and the accepted handlers in
            emission order.

        Raises:
            GenerationCancelledError: If ``cancellation`` is cancelled during the run.

        """
        token = cancellation if cancellation is not None else CancellationToken()
        token.raise_if_cancelled()
        diagnostics = DiagnosticBag()

        target = catalog.get_type_by_name(self._settings.target_contract)
        if target is None:
            diagnostics.report(MISSING_TARGET_CONTRACT.create(None, self._settings.target_contract))
            logger.warning(
                "Handler contract '%s' not found; no handlers generated",
                self._settings.target_contract,
            )
            return GenerationResult(unit=None, diagnostics=diagnostics.to_tuple(), handlers=())

        candidates = [
            declaration for declaration in catalog.declarations() if is_candidate(declaration)
        ]
        logger.info(
            "Handler discovery strategy: declaration_count=%d candidate_count=%d max_workers=%d",
            len(catalog.declarations()),
            len(candidates),
            self._settings.max_workers,
        )
        matches = self._match_candidates(
            catalog=catalog,
            target=target,
            candidates=candidates,
            token=token,
        )

        validator = HandlerValidator(diagnostics=diagnostics)
        records: list[HandlerRecord] = []
        for candidate_matches in matches:
            for instantiation in candidate_matches.instantiations:
                record = validator.accept(candidate_matches.descriptor, instantiation)
                if record is not None:
                    records.append(record)

        ordered = sort_handler_records(records)
        token.raise_if_cancelled()
        unit = self._renderer.render(ordered, contract=target.reference)
        logger.info(
            "Handler discovery finished: handler_count=%d diagnostic_count=%d",
            len(ordered),
            len(diagnostics),
        )
        return GenerationResult(unit=unit, diagnostics=diagnostics.to_tuple(), handlers=ordered)

    def _match_candidates(
        self,
        *,
        catalog: TypeCatalog,
        target: TypeDescriptor,
        candidates: Sequence[Any],
        token: CancellationToken,
    ) -> list[_CandidateMatches]:
        resolver = EligibilityResolver(catalog=catalog)
        matcher = InterfaceMatcher(catalog=catalog, target=target)

        def match_one(candidate: Any) -> _CandidateMatches | None:
            token.raise_if_cancelled()
            descriptor = resolver.resolve(candidate)
            if descriptor is None:
                return None
            return _CandidateMatches(
                descriptor=descriptor,
                instantiations=tuple(matcher.match(descriptor)),
            )

        if self._settings.max_workers > 1 and len(candidates) > 1:
            with ThreadPoolExecutor(
                max_workers=self._settings.max_workers,
                thread_name_prefix="handlerwire",
            ) as executor:
                results = list(executor.map(match_one, candidates))
        else:
            results = [match_one(candidate) for candidate in candidates]
        return [result for result in results if result is not None]


__all__ = [
    "CancellationToken",
    "GenerationResult",
    "HandlerRegistrationGenerator",
]
