from __future__ import annotations

import logging
from collections.abc import Sequence
from dataclasses import dataclass
from datetime import datetime, timezone
from pathlib import Path
from textwrap import indent

from handlerwire._internal.catalog import TypeReference
from handlerwire._internal.settings import GeneratorSettings
from handlerwire._internal.validation import HandlerRecord

_INDENT = " " * 4
_AUTO_GENERATED_MARKER = "# <auto-generated/>"
_CONTAINER_MODULE = "diwire"
_CONTAINER_PARAMETER = "container"
logger = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class GeneratedUnit:
    """One emitted source module and the stable name it is stored under."""

    name: str
    text: str

    def write_to(self, directory: Path) -> Path:
        """Write the unit into ``directory`` and return the written path.

        Args:
            directory: Existing or to-be-created output directory.

        """
        directory.mkdir(parents=True, exist_ok=True)
        path = directory / self.name
        path.write_text(self.text, encoding="utf-8")
        return path


class HandlerRegistrationRenderer:
    """Render sorted handler records into a registration module.

    The output is built line by line from the records and settings only, so
    identical inputs always produce identical text. The optional timestamp is
    informational and disabled by default.
    """

    def __init__(self, *, settings: GeneratorSettings) -> None:
        self._settings = settings

    def render(
        self,
        records: Sequence[HandlerRecord],
        *,
        contract: TypeReference,
    ) -> GeneratedUnit | None:
        """Return the generated unit for ``records``, or ``None`` when there are none.

        Args:
            records: Accepted handler records, already in their final order.
            contract: Generic definition of the contract handlers are keyed by.

        """
        if not records:
            return None

        blocks = [
            self._render_header(records=records),
            self._render_imports(records=records, contract=contract),
            f'__all__ = ["{self._settings.function_name}"]',
            self._render_function(records=records, contract=contract),
        ]
        text = "\n\n".join(blocks[:3]) + "\n\n\n" + blocks[3] + "\n"
        logger.info(
            "Rendered handler registration module '%s' with %d registrations",
            self._settings.unit_file_name,
            len(records),
        )
        return GeneratedUnit(name=self._settings.unit_file_name, text=text)

    def _render_header(self, *, records: Sequence[HandlerRecord]) -> str:
        lines = [
            _AUTO_GENERATED_MARKER,
            '"""Register discovered request handlers with a diwire container.',
            "",
            f"Generated by: {self._settings.generator_name} v{self._settings.generator_version}",
            f"Handlers discovered: {len(records)}",
        ]
        if self._settings.include_timestamp:
            generated_at = datetime.now(timezone.utc).strftime("%Y-%m-%d %H:%M:%S")
            lines.append(f"Generation time (informational): {generated_at} UTC")
        lines.append('"""')
        return "\n".join(lines)

    def _render_imports(
        self,
        *,
        records: Sequence[HandlerRecord],
        contract: TypeReference,
    ) -> str:
        modules = {_CONTAINER_MODULE, *contract.iter_modules()}
        for record in records:
            modules.update(record.handler_type.reference.iter_modules())
            modules.update(record.input_type.iter_modules())
            modules.update(record.output_type.iter_modules())
        import_lines = [f"import {module}" for module in sorted(modules)]
        return "\n".join(["from __future__ import annotations", "", *import_lines])

    def _render_function(
        self,
        *,
        records: Sequence[HandlerRecord],
        contract: TypeReference,
    ) -> str:
        container_type = f"{_CONTAINER_MODULE}.Container"
        summary = (
            f"Register all {len(records)} discovered request handlers "
            f"as {self._settings.lifetime.lower()} services."
        )
        body_lines = [
            f'"""{summary}',
            "",
            "Args:",
            f"{_INDENT}{_CONTAINER_PARAMETER}: The container to add handlers to.",
            "",
            "Returns:",
            f"{_INDENT}The same container, for chaining.",
            "",
            '"""',
        ]
        for record in records:
            body_lines.extend(self._render_registration(record=record, contract=contract))
        body_lines.append(f"return {_CONTAINER_PARAMETER}")

        signature = (
            f"def {self._settings.function_name}"
            f"({_CONTAINER_PARAMETER}: {container_type}) -> {container_type}:"
        )
        return signature + "\n" + indent("\n".join(body_lines), _INDENT, _has_content)

    def _render_registration(
        self,
        *,
        record: HandlerRecord,
        contract: TypeReference,
    ) -> list[str]:
        closed_contract = TypeReference(
            module=contract.module,
            qualname=contract.qualname,
            arguments=(record.input_type, record.output_type),
        )
        return [
            f"{_CONTAINER_PARAMETER}.{self._settings.registration_method}(",
            f"{_INDENT}{record.handler_type.reference.display_name},",
            f"{_INDENT}provides={closed_contract.display_name},",
            f"{_INDENT}lifetime={_CONTAINER_MODULE}.Lifetime.{self._settings.lifetime},",
            f"{_INDENT}scope={_CONTAINER_MODULE}.Scope.{self._settings.scope},",
            ")",
        ]


def _has_content(line: str) -> bool:
    return bool(line.strip())


__all__ = ["GeneratedUnit", "HandlerRegistrationRenderer"]
