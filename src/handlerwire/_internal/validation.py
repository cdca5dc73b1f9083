from __future__ import annotations

from dataclasses import dataclass

from handlerwire._internal.catalog import ContractInstantiation, TypeDescriptor, TypeReference
from handlerwire._internal.diagnostics import ARITY_MISMATCH, DUPLICATE_HANDLER, DiagnosticBag

CONTRACT_ARITY = 2
_SIGNATURE_SEPARATOR = "|"


@dataclass(frozen=True, slots=True)
class HandlerRecord:
    """An accepted handler together with the request and response it handles."""

    handler_type: TypeDescriptor
    input_type: TypeReference
    output_type: TypeReference

    @property
    def handler_name(self) -> str:
        return self.handler_type.full_name

    @property
    def signature(self) -> str:
        return handler_signature(self.input_type, self.output_type)


def handler_signature(input_type: TypeReference, output_type: TypeReference) -> str:
    """Return the duplicate-detection key for an input/output pair.

    Args:
        input_type: Request type handled.
        output_type: Response type produced.

    """
    return f"{input_type.display_name}{_SIGNATURE_SEPARATOR}{output_type.display_name}"


class HandlerValidator:
    """Check contract arity and flag duplicate signatures within one run.

    Duplicates are warned about but still accepted; deciding which registration
    wins is left to the container.
    """

    def __init__(self, *, diagnostics: DiagnosticBag) -> None:
        self._diagnostics = diagnostics
        self._seen_signatures: set[str] = set()

    def accept(
        self,
        descriptor: TypeDescriptor,
        instantiation: ContractInstantiation,
    ) -> HandlerRecord | None:
        """Return a record for a well-formed instantiation, reporting problems.

        Args:
            descriptor: Eligible handler type.
            instantiation: One contract implementation found on ``descriptor``.

        Returns:
            The accepted record, or ``None`` when the instantiation does not have
            exactly two type arguments.

        """
        if instantiation.arity != CONTRACT_ARITY:
            self._diagnostics.report(
                ARITY_MISMATCH.create(
                    instantiation.location or descriptor.primary_location,
                    descriptor.full_name,
                    instantiation.origin,
                    instantiation.arity,
                ),
            )
            return None

        input_type, output_type = instantiation.type_arguments
        signature = handler_signature(input_type, output_type)
        if signature in self._seen_signatures:
            self._diagnostics.report(
                DUPLICATE_HANDLER.create(
                    instantiation.location or descriptor.primary_location,
                    input_type.display_name,
                    output_type.display_name,
                    descriptor.full_name,
                ),
            )
        else:
            self._seen_signatures.add(signature)

        return HandlerRecord(
            handler_type=descriptor,
            input_type=input_type,
            output_type=output_type,
        )


__all__ = ["CONTRACT_ARITY", "HandlerRecord", "HandlerValidator", "handler_signature"]
