from __future__ import annotations

from dataclasses import dataclass

from handlerwire._internal.catalog import ContractInstantiation, TypeCatalog, TypeDescriptor


@dataclass(frozen=True, slots=True)
class InterfaceMatcher:
    """Find every instantiation of the target contract a type implements.

    ``target`` is the resolved contract definition, looked up once per run.
    """

    catalog: TypeCatalog
    target: TypeDescriptor

    def match(self, descriptor: TypeDescriptor) -> list[ContractInstantiation]:
        """Return one instantiation per distinct implementation of the contract.

        Inherited implementations count. A type implementing the contract with
        two different argument lists yields two instantiations.

        Args:
            descriptor: Eligible type to inspect.

        """
        matches: list[ContractInstantiation] = []
        for implemented in self.catalog.all_interfaces(descriptor):
            if implemented.type.kind != "class":
                continue
            if implemented.type.full_name != self.target.full_name:
                continue
            location = implemented.via.location or descriptor.primary_location
            matches.append(
                ContractInstantiation(
                    origin=self.target.full_name,
                    type_arguments=implemented.type.arguments,
                    location=location,
                ),
            )
        return matches


__all__ = ["InterfaceMatcher"]
