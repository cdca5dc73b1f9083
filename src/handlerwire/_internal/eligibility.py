from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any

from handlerwire._internal.catalog import TypeCatalog, TypeDescriptor

logger = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class EligibilityResolver:
    """Resolve candidate declarations and keep only types a container can build.

    Rejections are silent: they are logged at debug level and never reported as
    diagnostics.
    """

    catalog: TypeCatalog

    def resolve(self, candidate: Any) -> TypeDescriptor | None:
        """Return the candidate's descriptor when it is eligible for registration.

        Rules are applied in order and the first failing rule rejects the type:
        unresolvable, abstract or static, not public/internal, unbound generic
        definition, generic instantiation with open arguments, no usable
        constructor.

        Args:
            candidate: Declaration returned by ``TypeCatalog.declarations``.

        """
        descriptor = self.catalog.resolve_declaration(candidate)
        if descriptor is None:
            logger.debug("Skipping unresolvable declaration %r", candidate)
            return None
        reason = rejection_reason(descriptor)
        if reason is not None:
            logger.debug("Skipping '%s': %s", descriptor.full_name, reason)
            return None
        return descriptor


def rejection_reason(descriptor: TypeDescriptor) -> str | None:
    """Return why ``descriptor`` cannot be registered, or ``None`` when it can.

    Args:
        descriptor: Resolved type to check.

    """
    if descriptor.is_abstract:
        return "type is abstract"
    if descriptor.is_static:
        return "type is static"
    if not descriptor.accessibility.is_container_visible:
        return f"type is {descriptor.accessibility.value}"
    if descriptor.is_unbound_generic:
        return "type is an unbound generic definition"
    if descriptor.is_generic and any(
        argument.contains_type_parameter() for argument in descriptor.type_arguments
    ):
        return "type is an open generic instantiation"
    if not any(constructor.is_usable for constructor in descriptor.constructors):
        return "type has no usable constructor"
    return None


__all__ = ["EligibilityResolver", "rejection_reason"]
