from __future__ import annotations

from handlerwire._internal.catalog import Declaration


def is_candidate(declaration: Declaration) -> bool:
    """Return true when a declaration lists at least one base type.

    This is the cheap syntactic pass run before semantic resolution. Types with
    an empty base list cannot implement the handler contract, so they never
    reach the resolver.

    Args:
        declaration: Syntactic declaration exposing ``base_count``.

    """
    return declaration.base_count > 0


__all__ = ["is_candidate"]
