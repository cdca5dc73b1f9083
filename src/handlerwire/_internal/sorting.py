from __future__ import annotations

from collections.abc import Iterable

from handlerwire._internal.validation import HandlerRecord


def sort_handler_records(records: Iterable[HandlerRecord]) -> tuple[HandlerRecord, ...]:
    """Order records by the handler's fully-qualified name.

    Python compares strings by code point, which is the ordinal, culture
    independent order the generated output is keyed on. The sort is stable, so
    records of one handler keep the order their contract implementations were
    discovered in.

    Args:
        records: Accepted handler records in discovery order.

    """
    return tuple(sorted(records, key=lambda record: record.handler_name))


__all__ = ["sort_handler_records"]
