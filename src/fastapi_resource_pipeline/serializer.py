"""Serializer — converts records into plain data."""

from __future__ import annotations

import logging
from collections.abc import Iterable, Mapping, Sequence
from typing import Any

from sqlalchemy import inspect as sa_inspect

log = logging.getLogger(__name__)


def base_attributes(record: Any) -> dict[str, Any]:
    """Column values of a mapped record, or the public attributes of a plain object."""
    if isinstance(record, Mapping):
        return dict(record)

    state = sa_inspect(record, raiseerr=False)
    mapper = getattr(state, "mapper", None)
    if mapper is not None:
        return {attr.key: getattr(record, attr.key) for attr in mapper.column_attrs}

    return {k: v for k, v in vars(record).items() if not k.startswith("_")}


class Serializer:
    """Renders records with nested associations and computed attributes.

    ``include`` names associations rendered with their own base attributes.
    ``custom_attributes`` names accessors read from the record when present;
    callables are invoked without arguments and absent accessors are skipped.
    """

    def __init__(
        self,
        *,
        include: Sequence[str] = (),
        custom_attributes: Sequence[str] = (),
    ) -> None:
        self._include = tuple(include)
        self._custom_attributes = tuple(custom_attributes)

    def serialize(self, data: Any) -> Any:
        if data is None:
            return None
        if isinstance(data, (list, tuple)):
            return [self.serialize_record(item) for item in data]
        return self.serialize_record(data)

    def serialize_record(self, record: Any) -> dict[str, Any]:
        serialized = base_attributes(record)
        for name in self._include:
            serialized[name] = self._nested(getattr(record, name))
        self._append_custom_attributes(serialized, record)
        return serialized

    def _nested(self, related: Any) -> Any:
        if related is None:
            return None
        if isinstance(related, Iterable) and not isinstance(related, (str, Mapping)):
            return [base_attributes(item) for item in related]
        return base_attributes(related)

    def _append_custom_attributes(
        self, serialized: dict[str, Any], record: Any
    ) -> None:
        for name in self._custom_attributes:
            if not hasattr(record, name):
                log.debug("%s has no attribute %r, skipped", type(record).__name__, name)
                continue
            value = getattr(record, name)
            serialized[name] = value() if callable(value) else value
