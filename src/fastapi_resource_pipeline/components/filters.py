"""Filter components — FilterSpec, ApplyFilters."""

from __future__ import annotations

import logging
from collections.abc import Mapping
from dataclasses import dataclass
from enum import Enum
from typing import Any

from fastapi_resource_pipeline.component import ComponentCategory, FlowComponent
from fastapi_resource_pipeline.context import RequestContext
from fastapi_resource_pipeline.exceptions import ValidationFailed
from fastapi_resource_pipeline.persistence import Query
from fastapi_resource_pipeline.result import Abort

log = logging.getLogger(__name__)


class FilterKind(str, Enum):
    """How a whitelisted filter key narrows the query."""

    EXACT = "exact"
    RANGE = "range"
    SUBSTRING = "substring"
    CUSTOM = "custom"


@dataclass(frozen=True)
class FilterSpec:
    """One entry of a resource's filter mappings.

    ``kind`` may be a plain string; kinds outside FilterKind are kept as
    given and ignored at request time. ``method`` names the query operation
    of a custom filter. ``field`` defaults to the filter key.
    """

    kind: FilterKind | str
    method: str | None = None
    field: str | None = None

    def __post_init__(self) -> None:
        if isinstance(self.kind, str) and not isinstance(self.kind, FilterKind):
            try:
                object.__setattr__(self, "kind", FilterKind(self.kind))
            except ValueError:
                pass

    @classmethod
    def exact(cls, field: str | None = None) -> FilterSpec:
        return cls(FilterKind.EXACT, field=field)

    @classmethod
    def range(cls, field: str | None = None) -> FilterSpec:
        return cls(FilterKind.RANGE, field=field)

    @classmethod
    def substring(cls, field: str | None = None) -> FilterSpec:
        return cls(FilterKind.SUBSTRING, field=field)

    @classmethod
    def custom(cls, method: str) -> FilterSpec:
        return cls(FilterKind.CUSTOM, method=method)

    @classmethod
    def coerce(cls, value: FilterSpec | str) -> FilterSpec:
        return value if isinstance(value, FilterSpec) else cls(value)


def permitted_filters(raw: Any, allowed: tuple[str, ...]) -> dict[str, Any]:
    """Keep the whitelisted keys of ``raw``, in the order the client sent them."""
    if not isinstance(raw, Mapping):
        return {}
    return {key: value for key, value in raw.items() if key in allowed}


def split_range(key: str, value: Any) -> tuple[str, str]:
    """Split a ``min,max`` filter value into its two bounds."""
    parts = [part.strip() for part in str(value).split(",")]
    if len(parts) != 2 or not all(parts):
        raise ValidationFailed({key: ["must be a 'min,max' pair"]})
    return parts[0], parts[1]


def apply_filter(query: Query, key: str, value: Any, spec: FilterSpec) -> Query:
    """Narrow ``query`` by one client filter."""
    field = spec.field or key

    if spec.kind is FilterKind.EXACT:
        return query.where_equal(field, value)
    if spec.kind is FilterKind.RANGE:
        low, high = split_range(key, value)
        return query.where_between(field, low, high)
    if spec.kind is FilterKind.SUBSTRING:
        return query.where_like(field, f"%{value}%")
    if spec.kind is FilterKind.CUSTOM and spec.method:
        return query.apply(spec.method, value)

    log.warning("Ignoring filter %r with unsupported kind %r", key, spec.kind)
    return query


class ApplyFilters(FlowComponent):
    """Applies the request's whitelisted ``filters`` to ``ctx.query``."""

    category = ComponentCategory.FILTERS

    async def resolve(self, ctx: RequestContext) -> Abort | None:
        resource = ctx.resource
        filters = permitted_filters(ctx.params.get("filters"), resource.allowed_filters)

        query = ctx.query
        for key, value in filters.items():
            spec = resource.filter_mappings.get(key)
            if spec is None:
                continue
            try:
                query = apply_filter(query, key, value, FilterSpec.coerce(spec))
            except ValidationFailed as exc:
                return Abort.from_exception(exc, ctx.config.messages)

        ctx.query = query
        ctx.state["filters"] = filters
        return None
