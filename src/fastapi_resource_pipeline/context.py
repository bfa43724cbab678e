"""RequestContext — per-request state container."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any

from pydantic import BaseModel
from starlette.requests import Request

from fastapi_resource_pipeline.config import PipelineConfig
from fastapi_resource_pipeline.result import PaginationMeta

if TYPE_CHECKING:
    from fastapi_resource_pipeline.persistence import Query, Store
    from fastapi_resource_pipeline.resource import Resource


@dataclass
class RequestContext:
    """Lightweight per-request state container mutated by flow components.

    Stages fill it in order: ``user`` after authentication, ``validated``
    after schema validation, ``query`` once scoped and filtered, ``record``
    for single-item actions, ``items``/``pagination`` for lists.
    """

    request: Request
    resource: Resource
    action: str
    config: PipelineConfig = field(default_factory=PipelineConfig)
    store: Store | None = None
    params: dict[str, Any] = field(default_factory=dict)
    user: Any | None = None
    validated: BaseModel | None = None
    query: Query | None = None
    record: Any | None = None
    items: list[Any] = field(default_factory=list)
    pagination: PaginationMeta | None = None
    state: dict[str, Any] = field(default_factory=dict)
