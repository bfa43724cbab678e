"""Resource — declarative description of one exposed entity type."""

from __future__ import annotations

from collections.abc import Mapping
from functools import cached_property
from typing import TYPE_CHECKING, Any, ClassVar

from pydantic import BaseModel

from fastapi_resource_pipeline.components.filters import FilterSpec
from fastapi_resource_pipeline.exceptions import ValidationFailed
from fastapi_resource_pipeline.policy import PolicyEvaluator
from fastapi_resource_pipeline.serializer import Serializer

if TYPE_CHECKING:
    from fastapi_resource_pipeline.component import FlowComponent
    from fastapi_resource_pipeline.context import RequestContext
    from fastapi_resource_pipeline.persistence import Query

ACTIONS = ("list", "show", "create", "update", "destroy")


class Resource:
    """Base class for resource handlers.

    Subclasses set ``name``, ``model`` and ``policy`` and opt into the rest.
    Every whitelist defaults to empty, so a handler that declares nothing
    accepts no input fields, no filters, and renders bare column values.

    Class attributes:
        param_key: nest create/update input under this key of the params.
        permitted_fields: input fields copied onto records on create/update.
        allowed_filters: filter keys accepted from the client.
        filter_mappings: filter key to FilterSpec (or kind string).
        eager_load: associations preloaded on every read.
        included_associations: associations nested into serialized records.
        custom_attributes: computed attributes appended when present.
        skip_auth_for: actions exempt from authentication and authorization.
        schemas: action name to the pydantic model validating its params.
    """

    name: ClassVar[str]
    model: ClassVar[type]
    policy: ClassVar[PolicyEvaluator]

    param_key: ClassVar[str | None] = None
    permitted_fields: ClassVar[tuple[str, ...]] = ()
    allowed_filters: ClassVar[tuple[str, ...]] = ()
    filter_mappings: ClassVar[Mapping[str, FilterSpec | str]] = {}
    eager_load: ClassVar[tuple[str, ...]] = ()
    included_associations: ClassVar[tuple[str, ...]] = ()
    custom_attributes: ClassVar[tuple[str, ...]] = ()
    skip_auth_for: ClassVar[frozenset[str]] = frozenset()
    schemas: ClassVar[Mapping[str, type[BaseModel]]] = {}

    @cached_property
    def serializer(self) -> Serializer:
        return Serializer(
            include=self.included_associations,
            custom_attributes=self.custom_attributes,
        )

    def accessible(self, ctx: RequestContext) -> Query:
        """The collection ``ctx.user`` may act on."""
        return self.policy.scope(ctx.user, ctx.store.collection(self.model))

    def resource_params(self, params: Mapping[str, Any]) -> dict[str, Any]:
        source: Any = params
        if self.param_key is not None:
            source = params.get(self.param_key)
            if not isinstance(source, Mapping):
                raise ValidationFailed({self.param_key: ["is missing"]})
        return {field: source[field] for field in self.permitted_fields if field in source}

    def build(self, ctx: RequestContext, fields: Mapping[str, Any]) -> Any:
        return ctx.store.build(self.model, fields)

    def validate_record(self, record: Any) -> list[str]:
        """Business-rule errors checked before a record is saved."""
        return []

    def components(self, action: str) -> tuple[FlowComponent, ...]:
        """Extra components merged into the flow of ``action``."""
        return ()
