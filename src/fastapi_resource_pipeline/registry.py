"""ResourceRegistry — startup-time mapping of resource names to handlers."""

from __future__ import annotations

import logging
from collections.abc import Iterator
from typing import TypeVar

from pydantic import BaseModel

from fastapi_resource_pipeline.components.filters import FilterKind, FilterSpec
from fastapi_resource_pipeline.exceptions import ConfigurationError
from fastapi_resource_pipeline.policy import PolicyEvaluator
from fastapi_resource_pipeline.resource import ACTIONS, Resource

log = logging.getLogger(__name__)

R = TypeVar("R", bound=Resource)


def check_resource(resource: Resource) -> None:
    """Raise ConfigurationError if ``resource`` is declared inconsistently."""
    label = type(resource).__name__

    if not getattr(resource, "name", None):
        raise ConfigurationError(f"{label} declares no name")
    if getattr(resource, "model", None) is None:
        raise ConfigurationError(f"{label} declares no model")
    if not isinstance(getattr(resource, "policy", None), PolicyEvaluator):
        raise ConfigurationError(f"{label} declares no policy")

    unknown = set(resource.skip_auth_for) - set(ACTIONS)
    if unknown:
        raise ConfigurationError(f"{label}.skip_auth_for names unknown actions {sorted(unknown)}")

    for action, schema in resource.schemas.items():
        if action not in ACTIONS:
            raise ConfigurationError(f"{label}.schemas names unknown action {action!r}")
        if not (isinstance(schema, type) and issubclass(schema, BaseModel)):
            raise ConfigurationError(f"{label}.schemas[{action!r}] is not a pydantic model")

    for key, value in resource.filter_mappings.items():
        spec = FilterSpec.coerce(value)
        if spec.kind is FilterKind.CUSTOM and not spec.method:
            raise ConfigurationError(f"{label} custom filter {key!r} declares no method")
        if not isinstance(spec.kind, FilterKind):
            log.warning("%s filter %r has unsupported kind %r", label, key, spec.kind)


class ResourceRegistry:
    """Explicit registry of resource handlers, frozen before traffic begins."""

    def __init__(self, *resources: Resource) -> None:
        self._resources: dict[str, Resource] = {}
        self._frozen = False
        for resource in resources:
            self.register(resource)

    def register(self, resource: R | type[R]) -> R | type[R]:
        """Register a handler instance or class; usable as a class decorator."""
        if self._frozen:
            raise ConfigurationError("registry is frozen")

        instance = resource() if isinstance(resource, type) else resource
        check_resource(instance)
        if instance.name in self._resources:
            raise ConfigurationError(f"resource {instance.name!r} is already registered")

        self._resources[instance.name] = instance
        return resource

    def freeze(self) -> ResourceRegistry:
        self._frozen = True
        return self

    @property
    def frozen(self) -> bool:
        return self._frozen

    def get(self, name: str) -> Resource:
        try:
            return self._resources[name]
        except KeyError:
            raise ConfigurationError(f"unknown resource {name!r}") from None

    def __contains__(self, name: object) -> bool:
        return name in self._resources

    def __iter__(self) -> Iterator[Resource]:
        return iter(self._resources.values())

    def __len__(self) -> int:
        return len(self._resources)
