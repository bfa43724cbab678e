"""Flow class — ordered container and execution plan for FlowComponents."""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING

from fastapi_resource_pipeline.component import ComponentCategory, FlowComponent

if TYPE_CHECKING:
    from fastapi_resource_pipeline.hooks import FlowHook


@dataclass(frozen=True)
class ResolvedFlow:
    """Immutable, pre-computed execution plan."""

    components: tuple[FlowComponent, ...]
    hooks: tuple[FlowHook, ...] = ()
    debug: bool = False

    @property
    def categories(self) -> tuple[ComponentCategory, ...]:
        return tuple(component.category for component in self.components)


class Flow:
    """Ordered container of FlowComponent instances."""

    def __init__(self, *components: FlowComponent | Flow, debug: bool = False) -> None:
        self._items: list[FlowComponent | Flow] = list(components)
        self._hooks: list[FlowHook] = []
        self._debug = debug
        self._resolved: ResolvedFlow | None = None

    def add(self, *components: FlowComponent | Flow) -> Flow:
        self._items.extend(components)
        self._resolved = None
        return self

    def add_hook(self, hook: FlowHook) -> Flow:
        self._hooks.append(hook)
        self._resolved = None
        return self

    def without(self, *categories: ComponentCategory) -> Flow:
        """Return a copy of this flow with every component of ``categories`` removed."""
        flat: list[FlowComponent] = []
        self._flatten(self._items, flat)
        flow = Flow(
            *(c for c in flat if c.category not in categories), debug=self._debug
        )
        flow._hooks = list(self._hooks)
        return flow

    def resolve(self) -> ResolvedFlow:
        if self._resolved is not None:
            return self._resolved

        flat: list[FlowComponent] = []
        self._flatten(self._items, flat)

        sorted_components = sorted(flat, key=lambda c: c.category.order)

        self._resolved = ResolvedFlow(
            components=tuple(sorted_components),
            hooks=tuple(self._hooks),
            debug=self._debug,
        )
        return self._resolved

    @staticmethod
    def _flatten(items: list[FlowComponent | Flow], out: list[FlowComponent]) -> None:
        for item in items:
            if isinstance(item, Flow):
                Flow._flatten(item._items, out)
            elif isinstance(item, FlowComponent):
                out.append(item)
