"""FlowComponent abstract base class and ComponentCategory enum."""

from __future__ import annotations

from abc import ABC, abstractmethod
from enum import Enum
from typing import ClassVar

from fastapi_resource_pipeline.context import RequestContext
from fastapi_resource_pipeline.result import PipelineResult


class ComponentCategory(Enum):
    """Pipeline stage categories, defining strict execution order."""

    AUTHENTICATION = "authentication"
    VALIDATION = "validation"
    SCOPE = "scope"
    FILTERS = "filters"
    EAGER_LOAD = "eager_load"
    LOAD = "load"
    AUTHORIZATION = "authorization"
    PAGINATION = "pagination"
    ACTION = "action"

    @property
    def order(self) -> int:
        _ORDER = {
            "authentication": 1,
            "validation": 2,
            "scope": 3,
            "filters": 4,
            "eager_load": 5,
            "load": 6,
            "authorization": 7,
            "pagination": 8,
            "action": 9,
        }
        return _ORDER[self.value]


class FlowComponent(ABC):
    """Base abstraction for all stages of a flow.

    ``resolve`` returns None to let the flow continue, an Abort to stop it
    with a failure envelope, or a Success to finish it.
    """

    category: ClassVar[ComponentCategory]

    @abstractmethod
    async def resolve(self, ctx: RequestContext) -> PipelineResult | None: ...

    @property
    def name(self) -> str:
        return type(self).__name__
