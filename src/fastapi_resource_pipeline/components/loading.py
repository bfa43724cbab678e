"""Loading components — EagerLoad, LoadRecord, BuildRecord."""

from __future__ import annotations

from starlette.concurrency import run_in_threadpool

from fastapi_resource_pipeline.component import ComponentCategory, FlowComponent
from fastapi_resource_pipeline.context import RequestContext
from fastapi_resource_pipeline.exceptions import ResourceNotFound
from fastapi_resource_pipeline.result import Abort


class EagerLoad(FlowComponent):
    """Preloads the resource's ``eager_load`` associations on ``ctx.query``."""

    category = ComponentCategory.EAGER_LOAD

    async def resolve(self, ctx: RequestContext) -> None:
        associations = ctx.resource.eager_load
        if associations:
            ctx.query = ctx.query.includes(*associations)


class LoadRecord(FlowComponent):
    """Finds the addressed record inside the accessible set.

    A record that does not exist and one the subject cannot reach produce
    the same 403 envelope.
    """

    category = ComponentCategory.LOAD

    def __init__(self, *, id_param: str = "id") -> None:
        self._id_param = id_param

    async def resolve(self, ctx: RequestContext) -> Abort | None:
        ident = ctx.params.get(self._id_param)
        record = None
        if ident is not None:
            record = await run_in_threadpool(ctx.query.find, ident)
        if record is None:
            return Abort.from_exception(ResourceNotFound(), ctx.config.messages)
        ctx.record = record
        return None


def _build(ctx: RequestContext) -> object:
    fields = ctx.resource.resource_params(ctx.params)
    return ctx.resource.build(ctx, fields)


class BuildRecord(FlowComponent):
    """Constructs an unsaved record from the permitted input fields."""

    category = ComponentCategory.LOAD

    async def resolve(self, ctx: RequestContext) -> None:
        ctx.record = await run_in_threadpool(_build, ctx)
