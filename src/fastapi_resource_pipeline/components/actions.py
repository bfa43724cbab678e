"""Action components — the terminal stage of each action flow.

Persistence and serialization touch the store, so they run in the
threadpool and leave the event loop free for other requests.
"""

from __future__ import annotations

from starlette.concurrency import run_in_threadpool

from fastapi_resource_pipeline.component import ComponentCategory, FlowComponent
from fastapi_resource_pipeline.context import RequestContext
from fastapi_resource_pipeline.result import (
    Abort,
    PipelineResult,
    Success,
    failure,
    success,
)


def persist(ctx: RequestContext) -> PipelineResult:
    """Save ``ctx.record`` and answer with it, or with the joined errors."""
    errors = list(ctx.resource.validate_record(ctx.record))
    if not errors:
        errors = ctx.store.save(ctx.record)
    if errors:
        return Abort(failure(", ".join(errors)))

    data = ctx.resource.serializer.serialize(ctx.record)
    return Success(success(data, msg=ctx.config.messages.success))


def _update(ctx: RequestContext) -> PipelineResult:
    ctx.store.assign(ctx.record, ctx.resource.resource_params(ctx.params))
    return persist(ctx)


class ListResources(FlowComponent):
    category = ComponentCategory.ACTION

    async def resolve(self, ctx: RequestContext) -> Success:
        data = await run_in_threadpool(ctx.resource.serializer.serialize, ctx.items)
        return Success(
            success(data, msg=ctx.config.messages.success, pagination=ctx.pagination)
        )


class ShowResource(FlowComponent):
    category = ComponentCategory.ACTION

    async def resolve(self, ctx: RequestContext) -> Success:
        data = await run_in_threadpool(ctx.resource.serializer.serialize, ctx.record)
        return Success(success(data, msg=ctx.config.messages.success))


class CreateResource(FlowComponent):
    category = ComponentCategory.ACTION

    async def resolve(self, ctx: RequestContext) -> PipelineResult:
        return await run_in_threadpool(persist, ctx)


class UpdateResource(FlowComponent):
    """Applies the permitted input fields to the loaded record, then saves it."""

    category = ComponentCategory.ACTION

    async def resolve(self, ctx: RequestContext) -> PipelineResult:
        return await run_in_threadpool(_update, ctx)


class DestroyResource(FlowComponent):
    category = ComponentCategory.ACTION

    async def resolve(self, ctx: RequestContext) -> Success:
        await run_in_threadpool(ctx.store.delete, ctx.record)
        return Success(success(None, msg=ctx.config.messages.deleted))
