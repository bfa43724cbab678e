"""Scope component — narrows the collection to the accessible set."""

from __future__ import annotations

from starlette.concurrency import run_in_threadpool

from fastapi_resource_pipeline.component import ComponentCategory, FlowComponent
from fastapi_resource_pipeline.context import RequestContext


class ScopeCollection(FlowComponent):
    """Sets ``ctx.query`` to the policy-scoped collection of the resource."""

    category = ComponentCategory.SCOPE

    async def resolve(self, ctx: RequestContext) -> None:
        ctx.query = await run_in_threadpool(ctx.resource.accessible, ctx)
        ctx.state["policy_scoped"] = True
