"""Authorization component — the per-action policy gate."""

from __future__ import annotations

import logging

from starlette.concurrency import run_in_threadpool

from fastapi_resource_pipeline.component import ComponentCategory, FlowComponent
from fastapi_resource_pipeline.context import RequestContext
from fastapi_resource_pipeline.exceptions import PermissionDenied
from fastapi_resource_pipeline.result import Abort

log = logging.getLogger(__name__)


class Authorize(FlowComponent):
    """Asks the resource policy whether ``ctx.user`` may perform ``ctx.action``.

    With ``collection=True`` the target is the scoped, filtered query;
    otherwise it is the loaded or newly built record.
    """

    category = ComponentCategory.AUTHORIZATION

    def __init__(self, *, collection: bool = False) -> None:
        self._collection = collection

    async def resolve(self, ctx: RequestContext) -> Abort | None:
        target = ctx.query if self._collection else ctx.record
        ctx.state["authorized"] = True

        allowed = await run_in_threadpool(
            ctx.resource.policy.authorize, ctx.user, ctx.action, target
        )
        if not allowed:
            log.debug("Policy denied %s on %s", ctx.action, ctx.resource.name)
            return Abort.from_exception(PermissionDenied(), ctx.config.messages)
        return None
