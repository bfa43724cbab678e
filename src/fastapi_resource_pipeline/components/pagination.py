"""Pagination component — Paginate."""

from __future__ import annotations

import math
from typing import Any

from starlette.concurrency import run_in_threadpool

from fastapi_resource_pipeline.component import ComponentCategory, FlowComponent
from fastapi_resource_pipeline.context import RequestContext
from fastapi_resource_pipeline.persistence import Query
from fastapi_resource_pipeline.result import Abort, PaginationMeta, failure


def paginate(query: Query, page: int, per_page: int) -> tuple[list[Any], PaginationMeta]:
    """Fetch one page of ``query``; counts are taken over the whole query."""
    items, total = query.page(page, per_page)
    meta = PaginationMeta(
        current_page=page,
        per_page=per_page,
        total_pages=math.ceil(total / per_page),
        total_count=total,
    )
    return items, meta


class Paginate(FlowComponent):
    """Parses page/per_page from the params and loads one page of ``ctx.query``."""

    category = ComponentCategory.PAGINATION

    async def resolve(self, ctx: RequestContext) -> Abort | None:
        config = ctx.config
        values: dict[str, int] = {}

        for param, default in (
            (config.page_param, 1),
            (config.per_page_param, config.default_per_page),
        ):
            raw = ctx.params.get(param)
            try:
                values[param] = int(raw) if raw not in (None, "") else default
            except (TypeError, ValueError):
                return Abort(failure({param: ["must be an integer"]}, code=400))

        page = max(values[config.page_param], 1)
        per_page = min(max(values[config.per_page_param], 1), config.max_per_page)

        ctx.items, ctx.pagination = await run_in_threadpool(
            paginate, ctx.query, page, per_page
        )
        return None
