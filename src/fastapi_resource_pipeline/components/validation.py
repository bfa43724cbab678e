"""Validation component — runs the per-action pydantic schema."""

from __future__ import annotations

from pydantic import ValidationError

from fastapi_resource_pipeline.component import ComponentCategory, FlowComponent
from fastapi_resource_pipeline.context import RequestContext
from fastapi_resource_pipeline.result import Abort, failure


def error_messages(exc: ValidationError) -> dict[str, list[str]]:
    """Group pydantic errors by dotted field path."""
    errors: dict[str, list[str]] = {}
    for error in exc.errors():
        field = ".".join(str(part) for part in error["loc"]) or "__root__"
        errors.setdefault(field, []).append(error["msg"])
    return errors


class ValidateInput(FlowComponent):
    """Validates ``ctx.params`` against ``resource.schemas[action]`` if registered."""

    category = ComponentCategory.VALIDATION

    async def resolve(self, ctx: RequestContext) -> Abort | None:
        schema = ctx.resource.schemas.get(ctx.action)
        if schema is None:
            return None

        try:
            ctx.validated = schema.model_validate(ctx.params)
        except ValidationError as exc:
            return Abort(failure(error_messages(exc), code=400))
        return None
