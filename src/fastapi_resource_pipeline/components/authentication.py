"""Authentication — the Authenticate stage and ready-made subject lookups."""

from __future__ import annotations

import logging

from fastapi_resource_pipeline._types import (
    AuthLookup,
    DecodeCallback,
    LookupCallback,
    ValidateCallback,
)
from fastapi_resource_pipeline.component import ComponentCategory, FlowComponent
from fastapi_resource_pipeline.context import RequestContext
from fastapi_resource_pipeline.exceptions import AuthenticationFailed
from fastapi_resource_pipeline.result import Abort

log = logging.getLogger(__name__)


class Authenticate(FlowComponent):
    """Resolves ``ctx.user`` through the configured lookup."""

    category = ComponentCategory.AUTHENTICATION

    async def resolve(self, ctx: RequestContext) -> Abort | None:
        lookup = ctx.config.authenticate
        if lookup is None:
            return None

        try:
            ctx.user = await lookup(ctx)
        except AuthenticationFailed as exc:
            log.debug("Authentication failed: %s", exc.msg)
            ctx.user = None

        if ctx.user is None:
            return Abort.from_exception(AuthenticationFailed(), ctx.config.messages)
        return None


def bearer_token(
    decode: DecodeCallback,
    *,
    scheme: str = "Bearer",
    header: str = "Authorization",
) -> AuthLookup:
    """Lookup that decodes the Bearer token of the Authorization header."""

    async def lookup(ctx: RequestContext) -> object | None:
        auth_value = ctx.request.headers.get(header)
        if not auth_value:
            return None

        parts = auth_value.split(" ", 1)
        if len(parts) != 2 or parts[0] != scheme:
            return None

        try:
            return await decode(parts[1])
        except AuthenticationFailed:
            raise
        except Exception as exc:
            raise AuthenticationFailed() from exc

    return lookup


def session_cookie(lookup: LookupCallback, *, cookie_name: str = "session") -> AuthLookup:
    """Lookup that resolves the subject from a session cookie."""

    async def _lookup(ctx: RequestContext) -> object | None:
        cookie_value = ctx.request.cookies.get(cookie_name)
        if not cookie_value:
            return None

        try:
            return await lookup(cookie_value)
        except AuthenticationFailed:
            raise
        except Exception as exc:
            raise AuthenticationFailed() from exc

    return _lookup


def api_key(validate: ValidateCallback, *, header: str = "X-API-Key") -> AuthLookup:
    """Lookup that validates an API key header."""

    async def lookup(ctx: RequestContext) -> object | None:
        key = ctx.request.headers.get(header)
        if not key:
            return None

        try:
            return await validate(key)
        except AuthenticationFailed:
            raise
        except Exception as exc:
            raise AuthenticationFailed() from exc

    return lookup
