"""Shared type aliases and protocols."""

from __future__ import annotations

from collections.abc import Awaitable, Callable
from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from fastapi_resource_pipeline.context import RequestContext

# Resolves the current subject of a request, or None
AuthLookup = Callable[["RequestContext"], Awaitable[Any]]

# Callback types used by the built-in lookups
DecodeCallback = Callable[[str], Awaitable[Any]]
LookupCallback = Callable[[str], Awaitable[Any]]
ValidateCallback = Callable[[str], Awaitable[Any]]
