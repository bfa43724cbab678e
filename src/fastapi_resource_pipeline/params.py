"""Request parameter collection — query string, JSON body and path params."""

from __future__ import annotations

import re
from typing import Any

from starlette.requests import Request

from fastapi_resource_pipeline.exceptions import ValidationFailed

_BRACKETED = re.compile(r"^(?P<outer>[^\[\]]+)\[(?P<inner>[^\[\]]+)\]$")

_BODY_METHODS = frozenset({"POST", "PUT", "PATCH"})


async def collect_params(request: Request) -> dict[str, Any]:
    """Merge the request's inputs into one mapping.

    ``filters[age]=5,10`` query parameters become ``{"filters": {"age": "5,10"}}``.
    A JSON body object is merged over the query string, path parameters win
    over both.
    """
    params: dict[str, Any] = {}

    for key, value in request.query_params.multi_items():
        match = _BRACKETED.match(key)
        if match is None:
            params[key] = value
            continue
        nested = params.setdefault(match["outer"], {})
        if isinstance(nested, dict):
            nested[match["inner"]] = value

    if request.method in _BODY_METHODS and await request.body():
        try:
            body = await request.json()
        except ValueError:
            body = None
        if not isinstance(body, dict):
            raise ValidationFailed({"body": ["must be a JSON object"]})
        params.update(body)

    params.update(request.path_params)
    return params
