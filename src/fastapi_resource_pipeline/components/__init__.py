"""Built-in flow components."""

from fastapi_resource_pipeline.components.actions import (
    CreateResource,
    DestroyResource,
    ListResources,
    ShowResource,
    UpdateResource,
)
from fastapi_resource_pipeline.components.authentication import (
    Authenticate,
    api_key,
    bearer_token,
    session_cookie,
)
from fastapi_resource_pipeline.components.authorization import Authorize
from fastapi_resource_pipeline.components.filters import (
    ApplyFilters,
    FilterKind,
    FilterSpec,
)
from fastapi_resource_pipeline.components.loading import (
    BuildRecord,
    EagerLoad,
    LoadRecord,
)
from fastapi_resource_pipeline.components.pagination import Paginate
from fastapi_resource_pipeline.components.scope import ScopeCollection
from fastapi_resource_pipeline.components.validation import ValidateInput

__all__ = [
    "ApplyFilters",
    "Authenticate",
    "Authorize",
    "BuildRecord",
    "CreateResource",
    "DestroyResource",
    "EagerLoad",
    "FilterKind",
    "FilterSpec",
    "ListResources",
    "LoadRecord",
    "Paginate",
    "ScopeCollection",
    "ShowResource",
    "UpdateResource",
    "ValidateInput",
    "api_key",
    "bearer_token",
    "session_cookie",
]
