"""FastAPI Resource Pipeline - RESTful resource actions as composable request flows."""

from fastapi_resource_pipeline.component import ComponentCategory, FlowComponent
from fastapi_resource_pipeline.components import (
    ApplyFilters,
    Authenticate,
    Authorize,
    BuildRecord,
    CreateResource,
    DestroyResource,
    EagerLoad,
    FilterKind,
    FilterSpec,
    ListResources,
    LoadRecord,
    Paginate,
    ScopeCollection,
    ShowResource,
    UpdateResource,
    ValidateInput,
    api_key,
    bearer_token,
    session_cookie,
)
from fastapi_resource_pipeline.config import Messages, PipelineConfig
from fastapi_resource_pipeline.context import RequestContext
from fastapi_resource_pipeline.dispatch import ResourcePipeline, build_flow, render
from fastapi_resource_pipeline.exceptions import (
    AuthenticationFailed,
    BusinessRuleViolation,
    ConfigurationError,
    PermissionDenied,
    PipelineAbort,
    PipelineException,
    PipelineInternalError,
    ResourceNotFound,
    ValidationFailed,
)
from fastapi_resource_pipeline.flow import Flow, ResolvedFlow
from fastapi_resource_pipeline.hooks import (
    AfterComponent,
    AfterFlow,
    BeforeFlow,
    FlowHook,
)
from fastapi_resource_pipeline.persistence import (
    DataSource,
    Query,
    SQLAlchemyDataSource,
    SQLAlchemyQuery,
    SQLAlchemyStore,
    Store,
)
from fastapi_resource_pipeline.policy import AllowAll, Policy, PolicyEvaluator
from fastapi_resource_pipeline.registry import ResourceRegistry
from fastapi_resource_pipeline.resource import ACTIONS, Resource
from fastapi_resource_pipeline.result import (
    Abort,
    Envelope,
    PaginationMeta,
    PipelineResult,
    Success,
    failure,
    success,
)
from fastapi_resource_pipeline.serializer import Serializer
from fastapi_resource_pipeline.trace import FlowTrace, TraceEntry

__all__ = [
    "ACTIONS",
    "Abort",
    "AfterComponent",
    "AfterFlow",
    "AllowAll",
    "ApplyFilters",
    "Authenticate",
    "AuthenticationFailed",
    "Authorize",
    "BeforeFlow",
    "BuildRecord",
    "BusinessRuleViolation",
    "ComponentCategory",
    "ConfigurationError",
    "CreateResource",
    "DataSource",
    "DestroyResource",
    "EagerLoad",
    "Envelope",
    "FilterKind",
    "FilterSpec",
    "Flow",
    "FlowComponent",
    "FlowHook",
    "FlowTrace",
    "ListResources",
    "LoadRecord",
    "Messages",
    "Paginate",
    "PaginationMeta",
    "PermissionDenied",
    "PipelineAbort",
    "PipelineConfig",
    "PipelineException",
    "PipelineInternalError",
    "PipelineResult",
    "Policy",
    "PolicyEvaluator",
    "Query",
    "RequestContext",
    "ResolvedFlow",
    "Resource",
    "ResourceNotFound",
    "ResourcePipeline",
    "ResourceRegistry",
    "SQLAlchemyDataSource",
    "SQLAlchemyQuery",
    "SQLAlchemyStore",
    "ScopeCollection",
    "Serializer",
    "ShowResource",
    "Store",
    "Success",
    "TraceEntry",
    "UpdateResource",
    "ValidateInput",
    "ValidationFailed",
    "api_key",
    "bearer_token",
    "build_flow",
    "failure",
    "render",
    "session_cookie",
    "success",
]
