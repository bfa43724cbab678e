"""ResourcePipeline — runs per-action flows and translates their outcome."""

from __future__ import annotations

import hashlib
import logging
import time
import traceback
from collections.abc import Awaitable, Callable, Sequence

from starlette.requests import Request
from starlette.responses import JSONResponse, Response

from fastapi_resource_pipeline.component import ComponentCategory, FlowComponent
from fastapi_resource_pipeline.components import (
    ApplyFilters,
    Authenticate,
    Authorize,
    BuildRecord,
    CreateResource,
    DestroyResource,
    EagerLoad,
    ListResources,
    LoadRecord,
    Paginate,
    ScopeCollection,
    ShowResource,
    UpdateResource,
    ValidateInput,
)
from fastapi_resource_pipeline.config import PipelineConfig
from fastapi_resource_pipeline.context import RequestContext
from fastapi_resource_pipeline.exceptions import (
    ConfigurationError,
    PipelineAbort,
    PipelineInternalError,
)
from fastapi_resource_pipeline.flow import Flow, ResolvedFlow
from fastapi_resource_pipeline.hooks import FlowHook
from fastapi_resource_pipeline.params import collect_params
from fastapi_resource_pipeline.persistence import DataSource
from fastapi_resource_pipeline.registry import ResourceRegistry
from fastapi_resource_pipeline.resource import ACTIONS, Resource
from fastapi_resource_pipeline.result import Abort, PipelineResult, Success, failure
from fastapi_resource_pipeline.trace import FlowTrace, TraceEntry

log = logging.getLogger(__name__)

_STAGES: dict[str, Callable[[], tuple[FlowComponent, ...]]] = {
    "list": lambda: (
        Authenticate(),
        ValidateInput(),
        ScopeCollection(),
        ApplyFilters(),
        EagerLoad(),
        Authorize(collection=True),
        Paginate(),
        ListResources(),
    ),
    "show": lambda: (
        Authenticate(),
        ValidateInput(),
        ScopeCollection(),
        EagerLoad(),
        LoadRecord(),
        Authorize(),
        ShowResource(),
    ),
    "create": lambda: (
        Authenticate(),
        ValidateInput(),
        BuildRecord(),
        Authorize(),
        CreateResource(),
    ),
    "update": lambda: (
        Authenticate(),
        ValidateInput(),
        ScopeCollection(),
        EagerLoad(),
        LoadRecord(),
        Authorize(),
        UpdateResource(),
    ),
    "destroy": lambda: (
        Authenticate(),
        ValidateInput(),
        ScopeCollection(),
        EagerLoad(),
        LoadRecord(),
        Authorize(),
        DestroyResource(),
    ),
}


def build_flow(
    resource: Resource,
    action: str,
    *,
    hooks: Sequence[FlowHook] = (),
    debug: bool = False,
) -> Flow:
    """Assemble the flow of ``action`` for ``resource``."""
    if action not in _STAGES:
        raise ConfigurationError(f"unknown action {action!r}")

    flow = Flow(*_STAGES[action](), *resource.components(action), debug=debug)
    for hook in hooks:
        flow.add_hook(hook)

    if action in resource.skip_auth_for:
        flow = flow.without(
            ComponentCategory.AUTHENTICATION, ComponentCategory.AUTHORIZATION
        )
    return flow


def render(result: PipelineResult, request: Request | None = None) -> Response:
    """Turn a pipeline result into a transport response.

    The HTTP status is always 200; the envelope code carries the outcome.
    Successful GETs get a weak ETag and honour If-None-Match.
    """
    response = JSONResponse(result.envelope.to_dict(), status_code=200)

    if request is None or request.method not in ("GET", "HEAD") or not result.ok:
        return response

    etag = f'W/"{hashlib.sha256(response.body).hexdigest()}"'
    candidates = {
        tag.strip() for tag in request.headers.get("if-none-match", "").split(",")
    }
    if etag in candidates or "*" in candidates:
        return Response(status_code=304, headers={"ETag": etag})

    response.headers["ETag"] = etag
    return response


class ResourcePipeline:
    """Executes resource actions through their pre-resolved flows.

    Flows are resolved once per (resource, action) when the pipeline is
    built; the registry is frozen at the same time.
    """

    def __init__(
        self,
        registry: ResourceRegistry,
        data_source: DataSource,
        config: PipelineConfig | None = None,
        *,
        hooks: Sequence[FlowHook] = (),
    ) -> None:
        self._registry = registry.freeze()
        self._data_source = data_source
        self._config = config or PipelineConfig()
        self._flows: dict[tuple[str, str], ResolvedFlow] = {
            (resource.name, action): build_flow(
                resource, action, hooks=hooks, debug=self._config.debug
            ).resolve()
            for resource in self._registry
            for action in ACTIONS
        }

    @property
    def config(self) -> PipelineConfig:
        return self._config

    def flow(self, name: str, action: str) -> ResolvedFlow:
        try:
            return self._flows[(name, action)]
        except KeyError:
            raise ConfigurationError(f"no flow for {name!r}.{action!r}") from None

    def endpoint(self, name: str, action: str) -> Callable[[Request], Awaitable[Response]]:
        """Return a FastAPI/Starlette endpoint running ``action`` on ``name``."""
        self.flow(name, action)

        async def endpoint(request: Request) -> Response:
            result = await self.dispatch(name, action, request)
            return render(result, request)

        endpoint.__name__ = f"{name}_{action}"
        return endpoint

    async def dispatch(self, name: str, action: str, request: Request) -> PipelineResult:
        resolved = self.flow(name, action)
        resource = self._registry.get(name)

        with self._data_source.session() as store:
            ctx = RequestContext(
                request=request,
                resource=resource,
                action=action,
                config=self._config,
                store=store,
            )
            return await self._run(resolved, ctx)

    async def _run(self, resolved: ResolvedFlow, ctx: RequestContext) -> PipelineResult:
        trace = FlowTrace() if resolved.debug else None
        flow_start = time.perf_counter()

        for hook in resolved.hooks:
            await hook.on_flow_start(ctx)

        try:
            ctx.params = await collect_params(ctx.request)
            result = await self._run_components(resolved, ctx, trace)
        except PipelineAbort as exc:
            log.debug("%s.%s aborted: %s", ctx.resource.name, ctx.action, exc.msg)
            result = Abort.from_exception(exc, ctx.config.messages)
            if trace is not None:
                trace.error = exc
        except Exception as exc:
            result = self._internal_error(ctx, exc, trace)

        if trace is not None:
            trace.total_duration_ms = (time.perf_counter() - flow_start) * 1000
            trace.code = result.envelope.code
            if result.ok:
                trace.outcome = "OK"
            elif trace.outcome != "ERROR":
                trace.outcome = "ABORTED"
            ctx.state["trace"] = trace

        for hook in resolved.hooks:
            await hook.on_flow_end(ctx)

        return result

    async def _run_components(
        self,
        resolved: ResolvedFlow,
        ctx: RequestContext,
        trace: FlowTrace | None,
    ) -> PipelineResult:
        for component in resolved.components:
            comp_start = time.perf_counter()
            try:
                result = await component.resolve(ctx)
            except PipelineAbort as exc:
                result = Abort.from_exception(exc, ctx.config.messages)
            except Exception as exc:
                _record(trace, component, comp_start, "FAILED", str(exc))
                raise

            if isinstance(result, Abort):
                _record(trace, component, comp_start, "FAILED", str(result.envelope.msg))
                for hook in resolved.hooks:
                    await hook.on_component(ctx, component, result)
                return result

            _record(trace, component, comp_start, "OK")
            for hook in resolved.hooks:
                await hook.on_component(ctx, component, None)

            if isinstance(result, Success):
                self._verify(ctx)
                return result

        raise PipelineInternalError(
            f"{ctx.resource.name}.{ctx.action} finished without a response"
        )

    def _verify(self, ctx: RequestContext) -> None:
        if ctx.action in ctx.resource.skip_auth_for:
            return
        if not ctx.state.get("authorized"):
            raise PipelineInternalError(
                f"{ctx.resource.name}.{ctx.action} completed without authorization"
            )
        if ctx.action != "create" and not ctx.state.get("policy_scoped"):
            raise PipelineInternalError(
                f"{ctx.resource.name}.{ctx.action} completed without a policy scope"
            )

    def _internal_error(
        self,
        ctx: RequestContext,
        exc: Exception,
        trace: FlowTrace | None,
    ) -> Abort:
        log.exception("Unhandled error in %s.%s", ctx.resource.name, ctx.action)
        wrapped = PipelineInternalError("Internal pipeline error", cause=exc)
        if trace is not None:
            trace.outcome = "ERROR"
            trace.error = wrapped

        msg = self._config.messages.internal_error
        if self._config.debug:
            msg = "".join(traceback.format_exception(type(exc), exc, exc.__traceback__))
        return Abort(failure(msg, code=500))


def _record(
    trace: FlowTrace | None,
    component: FlowComponent,
    started: float,
    outcome: str,
    reason: str | None = None,
) -> None:
    if trace is None:
        return
    trace.entries.append(
        TraceEntry(
            component_name=component.name,
            category=component.category,
            duration_ms=(time.perf_counter() - started) * 1000,
            outcome=outcome,  # type: ignore[arg-type]
            reason=reason,
        )
    )
