"""Tests for FlowHook, BeforeFlow, AfterFlow, AfterComponent."""

from __future__ import annotations

from typing import Any
from unittest.mock import AsyncMock

from fastapi_resource_pipeline.component import FlowComponent
from fastapi_resource_pipeline.config import PipelineConfig
from fastapi_resource_pipeline.context import RequestContext
from fastapi_resource_pipeline.dispatch import ResourcePipeline
from fastapi_resource_pipeline.hooks import (
    AfterComponent,
    AfterFlow,
    BeforeFlow,
    FlowHook,
)
from fastapi_resource_pipeline.registry import ResourceRegistry
from fastapi_resource_pipeline.result import Abort
from fastapi_resource_pipeline.persistence import SQLAlchemyDataSource


def _pipeline(
    registry: ResourceRegistry,
    data_source: SQLAlchemyDataSource,
    config: PipelineConfig,
    *hooks: FlowHook,
) -> ResourcePipeline:
    return ResourcePipeline(registry, data_source, config, hooks=hooks)


class TestFlowHookBase:
    async def test_default_methods_are_noop(self, make_context: Any) -> None:
        class MinimalHook(FlowHook):
            pass

        hook = MinimalHook()
        ctx = make_context()
        await hook.on_flow_start(ctx)
        await hook.on_flow_end(ctx)
        await hook.on_component(ctx, AsyncMock(spec=FlowComponent), None)


class TestBeforeFlow:
    async def test_fires_once_before_components(
        self,
        registry: ResourceRegistry,
        data_source: SQLAlchemyDataSource,
        config: PipelineConfig,
        make_request: Any,
    ) -> None:
        seen: list[Any] = []

        async def before(ctx: RequestContext) -> None:
            seen.append((ctx.user, dict(ctx.params)))

        pipeline = _pipeline(registry, data_source, config, BeforeFlow(before))
        await pipeline.dispatch(
            "authors", "list", make_request(headers={"X-Subject": "admin"})
        )

        assert seen == [(None, {})]


class TestAfterFlow:
    async def test_fires_on_success(
        self,
        registry: ResourceRegistry,
        data_source: SQLAlchemyDataSource,
        config: PipelineConfig,
        make_request: Any,
    ) -> None:
        callback = AsyncMock()
        pipeline = _pipeline(registry, data_source, config, AfterFlow(callback))
        await pipeline.dispatch(
            "authors", "list", make_request(headers={"X-Subject": "admin"})
        )

        callback.assert_awaited_once()
        ctx = callback.await_args.args[0]
        assert ctx.user["role"] == "admin"
        assert ctx.pagination is not None

    async def test_fires_on_abort(
        self,
        registry: ResourceRegistry,
        data_source: SQLAlchemyDataSource,
        config: PipelineConfig,
        make_request: Any,
    ) -> None:
        callback = AsyncMock()
        pipeline = _pipeline(registry, data_source, config, AfterFlow(callback))
        result = await pipeline.dispatch("authors", "list", make_request())

        assert result.envelope.code == 403
        callback.assert_awaited_once()


class TestAfterComponent:
    async def test_sees_every_component_in_order(
        self,
        registry: ResourceRegistry,
        data_source: SQLAlchemyDataSource,
        config: PipelineConfig,
        make_request: Any,
    ) -> None:
        names: list[str] = []

        async def after(ctx: RequestContext, component: FlowComponent, abort: Abort | None) -> None:
            names.append(component.name)

        pipeline = _pipeline(registry, data_source, config, AfterComponent(after))
        await pipeline.dispatch(
            "authors", "list", make_request(headers={"X-Subject": "admin"})
        )

        assert names == [
            "Authenticate",
            "ValidateInput",
            "ScopeCollection",
            "ApplyFilters",
            "EagerLoad",
            "Authorize",
            "Paginate",
            "ListResources",
        ]

    async def test_receives_abort_of_failing_component(
        self,
        registry: ResourceRegistry,
        data_source: SQLAlchemyDataSource,
        config: PipelineConfig,
        make_request: Any,
    ) -> None:
        calls: list[tuple[str, Abort | None]] = []

        async def after(ctx: RequestContext, component: FlowComponent, abort: Abort | None) -> None:
            calls.append((component.name, abort))

        pipeline = _pipeline(registry, data_source, config, AfterComponent(after))
        await pipeline.dispatch(
            "authors",
            "destroy",
            make_request(
                method="DELETE",
                headers={"X-Subject": "editor"},
                path_params={"id": "1"},
            ),
        )

        name, abort = calls[-1]
        assert name == "Authorize"
        assert abort is not None
        assert abort.envelope.code == 403
        assert all(a is None for _, a in calls[:-1])


class TestCombinedHooks:
    async def test_lifecycle_order(
        self,
        registry: ResourceRegistry,
        data_source: SQLAlchemyDataSource,
        config: PipelineConfig,
        make_request: Any,
    ) -> None:
        events: list[str] = []

        class Recorder(FlowHook):
            async def on_flow_start(self, ctx: RequestContext) -> None:
                events.append("start")

            async def on_component(
                self, ctx: RequestContext, component: FlowComponent, abort: Abort | None
            ) -> None:
                events.append(component.name)

            async def on_flow_end(self, ctx: RequestContext) -> None:
                events.append("end")

        pipeline = _pipeline(registry, data_source, config, Recorder())
        await pipeline.dispatch(
            "articles", "show", make_request(path_params={"id": "1"})
        )

        assert events == [
            "start",
            "ValidateInput",
            "ScopeCollection",
            "EagerLoad",
            "LoadRecord",
            "ShowResource",
            "end",
        ]
