"""Failure translation, policy enforcement and flow verification."""

from __future__ import annotations

import logging
from dataclasses import replace
from typing import Any

import pytest
from httpx import ASGITransport, AsyncClient

from blog import ArticleResource, AuthorResource, make_app
from fastapi_resource_pipeline import (
    ComponentCategory,
    FlowComponent,
    PermissionDenied,
    PipelineConfig,
    Policy,
    RequestContext,
    ResourcePipeline,
    ResourceNotFound,
    ResourceRegistry,
    SQLAlchemyDataSource,
    Success,
    success,
)


def _client(pipeline: ResourcePipeline, subject: str = "admin") -> AsyncClient:
    return AsyncClient(
        transport=ASGITransport(app=make_app(pipeline)),
        base_url="http://test",
        headers={"X-Subject": subject},
    )


class _DenyAll(Policy):
    def __init__(self) -> None:
        self.calls: list[str] = []

    def authorize(self, subject: Any, action: str, target: Any) -> bool:
        self.calls.append(action)
        return False


class TestDenyAllPolicy:
    @pytest.fixture
    def policy(self) -> _DenyAll:
        return _DenyAll()

    @pytest.fixture
    def pipeline(
        self, policy: _DenyAll, data_source: SQLAlchemyDataSource, config: PipelineConfig
    ) -> ResourcePipeline:
        class Locked(AuthorResource):
            pass

        Locked.policy = policy
        registry = ResourceRegistry(Locked(), ArticleResource())
        return ResourcePipeline(registry, data_source, config)

    @pytest.mark.parametrize(
        ("method", "path", "payload", "action"),
        [
            ("GET", "/authors", None, "list"),
            ("GET", "/authors/1", None, "show"),
            (
                "POST",
                "/authors",
                {"name": "B", "email": "b@example.com", "age": 1, "team": "red"},
                "create",
            ),
            ("PUT", "/authors/1", {"age": 40}, "update"),
            ("DELETE", "/authors/1", None, "destroy"),
        ],
    )
    async def test_every_action_is_denied_once(
        self,
        pipeline: ResourcePipeline,
        policy: _DenyAll,
        method: str,
        path: str,
        payload: Any,
        action: str,
    ) -> None:
        async with _client(pipeline) as ac:
            resp = await ac.request(method, path, json=payload)

        assert resp.json() == {"code": 403, "msg": "access denied", "data": None}
        assert policy.calls == [action]


class _Explode(FlowComponent):
    category = ComponentCategory.LOAD

    async def resolve(self, ctx: RequestContext) -> None:
        raise RuntimeError("database password is hunter2")


class _Exploding(AuthorResource):
    def components(self, action: str) -> tuple[FlowComponent, ...]:
        return (_Explode(),) if action == "show" else ()


class TestUnhandledFaults:
    async def test_generic_message_outside_debug(
        self,
        data_source: SQLAlchemyDataSource,
        config: PipelineConfig,
        caplog: pytest.LogCaptureFixture,
    ) -> None:
        registry = ResourceRegistry(_Exploding(), ArticleResource())
        pipeline = ResourcePipeline(registry, data_source, config)
        with caplog.at_level(logging.ERROR):
            async with _client(pipeline) as ac:
                resp = await ac.get("/authors/1")

        assert resp.status_code == 200
        assert resp.json() == {"code": 500, "msg": "Internal server error", "data": None}
        assert "hunter2" in caplog.text

    async def test_traceback_in_debug(
        self, data_source: SQLAlchemyDataSource, config: PipelineConfig
    ) -> None:
        pipeline = ResourcePipeline(
            ResourceRegistry(_Exploding(), ArticleResource()),
            data_source,
            replace(config, debug=True),
        )
        async with _client(pipeline) as ac:
            body = (await ac.get("/authors/1")).json()

        assert body["code"] == 500
        assert "Traceback" in body["msg"]
        assert "RuntimeError: database password is hunter2" in body["msg"]


class _Shortcut(FlowComponent):
    category = ComponentCategory.SCOPE

    async def resolve(self, ctx: RequestContext) -> Success:
        return Success(success({"cached": True}))


class TestFlowVerification:
    async def test_success_without_authorization_is_a_fault(
        self, data_source: SQLAlchemyDataSource, config: PipelineConfig
    ) -> None:
        class Leaky(AuthorResource):
            def components(self, action: str) -> tuple[FlowComponent, ...]:
                return (_Shortcut(),) if action == "show" else ()

        registry = ResourceRegistry(Leaky(), ArticleResource())
        pipeline = ResourcePipeline(registry, data_source, config)
        async with _client(pipeline) as ac:
            body = (await ac.get("/authors/1")).json()

        assert body == {"code": 500, "msg": "Internal server error", "data": None}

    async def test_exempt_actions_are_not_verified(
        self, data_source: SQLAlchemyDataSource, config: PipelineConfig
    ) -> None:
        class Cached(ArticleResource):
            def components(self, action: str) -> tuple[FlowComponent, ...]:
                return (_Shortcut(),) if action == "show" else ()

        registry = ResourceRegistry(AuthorResource(), Cached())
        pipeline = ResourcePipeline(registry, data_source, config)
        async with _client(pipeline) as ac:
            body = (await ac.get("/articles/1")).json()

        assert body == {"code": 200, "msg": "Success", "data": {"cached": True}}


class _Raise(FlowComponent):
    category = ComponentCategory.SCOPE

    def __init__(self, exc: Exception) -> None:
        self.exc = exc

    async def resolve(self, ctx: RequestContext) -> None:
        raise self.exc


class TestRaisedAborts:
    @pytest.fixture
    def config(self, config: PipelineConfig) -> PipelineConfig:
        messages = replace(config.messages, not_found="nothing here", access_denied="keep out")
        return replace(config, messages=messages)

    def _pipeline(
        self, data_source: SQLAlchemyDataSource, config: PipelineConfig, exc: Exception
    ) -> ResourcePipeline:
        class Raising(AuthorResource):
            def components(self, action: str) -> tuple[FlowComponent, ...]:
                return (_Raise(exc),) if action == "show" else ()

        registry = ResourceRegistry(Raising(), ArticleResource())
        return ResourcePipeline(registry, data_source, config)

    @pytest.mark.parametrize(
        ("exc", "msg"),
        [
            (ResourceNotFound(), "nothing here"),
            (PermissionDenied(), "keep out"),
            (PermissionDenied("read only"), "read only"),
        ],
    )
    async def test_component_aborts_use_configured_messages(
        self,
        data_source: SQLAlchemyDataSource,
        config: PipelineConfig,
        exc: Exception,
        msg: str,
    ) -> None:
        async with _client(self._pipeline(data_source, config, exc)) as ac:
            body = (await ac.get("/authors/1")).json()

        assert body == {"code": 403, "msg": msg, "data": None}

    async def test_builtin_stages_use_configured_messages(
        self, data_source: SQLAlchemyDataSource, config: PipelineConfig
    ) -> None:
        pipeline = ResourcePipeline(
            ResourceRegistry(AuthorResource(), ArticleResource()), data_source, config
        )
        async with _client(pipeline, "editor") as ac:
            missing = (await ac.get("/authors/404")).json()
            denied = (await ac.delete("/authors/1")).json()

        assert missing == {"code": 403, "msg": "nothing here", "data": None}
        assert denied == {"code": 403, "msg": "keep out", "data": None}


class TestAuthExemptActions:
    async def test_exempt_actions_skip_authentication(self, client: Any) -> None:
        async with client() as ac:
            listed = (await ac.get("/articles")).json()
            shown = (await ac.get("/articles/1")).json()

        assert listed["code"] == 200
        assert shown["code"] == 200

    async def test_other_actions_still_authenticate(self, client: Any) -> None:
        async with client() as ac:
            body = (await ac.post("/articles", json={"title": "x", "author_id": 1})).json()

        assert body == {"code": 403, "msg": "access denied", "data": None}

    async def test_authenticated_create_on_allow_all_resource(self, client: Any) -> None:
        async with client("reader") as ac:
            body = (await ac.post("/articles", json={"title": "New", "author_id": 3})).json()

        assert body["code"] == 200
        assert body["data"]["published"] is False
