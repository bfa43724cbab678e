"""Shared pytest fixtures for fastapi-resource-pipeline tests."""

from __future__ import annotations

from collections.abc import Iterator
from typing import Any

import pytest
from fastapi import FastAPI
from httpx import ASGITransport, AsyncClient
from sqlalchemy import Engine, create_engine
from sqlalchemy.pool import StaticPool
from starlette.requests import Request

from blog import AuthorResource, ArticleResource, Base, lookup_subject, make_app, seed
from fastapi_resource_pipeline import (
    PipelineConfig,
    RequestContext,
    Resource,
    ResourcePipeline,
    ResourceRegistry,
    SQLAlchemyDataSource,
    SQLAlchemyStore,
)


@pytest.fixture
def make_request() -> Any:
    """Factory for creating mock Starlette Request objects."""

    def _make(
        method: str = "GET",
        path: str = "/",
        headers: dict[str, str] | None = None,
        query_string: str = "",
        path_params: dict[str, Any] | None = None,
        body: bytes = b"",
    ) -> Request:
        scope: dict[str, Any] = {
            "type": "http",
            "method": method,
            "path": path,
            "query_string": query_string.encode(),
            "headers": [
                (k.lower().encode(), v.encode()) for k, v in (headers or {}).items()
            ],
            "path_params": path_params or {},
            "root_path": "",
        }

        async def receive() -> dict[str, Any]:
            return {"type": "http.request", "body": body, "more_body": False}

        return Request(scope, receive)

    return _make


@pytest.fixture
def engine() -> Iterator[Engine]:
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(engine)
    seed(engine)
    yield engine
    engine.dispose()


@pytest.fixture
def data_source(engine: Engine) -> SQLAlchemyDataSource:
    return SQLAlchemyDataSource.from_engine(engine)


@pytest.fixture
def store(data_source: SQLAlchemyDataSource) -> Iterator[SQLAlchemyStore]:
    with data_source.session() as store:
        yield store


@pytest.fixture
def config() -> PipelineConfig:
    return PipelineConfig(authenticate=lookup_subject, default_per_page=2, max_per_page=10)


@pytest.fixture
def registry() -> ResourceRegistry:
    return ResourceRegistry(AuthorResource(), ArticleResource())


@pytest.fixture
def pipeline(
    registry: ResourceRegistry,
    data_source: SQLAlchemyDataSource,
    config: PipelineConfig,
) -> ResourcePipeline:
    return ResourcePipeline(registry, data_source, config)


@pytest.fixture
def app(pipeline: ResourcePipeline) -> FastAPI:
    return make_app(pipeline)


@pytest.fixture
def client(app: FastAPI) -> Any:
    """Factory opening an httpx AsyncClient against ``app``."""

    def _client(subject: str | None = None) -> AsyncClient:
        headers = {"X-Subject": subject} if subject else {}
        return AsyncClient(
            transport=ASGITransport(app=app), base_url="http://test", headers=headers
        )

    return _client


@pytest.fixture
def make_context(
    make_request: Any, store: SQLAlchemyStore, config: PipelineConfig
) -> Any:
    """Factory for RequestContext objects bound to the test store."""

    def _make(
        action: str = "list",
        *,
        resource: Resource | None = None,
        params: dict[str, Any] | None = None,
        user: Any = None,
        request: Request | None = None,
        cfg: PipelineConfig | None = None,
    ) -> RequestContext:
        return RequestContext(
            request=request or make_request(),
            resource=resource or AuthorResource(),
            action=action,
            config=cfg or config,
            store=store,
            params=params or {},
            user=user,
        )

    return _make
