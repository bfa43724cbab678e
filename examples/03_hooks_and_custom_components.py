"""
Hooks and custom components example.

Demonstrates:
- Adding a resource-specific component to one action's flow
- Lifecycle hooks for request logging
- Debug mode traces read from ctx.state["trace"]
- Nesting create/update input under a param key
- Record-level business rules via validate_record
"""

import logging

from fastapi import FastAPI
from sqlalchemy import String, create_engine
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column
from sqlalchemy.pool import StaticPool

from fastapi_resource_pipeline import (
    AfterFlow,
    BeforeFlow,
    ComponentCategory,
    FlowComponent,
    PipelineConfig,
    Policy,
    RequestContext,
    Resource,
    ResourcePipeline,
    ResourceRegistry,
    SQLAlchemyDataSource,
    failure,
    session_cookie,
)
from fastapi_resource_pipeline.result import Abort

logging.basicConfig(level=logging.INFO)
log = logging.getLogger("example")


class Base(DeclarativeBase):
    pass


class Ticket(Base):
    __tablename__ = "tickets"

    id: Mapped[int] = mapped_column(primary_key=True)
    subject: Mapped[str] = mapped_column(String(200))
    priority: Mapped[int] = mapped_column(default=3)
    owner: Mapped[str] = mapped_column(String(80))


SESSIONS = {"s-1": {"name": "alice"}, "s-2": {"name": "bob"}}


async def lookup_session(session_id: str) -> dict | None:
    return SESSIONS.get(session_id)


class TicketPolicy(Policy):
    def scope(self, user, query):
        return query.filter(Ticket.owner == user["name"])

    def can_list(self, user, target):
        return True

    def can_show(self, user, target):
        return True

    def can_create(self, user, target):
        return True

    def can_update(self, user, target):
        return target.owner == user["name"]


class StampOwner(FlowComponent):
    """Stamps the creating user as owner of a freshly built ticket."""

    category = ComponentCategory.LOAD

    async def resolve(self, ctx: RequestContext) -> None:
        ctx.record.owner = ctx.user["name"]


class BusinessHours(FlowComponent):
    """Refuses priority 1 tickets unless the client flags an emergency."""

    category = ComponentCategory.AUTHORIZATION

    async def resolve(self, ctx: RequestContext) -> Abort | None:
        if ctx.record.priority == 1 and ctx.request.headers.get("x-emergency") != "yes":
            return Abort(failure("priority 1 requires X-Emergency: yes", code=-1))
        return None


class TicketResource(Resource):
    name = "tickets"
    model = Ticket
    policy = TicketPolicy()
    param_key = "ticket"
    permitted_fields = ("subject", "priority")

    def validate_record(self, record):
        if record.priority is not None and not 1 <= record.priority <= 5:
            return ["priority must be between 1 and 5"]
        return []

    def components(self, action):
        if action == "create":
            return (StampOwner(), BusinessHours())
        return ()


async def log_start(ctx: RequestContext) -> None:
    log.info("-> %s.%s", ctx.resource.name, ctx.action)


async def log_trace(ctx: RequestContext) -> None:
    trace = ctx.state.get("trace")
    if trace is None:
        return
    for entry in trace.entries:
        log.info("   %-16s %-6s %.2fms", entry.component_name, entry.outcome, entry.duration_ms)
    log.info("<- %s (code %s) in %.2fms", trace.outcome, trace.code, trace.total_duration_ms)


engine = create_engine(
    "sqlite://", connect_args={"check_same_thread": False}, poolclass=StaticPool
)
Base.metadata.create_all(engine)

pipeline = ResourcePipeline(
    ResourceRegistry(TicketResource()),
    SQLAlchemyDataSource.from_engine(engine),
    PipelineConfig(authenticate=session_cookie(lookup_session), debug=True),
    hooks=[BeforeFlow(log_start), AfterFlow(log_trace)],
)

app = FastAPI(title="Hooks Example")
app.add_api_route("/tickets", pipeline.endpoint("tickets", "list"), methods=["GET"])
app.add_api_route("/tickets", pipeline.endpoint("tickets", "create"), methods=["POST"])
app.add_api_route("/tickets/{id}", pipeline.endpoint("tickets", "update"), methods=["PATCH"])


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(app, host="0.0.0.0", port=8000)

    # Test with:
    # curl -b session=s-1 -d '{"ticket": {"subject": "VPN down", "priority": 2}}' \
    #      http://localhost:8000/tickets
    # curl -b session=s-1 -d '{"ticket": {"subject": "Fire", "priority": 1}}' \
    #      http://localhost:8000/tickets
    # curl -b session=s-2 http://localhost:8000/tickets
