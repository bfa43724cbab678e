"""
Basic usage example of fastapi-resource-pipeline.

Demonstrates:
- Declaring a SQLAlchemy model and a Resource for it
- Bearer token authentication through PipelineConfig
- A Policy granting actions per role
- Mounting the five action endpoints on a FastAPI app
"""

from fastapi import FastAPI
from sqlalchemy import String, create_engine
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column
from sqlalchemy.pool import StaticPool

from fastapi_resource_pipeline import (
    PipelineConfig,
    Policy,
    Resource,
    ResourcePipeline,
    ResourceRegistry,
    SQLAlchemyDataSource,
    bearer_token,
)


class Base(DeclarativeBase):
    pass


class Note(Base):
    __tablename__ = "notes"

    id: Mapped[int] = mapped_column(primary_key=True)
    title: Mapped[str] = mapped_column(String(120))
    body: Mapped[str] = mapped_column(String(2000), default="")


# Mock token decoder (replace with real implementation)
async def decode_token(token: str) -> dict:
    users = {
        "admin-token": {"sub": "alice", "role": "admin"},
        "reader-token": {"sub": "bob", "role": "reader"},
    }
    return users[token]


class NotePolicy(Policy):
    def can_list(self, user, target):
        return True

    def can_show(self, user, target):
        return True

    def can_create(self, user, target):
        return user["role"] == "admin"

    def can_update(self, user, target):
        return user["role"] == "admin"

    def can_destroy(self, user, target):
        return user["role"] == "admin"


class NoteResource(Resource):
    name = "notes"
    model = Note
    policy = NotePolicy()
    permitted_fields = ("title", "body")


engine = create_engine(
    "sqlite://", connect_args={"check_same_thread": False}, poolclass=StaticPool
)
Base.metadata.create_all(engine)

pipeline = ResourcePipeline(
    ResourceRegistry(NoteResource()),
    SQLAlchemyDataSource.from_engine(engine),
    PipelineConfig(authenticate=bearer_token(decode_token)),
)

app = FastAPI(title="Basic Resource Example")
app.add_api_route("/notes", pipeline.endpoint("notes", "list"), methods=["GET"])
app.add_api_route("/notes", pipeline.endpoint("notes", "create"), methods=["POST"])
app.add_api_route("/notes/{id}", pipeline.endpoint("notes", "show"), methods=["GET"])
app.add_api_route(
    "/notes/{id}", pipeline.endpoint("notes", "update"), methods=["PUT", "PATCH"]
)
app.add_api_route("/notes/{id}", pipeline.endpoint("notes", "destroy"), methods=["DELETE"])


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(app, host="0.0.0.0", port=8000)

    # Test with:
    # curl http://localhost:8000/notes
    # curl -H "Authorization: Bearer admin-token" -d '{"title": "hi"}' http://localhost:8000/notes
    # curl -H "Authorization: Bearer reader-token" http://localhost:8000/notes/1
