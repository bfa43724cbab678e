"""Response envelope models and the Success/Abort pipeline result."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Union

from fastapi.encoders import jsonable_encoder
from pydantic import BaseModel

from fastapi_resource_pipeline.config import Messages
from fastapi_resource_pipeline.exceptions import PipelineAbort


class PaginationMeta(BaseModel):
    """Pagination state of one list response."""

    current_page: int
    per_page: int
    total_pages: int
    total_count: int


class Envelope(BaseModel):
    """Uniform ``{code, msg, data, pagination?}`` response body."""

    code: int
    msg: Union[str, dict[str, list[str]]]
    data: Any = None
    pagination: PaginationMeta | None = None

    def to_dict(self) -> dict[str, Any]:
        body: dict[str, Any] = {
            "code": self.code,
            "msg": self.msg,
            "data": jsonable_encoder(self.data),
        }
        if self.pagination is not None:
            body["pagination"] = self.pagination.model_dump()
        return body


@dataclass(frozen=True)
class Success:
    """Terminal outcome of a flow that completed its action."""

    envelope: Envelope

    @property
    def ok(self) -> bool:
        return True


@dataclass(frozen=True)
class Abort:
    """Terminal outcome of a flow that stopped at one of its stages."""

    envelope: Envelope

    @property
    def ok(self) -> bool:
        return False

    @classmethod
    def from_exception(cls, exc: PipelineAbort, messages: Messages | None = None) -> Abort:
        msg = exc.msg
        if msg is None and exc.message_key is not None:
            msg = getattr(messages or Messages(), exc.message_key)
        return cls(failure(msg, code=exc.code, data=exc.data))


PipelineResult = Union[Success, Abort]


def success(
    data: Any,
    *,
    code: int = 200,
    msg: str = "Success",
    pagination: PaginationMeta | None = None,
) -> Envelope:
    return Envelope(code=code, msg=msg, data=data, pagination=pagination)


def failure(msg: Any, *, code: int = -1, data: Any = None) -> Envelope:
    return Envelope(code=code, msg=msg, data=data)
