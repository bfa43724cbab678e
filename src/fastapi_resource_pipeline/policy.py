"""Policy base class — per-action authorization and accessible-set scoping."""

from __future__ import annotations

from typing import Any, Protocol, runtime_checkable

from fastapi_resource_pipeline.persistence import Query


@runtime_checkable
class PolicyEvaluator(Protocol):
    """Interface the pipeline consumes for authorization decisions."""

    def authorize(self, subject: Any, action: str, target: Any) -> bool: ...
    def scope(self, subject: Any, query: Query) -> Query: ...


class Policy:
    """Default-deny policy.

    ``authorize`` looks up a ``can_<action>(subject, target)`` method and
    denies when none is defined. Override ``scope`` to narrow the collection
    a subject may act on; the default exposes the whole collection.
    """

    def authorize(self, subject: Any, action: str, target: Any) -> bool:
        check = getattr(self, f"can_{action}", None)
        if check is None:
            return False
        return bool(check(subject, target))

    def scope(self, subject: Any, query: Query) -> Query:
        return query


class AllowAll(Policy):
    """Grants every action on the whole collection."""

    def authorize(self, subject: Any, action: str, target: Any) -> bool:
        return True
