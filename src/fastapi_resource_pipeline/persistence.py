"""Persistence collaborators — Query/Store protocols and the SQLAlchemy adapter."""

from __future__ import annotations

import datetime
import logging
from collections.abc import Iterator, Mapping
from contextlib import AbstractContextManager, contextmanager
from decimal import InvalidOperation
from typing import Any, Protocol, runtime_checkable

from sqlalchemy import Select, func, select
from sqlalchemy import inspect as sa_inspect
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session, selectinload, sessionmaker

from fastapi_resource_pipeline.exceptions import BusinessRuleViolation, ValidationFailed

log = logging.getLogger(__name__)

_TRUE_VALUES = frozenset({"1", "true", "t", "yes", "on"})
_FALSE_VALUES = frozenset({"0", "false", "f", "no", "off"})


@runtime_checkable
class Query(Protocol):
    """Opaque, immutable query over one entity type.

    Every narrowing method returns a new query; the receiver is untouched.
    """

    def where_equal(self, field: str, value: Any) -> Query: ...
    def where_between(self, field: str, low: Any, high: Any) -> Query: ...
    def where_like(self, field: str, pattern: str) -> Query: ...
    def apply(self, operation: str, value: Any) -> Query: ...
    def includes(self, *associations: str) -> Query: ...
    def page(self, number: int, size: int) -> tuple[list[Any], int]: ...
    def find(self, ident: Any) -> Any | None: ...


@runtime_checkable
class Store(Protocol):
    """Unit of work bound to one request."""

    def collection(self, model: type) -> Query: ...
    def build(self, model: type, fields: Mapping[str, Any]) -> Any: ...
    def assign(self, record: Any, fields: Mapping[str, Any]) -> None: ...
    def save(self, record: Any) -> list[str]: ...
    def delete(self, record: Any) -> None: ...


class DataSource(Protocol):
    """Opens one Store per request."""

    def session(self) -> AbstractContextManager[Store]: ...


def coerce_value(field: str, column: Any, value: Any) -> Any:
    """Convert a raw request value to the python type of ``column``.

    Raises ValidationFailed when the value cannot be converted.
    """
    column_type = getattr(column, "type", None)
    try:
        python_type = column_type.python_type  # type: ignore[union-attr]
    except (AttributeError, NotImplementedError):
        return value

    if value is None or isinstance(value, python_type):
        return value

    try:
        if python_type is bool:
            text = str(value).strip().lower()
            if text in _TRUE_VALUES:
                return True
            if text in _FALSE_VALUES:
                return False
            raise ValueError(value)
        if python_type in (datetime.date, datetime.datetime):
            return python_type.fromisoformat(str(value))
        return python_type(value)
    except (TypeError, ValueError, InvalidOperation):
        raise ValidationFailed({field: [f"invalid value {value!r}"]}) from None


class SQLAlchemyQuery:
    """Query adapter over a SQLAlchemy ``select()`` for one mapped class.

    Custom filter operations are classmethods of the mapped class taking
    ``(statement, value)`` and returning the narrowed statement.
    """

    def __init__(
        self,
        session: Session,
        model: type,
        statement: Select[Any] | None = None,
        options: tuple[Any, ...] = (),
    ) -> None:
        self.session = session
        self.model = model
        self.statement = statement if statement is not None else select(model)
        self.options = options

    def _derive(
        self,
        statement: Select[Any] | None = None,
        options: tuple[Any, ...] | None = None,
    ) -> SQLAlchemyQuery:
        return SQLAlchemyQuery(
            self.session,
            self.model,
            self.statement if statement is None else statement,
            self.options if options is None else options,
        )

    def _column(self, field: str) -> Any:
        # a missing attribute is a resource declaration bug, let it surface
        return getattr(self.model, field)

    def filter(self, *criteria: Any) -> SQLAlchemyQuery:
        """Narrow with raw SQLAlchemy criteria, for use in policy scopes."""
        return self._derive(self.statement.where(*criteria))

    def where_equal(self, field: str, value: Any) -> SQLAlchemyQuery:
        column = self._column(field)
        return self.filter(column == coerce_value(field, column, value))

    def where_between(self, field: str, low: Any, high: Any) -> SQLAlchemyQuery:
        column = self._column(field)
        return self.filter(
            column.between(
                coerce_value(field, column, low), coerce_value(field, column, high)
            )
        )

    def where_like(self, field: str, pattern: str) -> SQLAlchemyQuery:
        return self.filter(self._column(field).like(pattern))

    def apply(self, operation: str, value: Any) -> SQLAlchemyQuery:
        method = getattr(self.model, operation)
        return self._derive(method(self.statement, value))

    def includes(self, *associations: str) -> SQLAlchemyQuery:
        loaders = tuple(selectinload(self._column(name)) for name in associations)
        return self._derive(options=self.options + loaders)

    def count(self) -> int:
        counted = select(func.count()).select_from(
            self.statement.order_by(None).subquery()
        )
        return self.session.scalar(counted) or 0

    def all(self) -> list[Any]:
        return list(self.session.scalars(self.statement.options(*self.options)))

    def page(self, number: int, size: int) -> tuple[list[Any], int]:
        total = self.count()
        offset = (number - 1) * size
        # pages past the end never reach the driver, whose integers are bounded
        if offset >= total:
            return [], total
        primary_key = sa_inspect(self.model).primary_key
        statement = (
            self.statement.options(*self.options)
            .order_by(*primary_key)
            .limit(size)
            .offset(offset)
        )
        return list(self.session.scalars(statement)), total

    def find(self, ident: Any) -> Any | None:
        (column,) = sa_inspect(self.model).primary_key
        try:
            value = coerce_value(column.key, column, ident)
        except ValidationFailed:
            return None
        statement = self.statement.where(column == value).options(*self.options)
        try:
            return self.session.scalars(statement).first()
        except OverflowError:
            # no row can carry a key the driver cannot even bind
            return None


class SQLAlchemyStore:
    """Store backed by one SQLAlchemy session."""

    def __init__(self, session: Session) -> None:
        self.session = session

    def collection(self, model: type) -> SQLAlchemyQuery:
        return SQLAlchemyQuery(self.session, model)

    def build(self, model: type, fields: Mapping[str, Any]) -> Any:
        # @validates hooks on the model raise ValueError while attributes are set
        try:
            return model(**fields)
        except ValueError as exc:
            raise BusinessRuleViolation([str(exc)]) from exc

    def assign(self, record: Any, fields: Mapping[str, Any]) -> None:
        try:
            for key, value in fields.items():
                setattr(record, key, value)
        except ValueError as exc:
            raise BusinessRuleViolation([str(exc)]) from exc

    def save(self, record: Any) -> list[str]:
        self.session.add(record)
        try:
            self.session.commit()
        except IntegrityError as exc:
            self.session.rollback()
            log.info("Rejected %s: %s", type(record).__name__, exc.orig)
            return [str(exc.orig)]
        return []

    def delete(self, record: Any) -> None:
        self.session.delete(record)
        self.session.commit()


class SQLAlchemyDataSource:
    """DataSource opening one SQLAlchemy session per request."""

    def __init__(self, session_factory: sessionmaker[Session]) -> None:
        self._session_factory = session_factory

    @classmethod
    def from_engine(cls, engine: Any) -> SQLAlchemyDataSource:
        return cls(sessionmaker(engine))

    @contextmanager
    def session(self) -> Iterator[SQLAlchemyStore]:
        with self._session_factory() as session:
            yield SQLAlchemyStore(session)
