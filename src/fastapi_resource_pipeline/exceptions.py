"""PipelineException hierarchy for controlled pipeline aborts."""

from __future__ import annotations

from typing import Any, ClassVar


class PipelineException(Exception):
    """Base for all pipeline exceptions."""


class ConfigurationError(PipelineException):
    """A resource or pipeline was declared inconsistently at startup."""


class PipelineAbort(PipelineException):
    """Controlled abort carrying the envelope code, message and data.

    Without an explicit ``msg``, subclasses naming a ``message_key`` are
    answered with that field of the configured Messages.
    """

    message_key: ClassVar[str | None] = None

    def __init__(self, msg: Any, *, code: int = -1, data: Any = None) -> None:
        super().__init__(msg)
        self.code = code
        self.msg = msg
        self.data = data


class ValidationFailed(PipelineAbort):
    """Client input did not match the expected shape (400)."""

    def __init__(self, errors: dict[str, list[str]]) -> None:
        super().__init__(errors, code=400)
        self.errors = errors


class AuthenticationFailed(PipelineAbort):
    """No subject could be resolved for the request (403)."""

    message_key = "access_denied"

    def __init__(self, msg: str | None = None) -> None:
        super().__init__(msg, code=403)


class PermissionDenied(PipelineAbort):
    """Subject resolved but not allowed to perform the action (403)."""

    message_key = "access_denied"

    def __init__(self, msg: str | None = None) -> None:
        super().__init__(msg, code=403)


class ResourceNotFound(PipelineAbort):
    """Record absent or outside the accessible set.

    Answered with 403 so that callers cannot tell the two apart.
    """

    message_key = "not_found"

    def __init__(self, msg: str | None = None) -> None:
        super().__init__(msg, code=403)


class BusinessRuleViolation(PipelineAbort):
    """Persistence layer rejected the record (-1)."""

    def __init__(self, errors: list[str]) -> None:
        super().__init__(", ".join(errors), code=-1)
        self.errors = list(errors)


class PipelineInternalError(PipelineException):
    """Engine-level error wrapping unexpected exceptions."""

    def __init__(self, detail: str, *, cause: Exception | None = None) -> None:
        super().__init__(detail)
        self.detail = detail
        self.cause = cause
