"""PipelineConfig — immutable settings shared by every request."""

from __future__ import annotations

import os
from collections.abc import Mapping
from dataclasses import dataclass, field
from typing import Any

from fastapi_resource_pipeline._types import AuthLookup
from fastapi_resource_pipeline.exceptions import ConfigurationError

_TRUE_VALUES = frozenset({"1", "true", "yes", "on"})


@dataclass(frozen=True)
class Messages:
    """User-facing envelope messages."""

    success: str = "Success"
    deleted: str = "Resource successfully deleted"
    access_denied: str = "access denied"
    not_found: str = "resource not found"
    internal_error: str = "Internal server error"


@dataclass(frozen=True)
class PipelineConfig:
    """Settings built once at startup and read by every flow.

    ``authenticate`` is the subject lookup; leaving it unset means the
    pipeline requires no authentication. With ``debug`` enabled, unhandled
    faults expose their class, message and traceback in the envelope and
    every request records a FlowTrace.
    """

    authenticate: AuthLookup | None = None
    default_per_page: int = 20
    max_per_page: int = 100
    page_param: str = "page"
    per_page_param: str = "per_page"
    debug: bool = False
    messages: Messages = field(default_factory=Messages)

    def __post_init__(self) -> None:
        if self.default_per_page < 1:
            raise ConfigurationError("default_per_page must be at least 1")
        if self.max_per_page < self.default_per_page:
            raise ConfigurationError("max_per_page must not be below default_per_page")

    @classmethod
    def from_env(
        cls,
        *,
        prefix: str = "RESOURCE_PIPELINE_",
        environ: Mapping[str, str] | None = None,
        **overrides: Any,
    ) -> PipelineConfig:
        """Build a config from ``RESOURCE_PIPELINE_*`` variables.

        Keyword overrides win over the environment.
        """
        env = os.environ if environ is None else environ
        values: dict[str, Any] = {}

        for name in ("default_per_page", "max_per_page"):
            raw = env.get(prefix + name.upper())
            if raw is not None:
                try:
                    values[name] = int(raw)
                except ValueError:
                    raise ConfigurationError(
                        f"{prefix}{name.upper()} must be an integer, got {raw!r}"
                    ) from None

        for name in ("page_param", "per_page_param"):
            raw = env.get(prefix + name.upper())
            if raw:
                values[name] = raw

        raw_debug = env.get(prefix + "DEBUG")
        if raw_debug is not None:
            values["debug"] = raw_debug.strip().lower() in _TRUE_VALUES

        values.update(overrides)
        return cls(**values)
