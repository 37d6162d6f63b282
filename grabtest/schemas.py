from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Callable, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator
from starlette.datastructures import MutableHeaders
from starlette.requests import Request

from grabtest.const import DEFAULT_CONTENT_LENGTH


def default_status(request: Request) -> int:
    """Status code used when no status code function is configured."""
    return 200


class BehaviorConfig(BaseModel):
    """Behavior of one synthetic handler instance. Built once, never mutated."""

    model_config = ConfigDict(frozen=True, arbitrary_types_allowed=True)

    allowed_methods: frozenset[str] = Field(
        default_factory=frozenset, description="Permitted request methods. Empty allows every method."
    )
    blocked_headers: frozenset[str] = Field(
        default_factory=frozenset, description="Response headers removed after the response is composed."
    )
    status_fn: Callable[..., int] = Field(
        default=default_status, description="Decides the status code of a non-partial response."
    )
    content_length: int = Field(DEFAULT_CONTENT_LENGTH, ge=0, description="Size of the synthetic body in bytes.")
    accept_ranges: bool = Field(True, description="Whether byte range requests are honored.")
    attachment_filename: Optional[str] = Field(
        None, description="Filename advertised through an attachment Content-Disposition header."
    )
    last_modified: Optional[datetime] = Field(None, description="Value of the Last-Modified header.")
    time_to_first_byte: float = Field(0.0, ge=0, description="Delay in seconds before the response starts.")
    rate_limit: Optional[int] = Field(None, gt=0, description="Maximum body throughput in bytes per second.")

    @field_validator("allowed_methods", mode="before")
    def normalize_methods(cls, value: Any):
        if isinstance(value, str):
            value = [value]
        return frozenset(method.upper() for method in value)

    @field_validator("blocked_headers", mode="before")
    def normalize_headers(cls, value: Any):
        if isinstance(value, str):
            value = [value]
        return frozenset(name.lower() for name in value)

    @field_validator("last_modified")
    def normalize_last_modified(cls, value: Optional[datetime]):
        if value is None:
            return value
        if value.tzinfo is None:
            # Naive timestamps are taken to be UTC
            return value.replace(tzinfo=timezone.utc)
        return value.astimezone(timezone.utc)


@dataclass(frozen=True)
class ResolvedRange:
    start: int
    end: int

    @property
    def length(self) -> int:
        return self.end - self.start + 1


@dataclass
class ResponsePlan:
    """Everything decided about a response before it is written."""

    status_code: int
    headers: MutableHeaders = field(default_factory=MutableHeaders)
    body_length: int = 0
    body_offset: int = 0
