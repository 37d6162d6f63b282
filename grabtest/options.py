"""
Composable behavior options.

Each option is a function taking the current :class:`BehaviorConfig` and
returning an updated copy. Options touching different fields commute; for the
same field the last one applied wins.
"""

import logging
from datetime import datetime, timezone
from typing import Callable, Optional, Union

from starlette.requests import Request

from grabtest.schemas import BehaviorConfig

logger = logging.getLogger(__name__)

Option = Callable[[BehaviorConfig], BehaviorConfig]


class OptionError(ValueError):
    """Raised when an option is given a value the handler cannot serve."""


class InvalidContentLength(OptionError):
    def __init__(self, length: int):
        self.length = length
        super().__init__(f"content length must not be negative, got {length}")


def _replace(config: BehaviorConfig, **changes) -> BehaviorConfig:
    return BehaviorConfig(**{**dict(config), **changes})


def build_config(*options: Option, base: Optional[BehaviorConfig] = None) -> BehaviorConfig:
    """
    Apply options in order on top of the default behavior.

    Args:
        *options (Option): Option functions to apply.
        base (BehaviorConfig, optional): Starting configuration. Defaults to the default behavior.

    Returns:
        BehaviorConfig: The resolved configuration.
    """
    config = base if base is not None else BehaviorConfig()
    for option in options:
        config = option(config)
    logger.debug(f"Built behavior config: {config!r}")
    return config


def method_whitelist(*methods: str) -> Option:
    """Only serve the given methods. Other methods are answered with 405."""
    allowed = frozenset(method.upper() for method in methods)

    def apply(config: BehaviorConfig) -> BehaviorConfig:
        return _replace(config, allowed_methods=allowed)

    return apply


def header_blacklist(*names: str) -> Option:
    """Remove the named headers from every response."""
    blocked = frozenset(name.lower() for name in names)

    def apply(config: BehaviorConfig) -> BehaviorConfig:
        return _replace(config, blocked_headers=config.blocked_headers | blocked)

    return apply


def status_code(fn: Callable[[Request], int]) -> Option:
    """Decide the status code of non-partial responses with ``fn``."""

    def apply(config: BehaviorConfig) -> BehaviorConfig:
        return _replace(config, status_fn=fn)

    return apply


def constant_status(code: int) -> Callable[[Request], int]:
    def status(request: Request) -> int:
        return code

    return status


def content_length(length: int) -> Option:
    """
    Set the size of the synthetic body.

    Raises:
        InvalidContentLength: If ``length`` is negative.
    """
    if length < 0:
        raise InvalidContentLength(length)

    def apply(config: BehaviorConfig) -> BehaviorConfig:
        return _replace(config, content_length=length)

    return apply


def accept_ranges(enabled: bool) -> Option:
    def apply(config: BehaviorConfig) -> BehaviorConfig:
        return _replace(config, accept_ranges=enabled)

    return apply


def attachment_filename(filename: str) -> Option:
    def apply(config: BehaviorConfig) -> BehaviorConfig:
        return _replace(config, attachment_filename=filename)

    return apply


def last_modified(timestamp: Union[datetime, int, float]) -> Option:
    """Set Last-Modified from a datetime or from Unix seconds."""
    if not isinstance(timestamp, datetime):
        timestamp = datetime.fromtimestamp(timestamp, tz=timezone.utc)

    def apply(config: BehaviorConfig) -> BehaviorConfig:
        return _replace(config, last_modified=timestamp)

    return apply


def time_to_first_byte(seconds: float) -> Option:
    """Hold every response back for ``seconds`` before anything is written."""
    if seconds < 0:
        raise OptionError(f"time to first byte must not be negative, got {seconds}")

    def apply(config: BehaviorConfig) -> BehaviorConfig:
        return _replace(config, time_to_first_byte=seconds)

    return apply


def rate_limit(bytes_per_second: Optional[int]) -> Option:
    """Limit body throughput. ``None`` removes the limit."""
    if bytes_per_second is not None and bytes_per_second <= 0:
        raise OptionError(f"rate limit must be positive, got {bytes_per_second}")

    def apply(config: BehaviorConfig) -> BehaviorConfig:
        return _replace(config, rate_limit=bytes_per_second)

    return apply
