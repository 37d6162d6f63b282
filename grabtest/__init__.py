from .options import (
    InvalidContentLength,
    OptionError,
    accept_ranges,
    attachment_filename,
    build_config,
    content_length,
    header_blacklist,
    last_modified,
    method_whitelist,
    rate_limit,
    status_code,
    time_to_first_byte,
)
from .schemas import BehaviorConfig, ResolvedRange, ResponsePlan

__all__ = [
    "BehaviorConfig",
    "ResolvedRange",
    "ResponsePlan",
    "InvalidContentLength",
    "OptionError",
    "accept_ranges",
    "attachment_filename",
    "build_config",
    "content_length",
    "header_blacklist",
    "last_modified",
    "method_whitelist",
    "rate_limit",
    "status_code",
    "time_to_first_byte",
]
