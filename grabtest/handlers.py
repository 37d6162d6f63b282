import logging
from typing import Iterable, Optional

import anyio
from fastapi import Request, Response
from starlette.datastructures import MutableHeaders

from .const import (
    ACCEPT_RANGES,
    ALLOW,
    CONTENT_DISPOSITION,
    CONTENT_LENGTH,
    CONTENT_RANGE,
    CONTENT_TYPE,
    LAST_MODIFIED,
    SYNTHETIC_MEDIA_TYPE,
)
from .schemas import BehaviorConfig, ResolvedRange, ResponsePlan
from .utils.http_utils import SyntheticStreamingResponse, format_http_date, synthetic_content
from .utils.range_utils import RangeNotSatisfiable, resolve_range

logger = logging.getLogger(__name__)


class MethodNotAllowed(Exception):
    def __init__(self, method: str, allowed_methods: Iterable[str]):
        self.status_code = 405
        self.method = method
        self.allowed_methods = sorted(allowed_methods)
        self.message = f"Method {method} is not allowed"
        super().__init__(self.message)


def handle_exceptions(exception: Exception) -> Response:
    """
    Handle exceptions and return appropriate HTTP responses.

    Args:
        exception (Exception): The exception that was raised.

    Returns:
        Response: An HTTP response corresponding to the exception type.
    """
    if isinstance(exception, MethodNotAllowed):
        logger.info(f"Rejected request: {exception}")
        return Response(status_code=exception.status_code, headers={ALLOW: ", ".join(exception.allowed_methods)})
    else:
        logger.exception(f"Internal server error while handling request: {exception}")
        return Response(status_code=500, content=f"Internal server error: {exception}")


def apply_header_blacklist(headers: MutableHeaders, blocked_headers: Iterable[str]) -> MutableHeaders:
    """Drop blocked headers from an already composed header set."""
    for name in blocked_headers:
        if name in headers:
            del headers[name]
    return headers


def compose_response(request: Request, config: BehaviorConfig, resolved: Optional[ResolvedRange]) -> ResponsePlan:
    """
    Decide the status, headers and body of a served request.

    Args:
        request (Request): The incoming request. Passed to the status code function.
        config (BehaviorConfig): Behavior of the handler.
        resolved (ResolvedRange, optional): The byte range to serve, if any.

    Returns:
        ResponsePlan: The response to write.
    """
    if resolved is not None:
        status_code = 206
        body_offset, body_length = resolved.start, resolved.length
    else:
        status_code = config.status_fn(request)
        body_offset, body_length = 0, config.content_length

    headers = MutableHeaders()
    if config.accept_ranges:
        headers[ACCEPT_RANGES] = "bytes"
    headers[CONTENT_TYPE] = SYNTHETIC_MEDIA_TYPE
    headers[CONTENT_LENGTH] = str(body_length)
    if resolved is not None:
        headers[CONTENT_RANGE] = f"bytes {resolved.start}-{resolved.end}/{config.content_length}"
    if config.attachment_filename is not None:
        headers[CONTENT_DISPOSITION] = f'attachment;filename="{config.attachment_filename}"'
    if config.last_modified is not None:
        headers[LAST_MODIFIED] = format_http_date(config.last_modified)

    apply_header_blacklist(headers, config.blocked_headers)

    if request.method.upper() == "HEAD":
        body_length = 0

    return ResponsePlan(status_code=status_code, headers=headers, body_length=body_length, body_offset=body_offset)


def compose_range_not_satisfiable(config: BehaviorConfig, error: RangeNotSatisfiable) -> ResponsePlan:
    """Build the 416 answer to a range that lies outside the body."""
    headers = MutableHeaders()
    if config.accept_ranges:
        headers[ACCEPT_RANGES] = "bytes"
    headers[CONTENT_LENGTH] = "0"
    headers[CONTENT_RANGE] = f"bytes */{error.content_length}"
    apply_header_blacklist(headers, config.blocked_headers)
    return ResponsePlan(status_code=error.status_code, headers=headers)


async def handle_request(request: Request, config: BehaviorConfig) -> Response:
    """
    Serve one request according to ``config``.

    The method is checked against the whitelist first. Allowed requests have
    their Range header resolved, the response composed, and the synthetic body
    streamed.

    Args:
        request (Request): The incoming request.
        config (BehaviorConfig): Behavior of the handler.

    Returns:
        Response: The response to send.
    """
    if config.time_to_first_byte:
        await anyio.sleep(config.time_to_first_byte)

    method = request.method.upper()
    if config.allowed_methods and method not in config.allowed_methods:
        return handle_exceptions(MethodNotAllowed(method, config.allowed_methods))

    try:
        try:
            resolved = resolve_range(request.headers.get("range"), config.content_length, config.accept_ranges)
        except RangeNotSatisfiable as e:
            logger.info(f"Rejected request: {e}")
            plan = compose_range_not_satisfiable(config, e)
        else:
            plan = compose_response(request, config, resolved)
    except Exception as e:
        return handle_exceptions(e)

    logger.debug(f"{method} {request.url.path} -> {plan.status_code}, {plan.body_length} body bytes")
    return SyntheticStreamingResponse(
        synthetic_content(plan.body_offset, plan.body_length, rate_limit=config.rate_limit),
        status_code=plan.status_code,
        headers=plan.headers,
    )
