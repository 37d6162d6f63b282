import logging
import typing
from datetime import datetime, timezone
from email.utils import formatdate
from functools import partial

import anyio
import h11
from starlette.background import BackgroundTask
from starlette.responses import Response
from starlette.types import Receive, Scope, Send
from tqdm.asyncio import tqdm as tqdm_asyncio

from grabtest.configs import settings
from grabtest.const import STREAM_CHUNK_SIZE

logger = logging.getLogger(__name__)

_PATTERN = bytes(range(256))


def format_http_date(value: datetime) -> str:
    """
    Format a timestamp as an RFC 1123 HTTP-date in GMT.

    Args:
        value (datetime): The timestamp. Naive values are taken to be UTC.

    Returns:
        str: e.g. ``Thu, 29 Nov 1973 21:33:09 GMT``.
    """
    if value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)
    return formatdate(value.timestamp(), usegmt=True)


def synthetic_bytes(offset: int, length: int) -> bytes:
    """Return ``length`` body bytes starting at absolute ``offset``; byte ``i`` is ``i % 256``."""
    if length <= 0:
        return b""
    start = offset % len(_PATTERN)
    repeats = (start + length) // len(_PATTERN) + 1
    return (_PATTERN * repeats)[start : start + length]


async def synthetic_content(
    offset: int,
    length: int,
    rate_limit: typing.Optional[int] = None,
    chunk_size: int = STREAM_CHUNK_SIZE,
) -> typing.AsyncGenerator[bytes, None]:
    """
    Generate the synthetic body as chunks.

    Args:
        offset (int): Absolute offset of the first byte.
        length (int): Number of bytes to produce.
        rate_limit (int, optional): Maximum bytes per second. Defaults to unlimited.
        chunk_size (int): Maximum size of each chunk.
    """
    if rate_limit:
        # A chunk never exceeds one second of allowance
        chunk_size = min(chunk_size, rate_limit)

    position = offset
    end = offset + length
    progress_bar = None
    if settings.enable_streaming_progress and length > 0:
        progress_bar = tqdm_asyncio(
            total=end,
            initial=offset,
            unit="B",
            unit_scale=True,
            unit_divisor=1024,
            desc="Serving",
            ncols=100,
            mininterval=1,
        )

    try:
        while position < end:
            chunk = synthetic_bytes(position, min(chunk_size, end - position))
            yield chunk
            position += len(chunk)
            if progress_bar is not None:
                progress_bar.update(len(chunk))
            if rate_limit:
                await anyio.sleep(len(chunk) / rate_limit)
    finally:
        if progress_bar is not None:
            progress_bar.close()


class SyntheticStreamingResponse(Response):
    """
    Streams a body while leaving the header set exactly as given.

    Unlike starlette's Response, no Content-Length or Content-Type is added, so
    a suppressed header stays suppressed.
    """

    body_iterator: typing.AsyncIterable[bytes]

    def __init__(
        self,
        content: typing.AsyncIterable[bytes],
        status_code: int = 200,
        headers: typing.Optional[typing.Mapping[str, str]] = None,
        background: typing.Optional[BackgroundTask] = None,
    ) -> None:
        self.body_iterator = content
        self.status_code = status_code
        self.media_type = None
        self.background = background
        self.init_headers(headers)
        self.bytes_sent = 0

    @staticmethod
    async def listen_for_disconnect(receive: Receive) -> None:
        """
        Wait until the client goes away.
        """
        while True:
            message = await receive()
            if message["type"] == "http.disconnect":
                logger.debug("Client disconnected")
                break

    async def stream_response(self, send: Send) -> None:
        await send(
            {
                "type": "http.response.start",
                "status": self.status_code,
                "headers": self.raw_headers,
            }
        )

        try:
            async for chunk in self.body_iterator:
                await send({"type": "http.response.body", "body": chunk, "more_body": True})
                self.bytes_sent += len(chunk)
            await send({"type": "http.response.body", "body": b"", "more_body": False})
        except (ConnectionResetError, anyio.BrokenResourceError):
            logger.info(f"Client disconnected after {self.bytes_sent} bytes")
        except h11.LocalProtocolError as e:
            logger.warning(f"Protocol error after {self.bytes_sent} bytes: {e}")

    async def __call__(self, scope: Scope, receive: Receive, send: Send) -> None:
        """
        ASGI entrypoint: stream the body until done or until the client disconnects.
        """
        async with anyio.create_task_group() as task_group:

            async def wrap(func: typing.Callable[[], typing.Awaitable[None]]) -> None:
                await func()
                task_group.cancel_scope.cancel()

            task_group.start_soon(wrap, partial(self.stream_response, send))
            await wrap(partial(self.listen_for_disconnect, receive))

        if self.background is not None:
            await self.background()
