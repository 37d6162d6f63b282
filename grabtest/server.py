import contextlib
import logging
import threading
import typing

import tenacity
import uvicorn
from tenacity import retry, retry_if_result, stop_after_delay, wait_fixed

from grabtest.main import create_app
from grabtest.options import Option, build_config

logger = logging.getLogger(__name__)


class ServerStartError(Exception):
    pass


class BackgroundServer:
    """Runs uvicorn in a daemon thread on an ephemeral loopback port."""

    def __init__(self, app, host: str = "127.0.0.1", log_level: str = "warning"):
        self.config = uvicorn.Config(app, host=host, port=0, log_level=log_level, lifespan="off")
        self.server = uvicorn.Server(self.config)
        self.thread = threading.Thread(target=self.server.run, name="grabtest-server", daemon=True)

    @property
    def url(self) -> str:
        host, port = self.server.servers[0].sockets[0].getsockname()[:2]
        return f"http://{host}:{port}"

    @retry(
        stop=stop_after_delay(10),
        wait=wait_fixed(0.05),
        retry=retry_if_result(lambda started: not started),
    )
    def _wait_until_started(self) -> bool:
        if not self.thread.is_alive():
            raise ServerStartError("Server thread exited during startup")
        return self.server.started

    def start(self) -> str:
        self.thread.start()
        try:
            self._wait_until_started()
        except tenacity.RetryError:
            self.stop()
            raise ServerStartError("Timed out waiting for the server to start")
        logger.debug(f"Background server listening on {self.url}")
        return self.url

    def stop(self):
        self.server.should_exit = True
        self.thread.join(timeout=10)


@contextlib.contextmanager
def serve_in_background(*options: Option) -> typing.Iterator[str]:
    """
    Serve a handler built from ``options`` for the duration of the block.

    Usage:
        with serve_in_background(content_length(128)) as url:
            httpx.get(url)

    Yields:
        str: The base URL of the server.
    """
    server = BackgroundServer(create_app(build_config(*options)))
    url = server.start()
    try:
        yield url
    finally:
        server.stop()
