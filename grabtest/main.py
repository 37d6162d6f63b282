import logging
from typing import Optional

from fastapi import FastAPI

from grabtest.configs import settings
from grabtest.options import build_config
from grabtest.routes import handler_router
from grabtest.schemas import BehaviorConfig

logging.basicConfig(level=settings.log_level, format="%(asctime)s - %(name)s - %(levelname)s - %(message)s")
logger = logging.getLogger(__name__)


def create_app(config: Optional[BehaviorConfig] = None) -> FastAPI:
    """
    Create an application serving synthetic content.

    Args:
        config (BehaviorConfig, optional): Behavior of the handler. Defaults to the behavior in the settings.

    Returns:
        FastAPI: The application.
    """
    if config is None:
        config = build_config(*settings.behavior.get_options())

    # Every path belongs to the handler, so the documentation routes stay off
    app = FastAPI(title="grabtest", openapi_url=None, docs_url=None, redoc_url=None)
    app.state.behavior = config
    app.include_router(handler_router)
    return app


app = create_app()


def run():
    import uvicorn

    logger.info(f"Serving {app.state.behavior.content_length} synthetic bytes on {settings.host}:{settings.port}")
    uvicorn.run(app, host=settings.host, port=settings.port, log_level=settings.log_level.lower())


if __name__ == "__main__":
    run()
