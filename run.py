"""Entry point for the Task Manager API.

Builds the FastAPI application and serves it with Uvicorn.  Host and
port come from the ``HOST`` and ``PORT`` environment variables (see
``task_manager_api.app.core.config``); defaults are ``0.0.0.0`` and
``8000``.

Usage:
    python run.py
"""
import asyncio
import logging

from uvicorn import Config, Server

from task_manager_api.app.core.config import settings
from task_manager_api.app.main import app


async def main() -> None:
    """Run the API server until interrupted."""
    config = Config(
        app=app,
        host=settings.host,
        port=settings.port,
        reload=False,
        log_level=settings.log_level.lower(),
    )
    server = Server(config)
    logging.getLogger(__name__).info("Serving on http://%s:%s", settings.host, settings.port)
    await server.serve()


if __name__ == "__main__":
    try:
        asyncio.run(main())
    except (KeyboardInterrupt, SystemExit):
        pass
