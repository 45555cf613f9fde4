"""
Main entrypoint for the Task Manager API.

This module assembles the FastAPI application: it sets up logging,
builds the credential service and the in-memory store, wires the
services onto ``app.state`` and mounts the REST routes under
``/api/v1`` and the GraphQL endpoint at ``/graphql``.  The app is
instantiated at import time as ``app`` so it can be served with::

    uvicorn task_manager_api.app.main:app --reload
"""

import logging
import time
from datetime import datetime, timezone
from typing import Optional

from fastapi import FastAPI

from .api.error_handlers import register_error_handlers
from .api.v1.router import router as v1_router
from .core.config import Settings, settings as default_settings
from .core.logging_config import setup_logging
from .core.security import CredentialService
from .core.store import Store
from .graphql.schema import create_graphql_router
from .services.auth_service import AuthService
from .services.task_service import TaskService
from .services.user_service import UserService

logger = logging.getLogger(__name__)


def create_app(settings: Optional[Settings] = None, store: Optional[Store] = None) -> FastAPI:
    """Create and configure a FastAPI application.

    Parameters
    ----------
    settings : Settings, optional
        Configuration to use.  Defaults to the module-level settings
        read from the environment.
    store : Store, optional
        A pre-built store.  When omitted a new one is created and, if
        ``settings.seed_demo_data`` is set, filled with demo data.

    Returns
    -------
    FastAPI
        A configured FastAPI application instance.
    """
    settings = settings or default_settings
    setup_logging(settings.log_level, settings.log_file or None)

    if settings.secret_key == "change_me":
        logger.warning("SECRET_KEY is not set; using the insecure development default")

    credentials = CredentialService(
        settings.secret_key,
        token_ttl_seconds=settings.access_token_expire_minutes * 60,
        hash_iterations=settings.password_hash_iterations,
    )
    if store is None:
        store = Store(password_hasher=credentials.hash_password)
        if settings.seed_demo_data:
            store.seed()

    app = FastAPI(title=settings.project_name, version=settings.api_version, debug=settings.debug)
    app.state.settings = settings
    app.state.store = store
    app.state.credentials = credentials
    app.state.auth_service = AuthService(store, credentials)
    app.state.task_service = TaskService(store)
    app.state.user_service = UserService(store, credentials)
    app.state.started_at = time.monotonic()

    register_error_handlers(app)
    app.include_router(v1_router, prefix="/api/v1")
    app.include_router(create_graphql_router(settings.graphiql), prefix="/graphql")

    @app.get("/health", tags=["health"])
    async def health() -> dict:
        """Liveness check."""
        return {
            "status": "OK",
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "uptime": round(time.monotonic() - app.state.started_at, 3),
            "version": settings.api_version,
        }

    logger.info("%s %s ready", settings.project_name, settings.api_version)
    return app


# Create the application instance at import time so that tools such as
# uvicorn can discover it without calling create_app manually.
app = create_app()
