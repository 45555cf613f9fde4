"""
Simple configuration management.

The ``Settings`` dataclass reads configuration from environment
variables when it is instantiated.  Defaults are provided for all
fields so the API runs out of the box as a demo.  In a real deployment
at least ``SECRET_KEY`` must be overridden.

One instance is created at import time as ``settings``; tests build
their own instance and hand it to ``create_app`` instead.
"""

import os
from dataclasses import dataclass, field


def _env_bool(name: str, default: str) -> bool:
    return os.getenv(name, default).lower() in {"1", "true", "yes"}


@dataclass
class Settings:
    """Application settings loaded from environment variables."""

    project_name: str = field(default_factory=lambda: os.getenv("PROJECT_NAME", "Task Manager API"))
    api_version: str = field(default_factory=lambda: os.getenv("API_VERSION", "1.0.0"))
    debug: bool = field(default_factory=lambda: _env_bool("DEBUG", "false"))
    log_level: str = field(default_factory=lambda: os.getenv("LOG_LEVEL", "INFO"))
    # Optional path of a log file; console logging is always enabled.
    log_file: str = field(default_factory=lambda: os.getenv("LOG_FILE", ""))

    # Token signing.  The secret is handed to the credential service once
    # at startup; nothing else reads it.
    secret_key: str = field(default_factory=lambda: os.getenv("SECRET_KEY", "change_me"))
    access_token_expire_minutes: int = field(
        default_factory=lambda: int(os.getenv("ACCESS_TOKEN_EXPIRE_MINUTES", str(60 * 24)))
    )

    # PBKDF2 cost factor for new password hashes.  Existing hashes keep
    # the cost they were created with.
    password_hash_iterations: int = field(
        default_factory=lambda: int(os.getenv("PASSWORD_HASH_ITERATIONS", "100000"))
    )

    # Populate a fresh store with a demo admin, a demo user and two tasks.
    seed_demo_data: bool = field(default_factory=lambda: _env_bool("SEED_DEMO_DATA", "true"))

    # Serve the GraphiQL IDE on GET /graphql.
    graphiql: bool = field(default_factory=lambda: _env_bool("GRAPHIQL", "true"))

    host: str = field(default_factory=lambda: os.getenv("HOST", "0.0.0.0"))
    port: int = field(default_factory=lambda: int(os.getenv("PORT", "8000")))


# Instantiate settings once so other modules can import it without
# repeatedly reading environment variables.
settings = Settings()
