"""
Users API: Command-line Entry Point
====================================

Usage:
    python -m users_api
    users-api

Serves the application with uvicorn on HOST:PORT (default 0.0.0.0:3000).
Lifespan handling is forced on: if the database schema cannot be created,
startup fails and the process exits with a non-zero status.
"""

import uvicorn

from users_api.config import get_settings


def main() -> None:
    settings = get_settings()
    uvicorn.run(
        "users_api.main:app",
        host=settings.host,
        port=settings.port,
        lifespan="on",
        log_level=settings.log_level.lower(),
    )


if __name__ == "__main__":
    main()
