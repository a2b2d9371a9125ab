"""
FastAPI application factory and process entry point.

This module builds the FastAPI application around a UserRegistry and
bootstraps the service: settings, logging, database pools, migrations
and the uvicorn server.
"""

import argparse
import asyncio
import logging

import uvicorn
from fastapi import FastAPI

from src.adapters.repository.postgres import PostgresUserRegistry, run_migrations
from src.api.routes import UserHandler
from src.config.logging_setup import configure_logging
from src.config.settings import Settings, get_settings
from src.domain.ports import UserRegistry

logger = logging.getLogger(__name__)

# OpenAPI tags for documentation grouping
tags_metadata = [
    {
        "name": "users",
        "description": "Look up users by email and create new users",
    },
]


def create_app(registry: UserRegistry, handler_logger: logging.Logger | None = None) -> FastAPI:
    """
    Build the application with the user routes bound to a registry.

    Args:
        registry: Storage behind the routes
        handler_logger: Logger for request outcomes, defaults to src.api.routes
    """
    app = FastAPI(
        title="user-registry",
        description="User registry API - fetch a user by email, create a new user",
        version="0.1.0",
        openapi_tags=tags_metadata,
    )
    handler = UserHandler(registry, handler_logger or logging.getLogger("src.api.routes"))
    app.include_router(handler.router)
    app.state.registry = registry
    return app


async def serve(settings: Settings) -> None:
    """
    Run the service until the server stops.

    Opens the database pools, runs migrations, then serves HTTP.
    Pools are closed on shutdown.
    """
    logger.info("Connecting to database...")
    registry = await PostgresUserRegistry.connect(
        settings.database_url,
        settings.replica_database_url,
        min_size=settings.pool_min_size,
        max_size=settings.pool_max_size,
        query_timeout=settings.query_timeout_seconds,
    )
    try:
        logger.info("Running database migrations...")
        await run_migrations(registry.primary)

        app = create_app(registry)
        config = uvicorn.Config(app, host=settings.host, port=settings.port, log_config=None)
        logger.info(f"Listening on {settings.host}:{settings.port}")
        await uvicorn.Server(config).serve()
    finally:
        logger.info("Shutting down application...")
        await registry.close()
        logger.info("Database connection pools closed")


def main(argv: list[str] | None = None) -> None:
    """Console entry point."""
    parser = argparse.ArgumentParser(prog="user-registry", description="User registry API server")
    parser.add_argument("--debug", action="store_true", help="debug mode logging")
    args = parser.parse_args(argv)

    settings = get_settings()
    configure_logging(debug=args.debug or settings.debug)
    logger.info("starting app")
    asyncio.run(serve(settings))


if __name__ == "__main__":
    main()
