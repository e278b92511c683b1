"""FastAPI application factory."""

from __future__ import annotations

import logging
from contextlib import asynccontextmanager
from typing import TYPE_CHECKING

from fastapi import FastAPI

from treecalc._config import TreecalcConfig
from treecalc._migrate import migrate
from treecalc._recalc import RecalculationCoordinator
from treecalc._store import Database
from treecalc._tree import ResourceTree

from ._errors import register_error_handlers
from ._routes import expressions_router, resources_router

if TYPE_CHECKING:
    from collections.abc import AsyncIterator

logger = logging.getLogger(__name__)


def create_app(
    config: TreecalcConfig | None = None,
    *,
    database: Database | None = None,
    seed: bool = False,
) -> FastAPI:
    """Create the HTTP application.

    The database is opened, migrated (and optionally seeded) when the app
    starts and disposed when it stops. A caller-supplied `database` is
    migrated the same way but left open at shutdown; its owner disposes it.

    Args:
        config: Service configuration. Defaults to `TreecalcConfig()`.
        database: An existing Database to serve instead of opening `config.database_url`.
        seed: Load the sample data at startup.

    Returns:
        The FastAPI application.

    """
    config = config or TreecalcConfig()

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncIterator[None]:
        owns_database = database is None
        db = Database.from_url(config.database_url, echo=config.echo_sql) if database is None else database
        migrate(db, seed=seed)

        app.state.database = db
        app.state.tree = ResourceTree(db)
        app.state.coordinator = RecalculationCoordinator(db)
        logger.info("Serving database %s", db.engine.url.render_as_string(hide_password=True))
        try:
            yield
        finally:
            if owns_database:
                db.dispose()

    app = FastAPI(title="treecalc", lifespan=lifespan)
    register_error_handlers(app)
    # Registered ahead of the catch-all "/{resource_id}" routes.
    app.include_router(expressions_router)
    app.include_router(resources_router)
    return app
