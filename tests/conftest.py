"""Shared fixtures: an in-memory database loaded with the sample data."""

from collections.abc import Iterator

import pytest

from treecalc import Database, RecalculationCoordinator, ResourceTree, migrate


@pytest.fixture
def database() -> Iterator[Database]:
    """Fresh in-memory SQLite database with tables and sample rows."""
    db = Database.from_url("sqlite://")
    migrate(db, seed=True)
    yield db
    db.dispose()


@pytest.fixture
def empty_database() -> Iterator[Database]:
    """Fresh in-memory SQLite database with tables but no rows."""
    db = Database.from_url("sqlite://")
    migrate(db)
    yield db
    db.dispose()


@pytest.fixture
def coordinator(database: Database) -> RecalculationCoordinator:
    return RecalculationCoordinator(database)


@pytest.fixture
def tree(database: Database) -> ResourceTree:
    return ResourceTree(database)
