"""Schema creation and sample data."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from sqlalchemy import delete, text

from ._errors import TreecalcError
from ._expr import expression_references
from ._store import (
    CalculationDependencyRow,
    CalculationRow,
    CalculationStore,
    ResourceStore,
    VariableRow,
    VariableStore,
)

if TYPE_CHECKING:
    from ._store import Database

logger = logging.getLogger(__name__)

SAMPLE_VARIABLES: tuple[tuple[int, str, float], ...] = (
    (1, "base_price", 2.5),
    (2, "tax_rate", 0.08),
    (3, "discount", 5.0),
)

SAMPLE_CALCULATIONS: tuple[tuple[int, str, str], ...] = (
    (1, "price_with_markup", '{ "id": 1, "name": "base_price" } + 10 * 2'),
    (2, "price_with_tax", '{ "id": 1, "name": "base_price" } * (1 + { "id": 2, "name": "tax_rate" })'),
    (3, "discounted_price", '{ "id": 1, "name": "base_price" } * 10 - { "id": 3, "name": "discount" }'),
)

SAMPLE_RESOURCES: tuple[tuple[int, str, int | None], ...] = (
    (1, "Resource A", None),
    (2, "Resource B", 1),
    (3, "Resource C", 2),
)

_SERIAL_TABLES = ("variables", "calculations", "singleresource")


def _sync_postgres_sequences(database: Database) -> None:
    """Move SERIAL sequences past explicitly inserted ids."""
    with database.transaction() as session:
        for table in _SERIAL_TABLES:
            session.execute(
                text(
                    f"SELECT setval(pg_get_serial_sequence('{table}', 'id'), "  # noqa: S608 - fixed table names
                    f"COALESCE((SELECT MAX(id) FROM {table}), 1))",
                ),
            )


def seed_sample_data(database: Database) -> None:
    """Replace variables and calculations with the sample set and add sample resources.

    Variables, calculations and dependency rows are cleared first. Sample
    resources are only inserted where their ids are not taken.
    """
    with database.transaction() as session:
        session.execute(delete(CalculationDependencyRow))
        session.execute(delete(CalculationRow))
        session.execute(delete(VariableRow))

        variables = VariableStore(session)
        for variable_id, name, value in SAMPLE_VARIABLES:
            variables.create(name, value, variable_id=variable_id)

        calculations = CalculationStore(session)
        for calculation_id, name, expression in SAMPLE_CALCULATIONS:
            calculations.create(name, expression, expression_references(expression), calculation_id=calculation_id)

        resources = ResourceStore(session)
        for resource_id, name, parent_id in SAMPLE_RESOURCES:
            if not resources.exists(resource_id):
                resources.create(name, parent_id, resource_id=resource_id)

    if database.dialect_name == "postgresql":
        _sync_postgres_sequences(database)

    logger.info(
        "Sample data set up: %d variables, %d calculations, %d resources",
        len(SAMPLE_VARIABLES),
        len(SAMPLE_CALCULATIONS),
        len(SAMPLE_RESOURCES),
    )


def index_dependencies(database: Database) -> int:
    """Write dependency rows for calculations that have none.

    Calculations stored before the dependency table existed (or inserted
    directly in SQL) are otherwise never found by `find_dependents`. A
    calculation whose expression has a malformed reference is logged and
    skipped.

    Returns:
        The number of calculations indexed.

    """
    indexed = 0
    with database.transaction() as session:
        calculations = CalculationStore(session)
        for calculation in calculations.unindexed():
            try:
                variable_ids = expression_references(calculation.expression)
            except TreecalcError as e:
                logger.warning("Skipping calculation %d while indexing: %s", calculation.id, e)
                continue
            if variable_ids:
                calculations.set_dependencies(calculation.id, variable_ids)
                indexed += 1
    if indexed:
        logger.info("Indexed dependencies of %d existing calculations", indexed)
    return indexed


def migrate(database: Database, *, seed: bool = False) -> None:
    """Create any missing tables, index existing calculations and optionally load the sample data."""
    database.create_all()
    logger.info("Tables created")
    index_dependencies(database)
    if seed:
        seed_sample_data(database)
