"""Tests for schema creation and the sample data."""

import pytest

from treecalc import Database, RecalculationCoordinator, migrate, seed_sample_data
from treecalc._migrate import SAMPLE_CALCULATIONS, SAMPLE_RESOURCES, SAMPLE_VARIABLES, index_dependencies
from treecalc._store import CalculationRow, CalculationStore, ResourceStore, VariableStore


class TestMigrate:
    """Tests for migrate."""

    def test_creates_empty_tables(self, empty_database: Database) -> None:
        with empty_database.transaction() as session:
            assert VariableStore(session).list_all() == []
            assert CalculationStore(session).list_all() == []
            assert not ResourceStore(session).exists(1)

    def test_idempotent(self, empty_database: Database) -> None:
        migrate(empty_database)
        migrate(empty_database)
        with empty_database.transaction() as session:
            assert VariableStore(session).list_all() == []


class TestSeedSampleData:
    """Tests for seed_sample_data."""

    def test_sample_rows(self, database: Database) -> None:
        with database.transaction() as session:
            variables = VariableStore(session).list_all()
            calculations = CalculationStore(session).list_all()

        assert [(v.id, v.name, v.value) for v in variables] == list(SAMPLE_VARIABLES)
        assert [(c.id, c.name, c.expression) for c in calculations] == list(SAMPLE_CALCULATIONS)
        assert all(c.calculated_value is None for c in calculations)

    def test_reseed_resets_variables_and_calculations(self, database: Database) -> None:
        with database.transaction() as session:
            VariableStore(session).update_value(1, 100.0)
            CalculationStore(session).create("extra", '{"id": 2}', [2])

        seed_sample_data(database)

        with database.transaction() as session:
            assert VariableStore(session).get_value(1) == 2.5
            assert len(CalculationStore(session).list_all()) == len(SAMPLE_CALCULATIONS)
            assert CalculationStore(session).find_dependents(2) == [2]

    def test_reseed_keeps_existing_resources(self, database: Database) -> None:
        with database.transaction() as session:
            ResourceStore(session).set_parent(3, 1)

        seed_sample_data(database)

        with database.transaction() as session:
            resources = ResourceStore(session)
            assert resources.parent_of(3) == 1
            assert all(resources.exists(resource_id) for resource_id, _, _ in SAMPLE_RESOURCES)


class TestIndexDependencies:
    """Tests for indexing calculations stored without dependency rows."""

    def test_migrate_indexes_existing_calculations(self, database: Database) -> None:
        with database.transaction() as session:
            session.add(CalculationRow(id=10, name="legacy", expression='{ "id": 1, "name": "base_price" } * 2'))

        migrate(database)

        coordinator = RecalculationCoordinator(database)
        assert coordinator.find_dependents(1) == [1, 2, 3, 10]
        results = coordinator.recalculate_for_variable(1)
        assert [r.id for r in results] == [1, 2, 3, 10]
        assert results[-1].calculated_value == pytest.approx(5.0)

    def test_malformed_reference_is_skipped(self, database: Database) -> None:
        with database.transaction() as session:
            session.add(CalculationRow(id=11, name="broken", expression='{"name": "x"} + 1'))
            session.add(CalculationRow(id=12, name="ok", expression='{"id": 3} - 1'))

        assert index_dependencies(database) == 1

        with database.transaction() as session:
            calculations = CalculationStore(session)
            assert calculations.find_dependents(3) == [3, 12]
            assert [c.id for c in calculations.unindexed()] == [11]

    def test_indexed_calculations_untouched(self, database: Database) -> None:
        assert index_dependencies(database) == 0
        with database.transaction() as session:
            assert CalculationStore(session).find_dependents(2) == [2]
