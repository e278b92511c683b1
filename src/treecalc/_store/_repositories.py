"""Repositories over a single session.

Each store is bound to the session of the transaction it runs in. Stores return
plain records, never ORM rows, so nothing outlives the transaction.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from sqlalchemy import delete, select

from treecalc._errors import NotFoundError, VariableNotFoundError
from treecalc._graph import DependencyIndex
from treecalc._models import Calculation, Resource, Variable

from ._tables import CalculationDependencyRow, CalculationRow, ResourceRow, VariableRow

if TYPE_CHECKING:
    from collections.abc import Iterable

    from sqlalchemy.orm import Session

logger = logging.getLogger(__name__)


def _to_variable(row: VariableRow) -> Variable:
    return Variable(id=row.id, name=row.name, value=row.value)


def _to_calculation(row: CalculationRow) -> Calculation:
    return Calculation(
        id=row.id,
        name=row.name,
        expression=row.expression,
        calculated_value=row.calculated_value,
    )


def _to_resource(row: ResourceRow) -> Resource:
    return Resource(id=row.id, name=row.name, parent_id=row.parent_id)


class VariableStore:
    """CRUD access to named numeric variables."""

    def __init__(self, session: Session) -> None:
        self._session = session

    def _row(self, variable_id: int) -> VariableRow:
        row = self._session.get(VariableRow, variable_id)
        if row is None:
            raise NotFoundError("variable", variable_id)
        return row

    def get(self, variable_id: int) -> Variable:
        return _to_variable(self._row(variable_id))

    def get_value(self, variable_id: int) -> float:
        """Get the current value of a variable.

        Raises:
            VariableNotFoundError: If no variable has this id.

        """
        row = self._session.get(VariableRow, variable_id)
        if row is None:
            raise VariableNotFoundError(variable_id)
        return row.value

    def list_all(self) -> list[Variable]:
        rows = self._session.scalars(select(VariableRow).order_by(VariableRow.id))
        return [_to_variable(row) for row in rows]

    def create(self, name: str, value: float, *, variable_id: int | None = None) -> Variable:
        row = VariableRow(id=variable_id, name=name, value=value)
        self._session.add(row)
        self._session.flush()
        logger.debug("Created variable %d (%s = %r)", row.id, name, value)
        return _to_variable(row)

    def update_value(self, variable_id: int, value: float) -> Variable:
        """Overwrite a variable's value.

        Raises:
            NotFoundError: If no variable has this id.

        """
        row = self._row(variable_id)
        row.value = value
        self._session.flush()
        logger.debug("Updated variable %d to %r", variable_id, value)
        return _to_variable(row)


class CalculationStore:
    """Persistence for calculations and their dependency rows."""

    def __init__(self, session: Session) -> None:
        self._session = session

    def _row(self, calculation_id: int) -> CalculationRow:
        row = self._session.get(CalculationRow, calculation_id)
        if row is None:
            raise NotFoundError("calculation", calculation_id)
        return row

    def get(self, calculation_id: int) -> Calculation:
        """Load a calculation.

        Raises:
            NotFoundError: If no calculation has this id.

        """
        return _to_calculation(self._row(calculation_id))

    def find(self, calculation_id: int) -> Calculation | None:
        row = self._session.get(CalculationRow, calculation_id)
        return None if row is None else _to_calculation(row)

    def list_all(self) -> list[Calculation]:
        rows = self._session.scalars(select(CalculationRow).order_by(CalculationRow.id))
        return [_to_calculation(row) for row in rows]

    def create(
        self,
        name: str,
        expression: str,
        variable_ids: Iterable[int],
        *,
        calculation_id: int | None = None,
    ) -> Calculation:
        """Insert a calculation together with its dependency rows."""
        row = CalculationRow(id=calculation_id, name=name, expression=expression)
        self._session.add(row)
        self._session.flush()
        self.set_dependencies(row.id, variable_ids)
        return _to_calculation(row)

    def update_expression(self, calculation_id: int, expression: str, variable_ids: Iterable[int]) -> Calculation:
        """Replace a calculation's expression and dependency rows.

        The stored value was derived from the old expression, so it is cleared.

        Raises:
            NotFoundError: If no calculation has this id.

        """
        row = self._row(calculation_id)
        row.expression = expression
        row.calculated_value = None
        self.set_dependencies(calculation_id, variable_ids)
        return _to_calculation(row)

    def set_calculated_value(self, calculation_id: int, value: float) -> None:
        """Overwrite the derived value of a calculation.

        Raises:
            NotFoundError: If no calculation has this id.

        """
        row = self._row(calculation_id)
        row.calculated_value = value
        self._session.flush()

    def set_dependencies(self, calculation_id: int, variable_ids: Iterable[int]) -> None:
        """Replace the dependency rows of a calculation."""
        self._session.execute(
            delete(CalculationDependencyRow).where(CalculationDependencyRow.calculation_id == calculation_id),
        )
        ids = sorted(set(variable_ids))
        self._session.add_all(
            CalculationDependencyRow(calculation_id=calculation_id, variable_id=variable_id) for variable_id in ids
        )
        self._session.flush()
        logger.debug("Calculation %d references variables %s", calculation_id, ids)

    def unindexed(self) -> list[Calculation]:
        """Calculations with no dependency rows, in ascending id order."""
        indexed = select(CalculationDependencyRow.calculation_id)
        rows = self._session.scalars(
            select(CalculationRow).where(CalculationRow.id.not_in(indexed)).order_by(CalculationRow.id),
        )
        return [_to_calculation(row) for row in rows]

    def find_dependents(self, variable_id: int) -> list[int]:
        """Ids of the calculations that reference a variable, in ascending order."""
        stmt = (
            select(CalculationDependencyRow.calculation_id)
            .where(CalculationDependencyRow.variable_id == variable_id)
            .order_by(CalculationDependencyRow.calculation_id)
        )
        return list(self._session.scalars(stmt))

    def dependency_index(self) -> DependencyIndex:
        """Snapshot of every variable -> calculation edge."""
        rows = self._session.execute(
            select(CalculationDependencyRow.variable_id, CalculationDependencyRow.calculation_id),
        )
        return DependencyIndex.from_edges((variable_id, calculation_id) for variable_id, calculation_id in rows)


class ResourceStore:
    """Row access for resource nodes. Invariants are enforced by ResourceTree."""

    def __init__(self, session: Session) -> None:
        self._session = session

    def find(self, resource_id: int, *, for_update: bool = False) -> Resource | None:
        row = self._session.get(ResourceRow, resource_id, with_for_update=True if for_update else None)
        return None if row is None else _to_resource(row)

    def exists(self, resource_id: int) -> bool:
        return self._session.get(ResourceRow, resource_id) is not None

    def parent_of(self, resource_id: int) -> int | None:
        stmt = select(ResourceRow.parent_id).where(ResourceRow.id == resource_id)
        return self._session.scalar(stmt)

    def children(self, resource_id: int) -> list[int]:
        stmt = select(ResourceRow.id).where(ResourceRow.parent_id == resource_id).order_by(ResourceRow.id)
        return list(self._session.scalars(stmt))

    def create(self, name: str, parent_id: int | None = None, *, resource_id: int | None = None) -> Resource:
        row = ResourceRow(id=resource_id, name=name, parent_id=parent_id)
        self._session.add(row)
        self._session.flush()
        return _to_resource(row)

    def set_parent(self, resource_id: int, parent_id: int | None) -> None:
        row = self._session.get(ResourceRow, resource_id)
        if row is None:
            raise NotFoundError("resource", resource_id)
        row.parent_id = parent_id
        self._session.flush()
