"""Recalculation: evaluate calculations and keep their stored values current."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from ._errors import TreecalcError
from ._expr import ExpressionEngine, expression_references
from ._models import CalculationResult, VariableUpdate
from ._store import CalculationStore, VariableStore

if TYPE_CHECKING:
    from ._graph import DependencyIndex
    from ._models import Calculation, CalculationInput
    from ._store import Database

logger = logging.getLogger(__name__)


class RecalculationCoordinator:
    """Orchestrates evaluation of calculations against the variable store.

    Every public method is one unit of work: a calculation is loaded,
    evaluated and its value persisted inside a single transaction, so a
    failed evaluation leaves the stored value untouched.
    """

    def __init__(self, database: Database) -> None:
        self._database = database

    def process_calculation_by_id(self, calculation_id: int) -> CalculationResult:
        """Evaluate a stored calculation and persist the result.

        Args:
            calculation_id: The calculation to evaluate.

        Returns:
            The calculation with its freshly computed value.

        Raises:
            NotFoundError: If the calculation does not exist.
            ReferenceParseError: If the expression contains a malformed reference.
            VariableNotFoundError: If the expression references a missing variable.
            EvaluationError: If the arithmetic cannot be evaluated.

        """
        with self._database.transaction() as session:
            calculations = CalculationStore(session)
            calculation = calculations.get(calculation_id)
            value = ExpressionEngine(VariableStore(session)).evaluate(calculation.expression)
            calculations.set_calculated_value(calculation_id, value)

        logger.debug("Calculation %d (%s) = %r", calculation_id, calculation.name, value)
        return CalculationResult(
            id=calculation.id,
            name=calculation.name,
            expression=calculation.expression,
            calculated_value=value,
        )

    def process_calculation(self, calculation: CalculationInput) -> CalculationResult:
        """Evaluate a calculation supplied by the caller.

        When the input carries an id of a stored calculation, that calculation's
        derived value is overwritten with the result; its name and expression
        are left as stored. An id with no stored calculation is not persisted.
        """
        with self._database.transaction() as session:
            value = ExpressionEngine(VariableStore(session)).evaluate(calculation.expression)
            if calculation.id is not None:
                calculations = CalculationStore(session)
                if calculations.find(calculation.id) is None:
                    logger.warning("Calculation %d does not exist; result not persisted", calculation.id)
                else:
                    calculations.set_calculated_value(calculation.id, value)

        return CalculationResult(
            id=calculation.id,
            name=calculation.name,
            expression=calculation.expression,
            calculated_value=value,
        )

    def find_dependents(self, variable_id: int) -> list[int]:
        """Ids of the calculations whose expressions reference a variable."""
        with self._database.transaction() as session:
            return CalculationStore(session).find_dependents(variable_id)

    def recalculate_for_variable(self, variable_id: int) -> list[CalculationResult]:
        """Recompute every calculation that references a variable.

        Each calculation is recomputed in its own transaction. A calculation
        that fails for any reason is logged and left out of the result; the
        others are still processed.

        Args:
            variable_id: The variable whose dependents to recompute.

        Returns:
            Successfully recomputed calculations, in ascending id order.

        """
        candidates = self.find_dependents(variable_id)
        logger.info("Found %d calculations referencing variable ID %d", len(candidates), variable_id)

        results: list[CalculationResult] = []
        for calculation_id in candidates:
            try:
                results.append(self.process_calculation_by_id(calculation_id))
            except TreecalcError as e:
                logger.warning("Error processing calculation %d: %s", calculation_id, e)
            except Exception:
                logger.exception("Unexpected error processing calculation %d", calculation_id)
        return results

    def update_variable(self, variable_id: int, value: float) -> VariableUpdate:
        """Set a variable's value, then recompute the calculations that use it.

        The value update commits on its own before recalculation starts.

        Raises:
            NotFoundError: If the variable does not exist.

        """
        with self._database.transaction() as session:
            variable = VariableStore(session).update_value(variable_id, value)
        logger.info("Variable %d (%s) set to %r", variable.id, variable.name, value)
        return VariableUpdate(variable=variable, recalculated=self.recalculate_for_variable(variable_id))

    def create_calculation(self, name: str, expression: str) -> Calculation:
        """Store a new calculation and index the variables it references.

        Raises:
            ReferenceParseError: If the expression contains a malformed reference.
            EvaluationError: If the expression contains characters outside the grammar.

        """
        variable_ids = expression_references(expression)
        with self._database.transaction() as session:
            calculation = CalculationStore(session).create(name, expression, variable_ids)
        logger.debug("Created calculation %d (%s)", calculation.id, name)
        return calculation

    def update_expression(self, calculation_id: int, expression: str) -> Calculation:
        """Replace a calculation's expression and re-index its references.

        The previous value is cleared since it no longer matches the expression.

        Raises:
            NotFoundError: If the calculation does not exist.
            ReferenceParseError: If the expression contains a malformed reference.
            EvaluationError: If the expression contains characters outside the grammar.

        """
        variable_ids = expression_references(expression)
        with self._database.transaction() as session:
            return CalculationStore(session).update_expression(calculation_id, expression, variable_ids)

    def dependency_index(self) -> DependencyIndex:
        with self._database.transaction() as session:
            return CalculationStore(session).dependency_index()
