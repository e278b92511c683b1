"""Resource lineage and variable-driven expression recalculation."""

__all__ = [
    "Calculation",
    "CalculationInput",
    "CalculationResult",
    "CalculationStore",
    "CycleError",
    "DanglingParentError",
    "Database",
    "DependencyIndex",
    "EvaluationError",
    "ExpressionEngine",
    "NotFoundError",
    "RecalculationCoordinator",
    "ReferenceParseError",
    "Resource",
    "ResourceStore",
    "ResourceTree",
    "SelfParentError",
    "TreecalcConfig",
    "TreecalcError",
    "ValidationError",
    "Variable",
    "VariableNotFoundError",
    "VariableReference",
    "VariableStore",
    "VariableUpdate",
    "create_app",
    "get_config",
    "migrate",
    "parse_expression",
    "seed_sample_data",
]

from ._config import TreecalcConfig, get_config
from ._errors import (
    CycleError,
    DanglingParentError,
    EvaluationError,
    NotFoundError,
    ReferenceParseError,
    SelfParentError,
    TreecalcError,
    ValidationError,
    VariableNotFoundError,
)
from ._expr import ExpressionEngine, VariableReference, parse_expression
from ._graph import DependencyIndex
from ._http import create_app
from ._migrate import migrate, seed_sample_data
from ._models import Calculation, CalculationInput, CalculationResult, Resource, Variable, VariableUpdate
from ._recalc import RecalculationCoordinator
from ._store import CalculationStore, Database, ResourceStore, VariableStore
from ._tree import ResourceTree
