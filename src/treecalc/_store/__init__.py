"""Persistence layer for treecalc.

Key types:
- Database: Explicitly constructed engine + session factory with a transaction() scope
- VariableStore, CalculationStore, ResourceStore: Repositories bound to one session
"""

from ._database import Database
from ._repositories import CalculationStore, ResourceStore, VariableStore
from ._tables import Base, CalculationDependencyRow, CalculationRow, ResourceRow, VariableRow

__all__ = [
    "Base",
    "CalculationDependencyRow",
    "CalculationRow",
    "CalculationStore",
    "Database",
    "ResourceRow",
    "ResourceStore",
    "VariableRow",
    "VariableStore",
]
