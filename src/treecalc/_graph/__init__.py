"""Graph module providing the calculation dependency index.

This module contains:
- DependencyIndex: An immutable variable -> calculation dependency graph
"""

from ._dependency_index import DependencyIndex

__all__ = ["DependencyIndex"]
