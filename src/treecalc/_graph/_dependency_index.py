"""Variable-to-calculation dependency index."""

from __future__ import annotations

from collections import defaultdict
from dataclasses import dataclass, field
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from collections.abc import Iterable


@dataclass(frozen=True, slots=True)
class DependencyIndex:
    """A bipartite graph of which calculations reference which variables.

    This is a pure, immutable snapshot with query methods. It is built from the
    persisted dependency rows, which are written from each calculation's parsed
    expression, so lookups are exact matches on ids rather than text searches.

    - dependents[v] = {c} means "calculation c references variable v"
    - references[c] = {v} means the same edge seen from the calculation

    Attributes:
        _dependents: Mapping from variable id to the calculations referencing it.
        _references: Mapping from calculation id to the variables it references.

    """

    _dependents: dict[int, frozenset[int]] = field(default_factory=dict)
    _references: dict[int, frozenset[int]] = field(default_factory=dict)

    @classmethod
    def from_edges(cls, edges: Iterable[tuple[int, int]]) -> DependencyIndex:
        """Build an index from (variable_id, calculation_id) edges.

        Example:
            >>> index = DependencyIndex.from_edges([(1, 10), (2, 10), (1, 11)])
            >>> sorted(index.dependents(1))
            [10, 11]

        """
        dependents: defaultdict[int, set[int]] = defaultdict(set)
        references: defaultdict[int, set[int]] = defaultdict(set)

        for variable_id, calculation_id in edges:
            dependents[variable_id].add(calculation_id)
            references[calculation_id].add(variable_id)

        return cls(
            _dependents={k: frozenset(v) for k, v in dependents.items()},
            _references={k: frozenset(v) for k, v in references.items()},
        )

    @property
    def variables(self) -> frozenset[int]:
        """Ids of all variables referenced by at least one calculation."""
        return frozenset(self._dependents)

    @property
    def calculations(self) -> frozenset[int]:
        """Ids of all calculations referencing at least one variable."""
        return frozenset(self._references)

    def dependents(self, variable_id: int) -> frozenset[int]:
        """Get the calculations that reference a variable."""
        return self._dependents.get(variable_id, frozenset())

    def references(self, calculation_id: int) -> frozenset[int]:
        """Get the variables a calculation references."""
        return self._references.get(calculation_id, frozenset())

    def __len__(self) -> int:
        """Return the number of edges in the index."""
        return sum(len(calcs) for calcs in self._dependents.values())
