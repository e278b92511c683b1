"""Tests for DependencyIndex."""

from treecalc import DependencyIndex


class TestDependencyIndex:
    """Tests for building and querying the variable -> calculation index."""

    def test_empty(self) -> None:
        index = DependencyIndex()
        assert len(index) == 0
        assert index.dependents(1) == frozenset()
        assert index.references(1) == frozenset()
        assert index.variables == frozenset()
        assert index.calculations == frozenset()

    def test_from_edges(self) -> None:
        index = DependencyIndex.from_edges([(1, 10), (2, 10), (1, 11)])
        assert index.dependents(1) == frozenset({10, 11})
        assert index.dependents(2) == frozenset({10})
        assert index.references(10) == frozenset({1, 2})
        assert index.references(11) == frozenset({1})
        assert index.variables == frozenset({1, 2})
        assert index.calculations == frozenset({10, 11})
        assert len(index) == 3

    def test_duplicate_edges_collapse(self) -> None:
        index = DependencyIndex.from_edges([(1, 10), (1, 10)])
        assert len(index) == 1

    def test_exact_id_match(self) -> None:
        """Variable 1 and variable 12 are unrelated keys."""
        index = DependencyIndex.from_edges([(12, 5)])
        assert index.dependents(1) == frozenset()
        assert index.dependents(12) == frozenset({5})
