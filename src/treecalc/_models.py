"""Plain records passed between the stores, the engines and the boundary layers."""

from dataclasses import dataclass, field


@dataclass(frozen=True, slots=True)
class Variable:
    """A named numeric variable that expressions can reference."""

    id: int
    name: str
    value: float


@dataclass(frozen=True, slots=True)
class Calculation:
    """A stored calculation.

    Attributes:
        id: Unique calculation id.
        name: Display name.
        expression: Expression text with zero or more variable-reference tokens.
        calculated_value: Result of the last successful evaluation, or None
            if the calculation has never been evaluated since its expression was set.

    """

    id: int
    name: str
    expression: str
    calculated_value: float | None = None


@dataclass(frozen=True, slots=True)
class Resource:
    """A node in the resource forest."""

    id: int
    name: str
    parent_id: int | None = None


@dataclass(frozen=True, slots=True)
class CalculationInput:
    """A transient calculation supplied by a caller rather than loaded from storage."""

    name: str
    expression: str
    id: int | None = None


@dataclass(frozen=True, slots=True)
class CalculationResult:
    """The outcome of evaluating a calculation."""

    id: int | None
    name: str
    expression: str
    calculated_value: float


@dataclass(frozen=True, slots=True)
class VariableUpdate:
    """A variable after a value update, with the calculations recomputed from it."""

    variable: Variable
    recalculated: list[CalculationResult] = field(default_factory=list)
