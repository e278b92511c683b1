"""Abstract syntax tree for arithmetic expressions with variable references."""

from __future__ import annotations

from dataclasses import dataclass
from enum import StrEnum

from pydantic import BaseModel, ConfigDict, StrictInt


class VariableReference(BaseModel):
    """A reference token embedded in an expression, e.g. `{ "id": 1, "name": "base_price" }`.

    Only `id` is used for lookup; `name` is informational.
    """

    model_config = ConfigDict(frozen=True, extra="ignore")

    id: StrictInt
    name: str | None = None


class Operator(StrEnum):
    """Arithmetic operators supported by the expression grammar."""

    ADD = "+"
    SUB = "-"
    MUL = "*"
    DIV = "/"


@dataclass(frozen=True, slots=True)
class Number:
    """A literal number."""

    value: float


@dataclass(frozen=True, slots=True)
class VariableRef:
    """A variable-reference node, resolved against a binding environment."""

    reference: VariableReference
    position: int = 0

    @property
    def variable_id(self) -> int:
        return self.reference.id


@dataclass(frozen=True, slots=True)
class UnaryOp:
    """Unary plus or minus applied to an operand."""

    op: Operator
    operand: ExprNode


@dataclass(frozen=True, slots=True)
class BinaryOp:
    """A binary arithmetic operation."""

    op: Operator
    left: ExprNode
    right: ExprNode


type ExprNode = Number | VariableRef | UnaryOp | BinaryOp

