"""Numeric evaluation of expression trees."""

from __future__ import annotations

import math
from typing import TYPE_CHECKING

from treecalc._errors import EvaluationError, VariableNotFoundError

from ._ast import BinaryOp, Number, Operator, UnaryOp, VariableRef

if TYPE_CHECKING:
    from collections.abc import Mapping

    from ._ast import ExprNode


def _apply(op: Operator, left: float, right: float) -> float:
    match op:
        case Operator.ADD:
            return left + right
        case Operator.SUB:
            return left - right
        case Operator.MUL:
            return left * right
        case Operator.DIV:
            if right == 0:
                msg = "Division by zero"
                raise EvaluationError(msg)
            return left / right


def _evaluate(tree: ExprNode, bindings: Mapping[int, float]) -> float:
    """Post-order walk with an explicit stack, so long operator chains do not recurse."""
    values: list[float] = []
    # (node, children_done)
    stack: list[tuple[ExprNode, bool]] = [(tree, False)]
    while stack:
        node, children_done = stack.pop()
        match node:
            case Number(value):
                values.append(value)
            case VariableRef():
                try:
                    values.append(float(bindings[node.variable_id]))
                except KeyError:
                    raise VariableNotFoundError(node.variable_id) from None
            case UnaryOp(op, operand):
                if children_done:
                    value = values.pop()
                    values.append(-value if op == Operator.SUB else value)
                else:
                    stack.extend([(node, True), (operand, False)])
            case BinaryOp(op, left, right):
                if children_done:
                    right_value = values.pop()
                    left_value = values.pop()
                    values.append(_apply(op, left_value, right_value))
                else:
                    stack.extend([(node, True), (right, False), (left, False)])
            case _:
                msg = f"Unknown node type: {type(node)}"
                raise TypeError(msg)
    return values.pop()


def evaluate_tree(tree: ExprNode, bindings: Mapping[int, float]) -> float:
    """Evaluate an expression tree against a binding environment.

    Args:
        tree: The root node of the expression.
        bindings: Mapping from variable id to its current value.

    Returns:
        The numeric result.

    Raises:
        VariableNotFoundError: If a referenced variable has no binding.
        EvaluationError: On division by zero or a non-finite result.

    """
    result = _evaluate(tree, bindings)
    if not math.isfinite(result):
        msg = f"Expression evaluated to a non-finite value ({result})"
        raise EvaluationError(msg)
    return result
