"""Expression engine: tokenize, resolve variable references, evaluate."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Protocol

from ._evaluator import evaluate_tree
from ._lexer import TokenKind, tokenize
from ._parser import parse_tokens

if TYPE_CHECKING:
    from collections.abc import Sequence

    from ._ast import ExprNode
    from ._lexer import Token

logger = logging.getLogger(__name__)


class VariableLookup(Protocol):
    """Anything that can resolve a variable id to its current value."""

    def get_value(self, variable_id: int) -> float: ...


def _reference_ids(tokens: Sequence[Token]) -> list[int]:
    """Distinct referenced variable ids, in order of first appearance."""
    ids: dict[int, None] = {}
    for token in tokens:
        if token.kind == TokenKind.REFERENCE and token.reference is not None:
            ids.setdefault(token.reference.id, None)
    return list(ids)


def parse_expression(expression: str) -> ExprNode:
    """Parse an expression into an AST without resolving any variable.

    Raises:
        ReferenceParseError: If an embedded reference token is malformed.
        EvaluationError: If the arithmetic is malformed.

    """
    return parse_tokens(tokenize(expression))


def expression_references(expression: str) -> frozenset[int]:
    """Return the ids of all variables an expression references.

    Only the reference tokens need to be well formed; the arithmetic is not checked.

    Raises:
        ReferenceParseError: If an embedded reference token is malformed.
        EvaluationError: If the text contains characters outside the grammar.

    """
    return frozenset(_reference_ids(tokenize(expression)))


class ExpressionEngine:
    """Evaluates expressions whose variable references resolve through a lookup.

    Evaluation is a pipeline: the text is tokenized (parsing every reference
    token), each referenced variable is resolved through `variables`, the
    tokens are parsed into a tree and the tree is evaluated numerically.
    Nothing is cached; every call starts again from the raw text.
    """

    def __init__(self, variables: VariableLookup) -> None:
        self._variables = variables

    def resolve(self, tokens: Sequence[Token]) -> dict[int, float]:
        """Look up the current value of every variable the tokens reference.

        Raises:
            VariableNotFoundError: If a referenced variable does not exist.

        """
        bindings: dict[int, float] = {}
        for variable_id in _reference_ids(tokens):
            bindings[variable_id] = self._variables.get_value(variable_id)
            logger.debug("  Resolved variable %d = %r", variable_id, bindings[variable_id])
        return bindings

    def evaluate(self, expression: str) -> float:
        """Evaluate an expression against the current variable values.

        Args:
            expression: Expression text, e.g. `{ "id": 1 } * (1 + { "id": 2 })`.

        Returns:
            The numeric result.

        Raises:
            ReferenceParseError: If a reference token is malformed.
            VariableNotFoundError: If a referenced variable does not exist.
            EvaluationError: If the arithmetic is malformed, divides by zero or overflows.

        """
        logger.debug("Evaluating expression %r", expression)
        tokens = tokenize(expression)
        bindings = self.resolve(tokens)
        tree = parse_tokens(tokens)
        result = evaluate_tree(tree, bindings)
        logger.debug("Result for %r: %r", expression, result)
        return result
