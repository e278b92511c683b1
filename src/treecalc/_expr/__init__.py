"""Expression module for treecalc.

This module turns expression text into numbers in two stages: the text is
parsed into an abstract syntax tree, and the tree is evaluated against a
binding environment of variable values.

Key types:
- VariableReference: The `{ "id": ..., "name": ... }` token embedded in expressions
- ExprNode: Union of the AST node types (Number, VariableRef, UnaryOp, BinaryOp)
- ExpressionEngine: Resolves references through a variable lookup and evaluates
"""

from ._ast import BinaryOp, ExprNode, Number, Operator, UnaryOp, VariableRef, VariableReference
from ._engine import ExpressionEngine, VariableLookup, expression_references, parse_expression
from ._evaluator import evaluate_tree
from ._lexer import Token, TokenKind, parse_reference, tokenize
from ._parser import parse_tokens

__all__ = [
    "BinaryOp",
    "ExprNode",
    "ExpressionEngine",
    "Number",
    "Operator",
    "Token",
    "TokenKind",
    "UnaryOp",
    "VariableLookup",
    "VariableRef",
    "VariableReference",
    "evaluate_tree",
    "expression_references",
    "parse_expression",
    "parse_reference",
    "parse_tokens",
    "tokenize",
]
