"""Recursive-descent parser producing an expression AST.

Grammar::

    expression := term (("+" | "-") term)*
    term       := unary (("*" | "/") unary)*
    unary      := ("+" | "-") unary | primary
    primary    := NUMBER | REFERENCE | "(" expression ")"
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from treecalc._errors import EvaluationError

from ._ast import BinaryOp, Number, Operator, UnaryOp, VariableRef
from ._lexer import Token, TokenKind

if TYPE_CHECKING:
    from collections.abc import Sequence

    from ._ast import ExprNode

_ADDITIVE = {TokenKind.PLUS: Operator.ADD, TokenKind.MINUS: Operator.SUB}
_MULTIPLICATIVE = {TokenKind.STAR: Operator.MUL, TokenKind.SLASH: Operator.DIV}

# Nested parentheses and unary signs, counted together.
MAX_NESTING_DEPTH = 100


class _Parser:
    def __init__(self, tokens: Sequence[Token]) -> None:
        self._tokens = tokens
        self._index = 0
        self._depth = 0

    @property
    def _current(self) -> Token:
        return self._tokens[self._index]

    def _advance(self) -> Token:
        token = self._tokens[self._index]
        if token.kind != TokenKind.END:
            self._index += 1
        return token

    def _descend(self, token: Token) -> None:
        self._depth += 1
        if self._depth > MAX_NESTING_DEPTH:
            msg = f"Expression is nested deeper than {MAX_NESTING_DEPTH} levels"
            raise EvaluationError(msg, token.position)

    def parse(self) -> ExprNode:
        if self._current.kind == TokenKind.END:
            msg = "Empty expression"
            raise EvaluationError(msg, self._current.position)
        node = self._expression()
        if self._current.kind != TokenKind.END:
            token = self._current
            if token.kind == TokenKind.RPAREN:
                msg = "Unbalanced parentheses: unexpected ')'"
            else:
                msg = f"Unexpected token {token.text!r}"
            raise EvaluationError(msg, token.position)
        return node

    def _expression(self) -> ExprNode:
        node = self._term()
        while self._current.kind in _ADDITIVE:
            op = _ADDITIVE[self._advance().kind]
            node = BinaryOp(op, node, self._term())
        return node

    def _term(self) -> ExprNode:
        node = self._unary()
        while self._current.kind in _MULTIPLICATIVE:
            op = _MULTIPLICATIVE[self._advance().kind]
            node = BinaryOp(op, node, self._unary())
        return node

    def _unary(self) -> ExprNode:
        if self._current.kind in _ADDITIVE:
            token = self._advance()
            self._descend(token)
            node = UnaryOp(_ADDITIVE[token.kind], self._unary())
            self._depth -= 1
            return node
        return self._primary()

    def _primary(self) -> ExprNode:
        token = self._advance()
        match token.kind:
            case TokenKind.NUMBER:
                assert token.number is not None
                return Number(token.number)
            case TokenKind.REFERENCE:
                assert token.reference is not None
                return VariableRef(token.reference, token.position)
            case TokenKind.LPAREN:
                self._descend(token)
                node = self._expression()
                closing = self._advance()
                if closing.kind != TokenKind.RPAREN:
                    msg = "Unbalanced parentheses: missing ')'"
                    raise EvaluationError(msg, closing.position)
                self._depth -= 1
                return node
            case TokenKind.END:
                msg = "Missing operand at end of expression"
                raise EvaluationError(msg, token.position)
            case _:
                msg = f"Missing operand before {token.text!r}"
                raise EvaluationError(msg, token.position)


def parse_tokens(tokens: Sequence[Token]) -> ExprNode:
    """Parse a token stream (as produced by `tokenize`) into an AST.

    Raises:
        EvaluationError: If the tokens do not form a well-formed arithmetic expression.

    """
    return _Parser(tokens).parse()
