"""Tokenizer for arithmetic expressions with embedded variable references."""

from __future__ import annotations

import json
import logging
import re
from dataclasses import dataclass
from enum import StrEnum, auto

import pydantic

from treecalc._errors import EvaluationError, ReferenceParseError

from ._ast import VariableReference

logger = logging.getLogger(__name__)

_NUMBER_RE = re.compile(r"(?:\d+(?:\.\d*)?|\.\d+)(?:[eE][+-]?\d+)?")

# Relaxed object literals: `{id: 1, name: base_price}` -> `{"id": 1, "name": "base_price"}`
_BARE_KEY_RE = re.compile(r"([{,]\s*)([A-Za-z_]\w*)(\s*:)")
_BARE_VALUE_RE = re.compile(r"(:\s*)([A-Za-z_]\w*)(\s*[,}])")
_JSON_KEYWORDS = frozenset({"true", "false", "null"})

_OPERATOR_CHARS = {
    "+": "PLUS",
    "-": "MINUS",
    "*": "STAR",
    "/": "SLASH",
    "(": "LPAREN",
    ")": "RPAREN",
}


class TokenKind(StrEnum):
    """The kind of a lexical token."""

    NUMBER = auto()
    REFERENCE = auto()
    PLUS = auto()
    MINUS = auto()
    STAR = auto()
    SLASH = auto()
    LPAREN = auto()
    RPAREN = auto()
    END = auto()


@dataclass(frozen=True, slots=True)
class Token:
    """A lexical token with its source span.

    Attributes:
        kind: The token kind.
        text: The source text of the token.
        position: Offset of the first character in the expression.
        number: Parsed value for NUMBER tokens.
        reference: Parsed reference for REFERENCE tokens.

    """

    kind: TokenKind
    text: str
    position: int
    number: float | None = None
    reference: VariableReference | None = None


def _quote_bare_value(match: re.Match[str]) -> str:
    value = match.group(2)
    if value in _JSON_KEYWORDS:
        return match.group(0)
    return f'{match.group(1)}"{value}"{match.group(3)}'


def _load_object_literal(snippet: str) -> object:
    """Load a brace-delimited object literal, accepting JSON or bare keys."""
    try:
        return json.loads(snippet)
    except json.JSONDecodeError:
        pass

    relaxed = _BARE_KEY_RE.sub(r'\1"\2"\3', snippet)
    relaxed = _BARE_VALUE_RE.sub(_quote_bare_value, relaxed)
    try:
        return json.loads(relaxed)
    except json.JSONDecodeError as e:
        raise ReferenceParseError(snippet, "not a well-formed object literal") from e


def parse_reference(snippet: str, position: int | None = None) -> VariableReference:
    """Parse a brace-delimited snippet into a VariableReference.

    Args:
        snippet: The source text including the braces.
        position: Offset of the snippet in its expression, for error reporting.

    Returns:
        The parsed reference.

    Raises:
        ReferenceParseError: If the snippet is not an object literal with an integer `id`.

    """
    try:
        data = _load_object_literal(snippet)
    except ReferenceParseError as e:
        e.position = position
        raise

    if not isinstance(data, dict):
        raise ReferenceParseError(snippet, "not an object literal", position)
    if "id" not in data:
        raise ReferenceParseError(snippet, "missing 'id' field", position)

    try:
        return VariableReference.model_validate(data)
    except pydantic.ValidationError as e:
        reason = "; ".join(f"{'.'.join(map(str, err['loc']))}: {err['msg']}" for err in e.errors())
        raise ReferenceParseError(snippet, reason, position) from e


def tokenize(expression: str) -> list[Token]:
    """Split an expression into tokens.

    Every brace-delimited span is parsed as a variable reference. Stray
    characters are reported only after the whole text has been scanned, so
    reference errors surface before any arithmetic error.

    Args:
        expression: The expression text.

    Returns:
        List of tokens, always terminated by an END token.

    Raises:
        ReferenceParseError: If a reference token is malformed, nested or unterminated.
        EvaluationError: If the text contains a character that is not part of the grammar.

    """
    tokens: list[Token] = []
    pending_error: EvaluationError | None = None
    i = 0
    n = len(expression)
    while i < n:
        char = expression[i]

        if char.isspace():
            i += 1
            continue

        if char == "{":
            end = expression.find("}", i + 1)
            nested = expression.find("{", i + 1)
            if end == -1:
                raise ReferenceParseError(expression[i:], "unterminated reference", i)
            if nested != -1 and nested < end:
                raise ReferenceParseError(expression[i : end + 1], "nested references are not supported", i)
            snippet = expression[i : end + 1]
            reference = parse_reference(snippet, i)
            tokens.append(Token(TokenKind.REFERENCE, snippet, i, reference=reference))
            i = end + 1
            continue

        if char in _OPERATOR_CHARS:
            tokens.append(Token(TokenKind[_OPERATOR_CHARS[char]], char, i))
            i += 1
            continue

        match = _NUMBER_RE.match(expression, i)
        if match is not None:
            text = match.group(0)
            tokens.append(Token(TokenKind.NUMBER, text, i, number=float(text)))
            i = match.end()
            continue

        if pending_error is None:
            pending_error = EvaluationError(f"Unexpected character {char!r}", i)
        i += 1

    if pending_error is not None:
        raise pending_error

    tokens.append(Token(TokenKind.END, "", n))
    logger.debug("Tokenized %r into %d tokens", expression, len(tokens))
    return tokens
