"""Tests for expression tokenizing, parsing and evaluation."""

import pytest

from treecalc import EvaluationError, ReferenceParseError, VariableNotFoundError
from treecalc._expr import (
    BinaryOp,
    ExpressionEngine,
    Number,
    Operator,
    TokenKind,
    UnaryOp,
    VariableRef,
    evaluate_tree,
    expression_references,
    parse_expression,
    parse_reference,
    tokenize,
)
from treecalc._expr._parser import MAX_NESTING_DEPTH


class DictLookup:
    """Variable lookup backed by a plain dict."""

    def __init__(self, values: dict[int, float]) -> None:
        self.values = values
        self.calls: list[int] = []

    def get_value(self, variable_id: int) -> float:
        self.calls.append(variable_id)
        try:
            return self.values[variable_id]
        except KeyError:
            raise VariableNotFoundError(variable_id) from None


@pytest.fixture
def engine() -> ExpressionEngine:
    return ExpressionEngine(DictLookup({1: 2.5, 2: 0.08, 3: 5.0}))


# --- Reference tokens ---


class TestParseReference:
    """Tests for parsing brace-delimited variable references."""

    def test_json_object(self) -> None:
        reference = parse_reference('{ "id": 1, "name": "base_price" }')
        assert reference.id == 1
        assert reference.name == "base_price"

    def test_name_is_optional(self) -> None:
        reference = parse_reference('{"id": 7}')
        assert reference.id == 7
        assert reference.name is None

    def test_bare_keys(self) -> None:
        reference = parse_reference("{id: 1, name: base_price}")
        assert reference.id == 1
        assert reference.name == "base_price"

    def test_extra_fields_ignored(self) -> None:
        reference = parse_reference('{"id": 3, "unit": "EUR"}')
        assert reference.id == 3

    def test_missing_id(self) -> None:
        with pytest.raises(ReferenceParseError, match="missing 'id'"):
            parse_reference('{"name": "base_price"}')

    def test_string_id_rejected(self) -> None:
        """Ids must be integers; numeric strings are not coerced."""
        with pytest.raises(ReferenceParseError):
            parse_reference('{"id": "1"}')

    def test_not_an_object(self) -> None:
        with pytest.raises(ReferenceParseError):
            parse_reference("{1, 2}")

    def test_position_recorded(self) -> None:
        with pytest.raises(ReferenceParseError) as exc_info:
            parse_reference("{oops", 4)
        assert exc_info.value.position == 4


# --- Tokenizer ---


class TestTokenize:
    """Tests for the tokenize function."""

    def test_kinds(self) -> None:
        tokens = tokenize('{"id": 1} + 10 * (2 - 1) / 4')
        assert [t.kind for t in tokens] == [
            TokenKind.REFERENCE,
            TokenKind.PLUS,
            TokenKind.NUMBER,
            TokenKind.STAR,
            TokenKind.LPAREN,
            TokenKind.NUMBER,
            TokenKind.MINUS,
            TokenKind.NUMBER,
            TokenKind.RPAREN,
            TokenKind.SLASH,
            TokenKind.NUMBER,
            TokenKind.END,
        ]

    def test_numbers(self) -> None:
        tokens = tokenize("1.5 .25 3e2")
        assert [t.number for t in tokens[:-1]] == [1.5, 0.25, 300.0]

    def test_positions(self) -> None:
        tokens = tokenize('2 * {"id": 1}')
        assert [t.position for t in tokens] == [0, 2, 4, 13]

    def test_unterminated_reference(self) -> None:
        with pytest.raises(ReferenceParseError, match="unterminated"):
            tokenize('1 + {"id": 1')

    def test_nested_reference(self) -> None:
        with pytest.raises(ReferenceParseError, match="nested"):
            tokenize('{"id": {"id": 1}}')

    def test_unexpected_character(self) -> None:
        with pytest.raises(EvaluationError, match="Unexpected character '%'"):
            tokenize("10 % 3")

    def test_reference_error_wins_over_stray_character(self) -> None:
        """A malformed reference later in the text is reported before an earlier stray character."""
        with pytest.raises(ReferenceParseError):
            tokenize('1 $ {"name": "x"}')


# --- Parser ---


class TestParseExpression:
    """Tests for parsing token streams into expression trees."""

    def test_precedence(self) -> None:
        tree = parse_expression("1 + 2 * 3")
        assert tree == BinaryOp(Operator.ADD, Number(1.0), BinaryOp(Operator.MUL, Number(2.0), Number(3.0)))

    def test_left_associative(self) -> None:
        tree = parse_expression("8 - 4 - 2")
        assert tree == BinaryOp(Operator.SUB, BinaryOp(Operator.SUB, Number(8.0), Number(4.0)), Number(2.0))

    def test_unary_minus(self) -> None:
        assert parse_expression("-3") == UnaryOp(Operator.SUB, Number(3.0))

    def test_reference_node(self) -> None:
        tree = parse_expression('{"id": 2} * 2')
        assert isinstance(tree, BinaryOp)
        assert isinstance(tree.left, VariableRef)
        assert tree.left.variable_id == 2

    @pytest.mark.parametrize(
        ("expression", "message"),
        [
            ("", "Empty expression"),
            ("   ", "Empty expression"),
            ("(1 + 2", "missing ')'"),
            ("1 + 2)", "unexpected ')'"),
            ("1 +", "Missing operand"),
            ("* 2", "Missing operand"),
            ("1 2", "Unexpected token"),
            ("()", "Missing operand"),
        ],
    )
    def test_malformed(self, expression: str, message: str) -> None:
        with pytest.raises(EvaluationError, match=message):
            parse_expression(expression)

    def test_nesting_at_limit(self) -> None:
        depth = MAX_NESTING_DEPTH
        tree = parse_expression("(" * depth + "1" + ")" * depth)
        assert tree == Number(1.0)

    @pytest.mark.parametrize(
        "expression",
        [
            "(" * 2000 + "1" + ")" * 2000,
            "-" * 2000 + "1",
            "(-" * 60 + "1" + ")" * 60,
        ],
    )
    def test_nesting_too_deep(self, expression: str) -> None:
        """Deep nesting is reported as an evaluation error instead of exhausting the stack."""
        with pytest.raises(EvaluationError, match="nested deeper"):
            parse_expression(expression)


class TestExpressionReferences:
    """Tests for collecting the variable ids an expression references."""

    def test_distinct_ids(self) -> None:
        refs = expression_references('{"id": 1} + {"id": 12} * {"id": 1}')
        assert refs == frozenset({1, 12})

    def test_no_references(self) -> None:
        assert expression_references("1 + 2") == frozenset()

    def test_arithmetic_not_checked(self) -> None:
        """Only reference tokens must be well formed to be indexed."""
        assert expression_references('{"id": 4} +') == frozenset({4})


# --- Evaluation ---


class TestEvaluateTree:
    """Tests for numeric evaluation of expression trees."""

    def test_bindings(self) -> None:
        tree = parse_expression('{"id": 1} * 4')
        assert evaluate_tree(tree, {1: 2.5}) == 10.0

    def test_unbound_variable(self) -> None:
        tree = parse_expression('{"id": 9} + 1')
        with pytest.raises(VariableNotFoundError):
            evaluate_tree(tree, {})

    def test_division_by_zero(self) -> None:
        with pytest.raises(EvaluationError, match="Division by zero"):
            evaluate_tree(parse_expression("1 / (2 - 2)"), {})

    def test_non_finite_result(self) -> None:
        with pytest.raises(EvaluationError, match="non-finite"):
            evaluate_tree(parse_expression("1e308 * 10"), {})

    def test_long_operator_chain(self) -> None:
        """A left-leaning tree thousands of nodes deep evaluates without recursion."""
        tree = parse_expression(" + ".join(["1"] * 5000))
        assert evaluate_tree(tree, {}) == 5000.0


class TestExpressionEngine:
    """Tests for ExpressionEngine against a dict-backed variable lookup."""

    def test_sample_expressions(self, engine: ExpressionEngine) -> None:
        assert engine.evaluate('{ "id": 1, "name": "base_price" } + 10 * 2') == pytest.approx(22.5)
        assert engine.evaluate(
            '{ "id": 1, "name": "base_price" } * (1 + { "id": 2, "name": "tax_rate" })',
        ) == pytest.approx(2.7)
        assert engine.evaluate(
            '{ "id": 1, "name": "base_price" } * 10 - { "id": 3, "name": "discount" }',
        ) == pytest.approx(20.0)

    def test_relaxed_reference(self, engine: ExpressionEngine) -> None:
        assert engine.evaluate("{id: 3} / 2") == pytest.approx(2.5)

    def test_name_is_not_used_for_lookup(self, engine: ExpressionEngine) -> None:
        assert engine.evaluate('{"id": 3, "name": "base_price"}') == pytest.approx(5.0)

    @pytest.mark.parametrize(
        ("values", "expression", "expected"),
        [
            ({1: -3.0}, "2-{id:1}", 5.0),
            ({1: -3.0}, "{id:1}*{id:1}", 9.0),
            ({1: -3.0}, "-{id:1}", 3.0),
            ({1: -3.0}, "{id:1}-{id:1}", 0.0),
            ({1: 1e-5}, "{id:1}*2", 2e-5),
            ({1: 2.5e10}, "{id:1}/5", 5e9),
            ({1: -1e-3, 2: 4.0}, "{id:2}/{id:1}*-1", 4000.0),
        ],
    )
    def test_variable_values_do_not_change_parsing(
        self,
        values: dict[int, float],
        expression: str,
        expected: float,
    ) -> None:
        """Negative and exponent-form values stay single operands."""
        assert ExpressionEngine(DictLookup(values)).evaluate(expression) == pytest.approx(expected)

    def test_each_variable_resolved_once(self) -> None:
        lookup = DictLookup({1: 2.0})
        assert ExpressionEngine(lookup).evaluate('{"id": 1} * {"id": 1}') == 4.0
        assert lookup.calls == [1]

    def test_missing_variable(self, engine: ExpressionEngine) -> None:
        with pytest.raises(VariableNotFoundError, match="Variable with ID 42 not found"):
            engine.evaluate('{"id": 42} + 1')

    def test_lookup_error_before_arithmetic_error(self, engine: ExpressionEngine) -> None:
        with pytest.raises(VariableNotFoundError):
            engine.evaluate('{"id": 42} +')

    def test_parse_error_before_lookup_error(self, engine: ExpressionEngine) -> None:
        with pytest.raises(ReferenceParseError):
            engine.evaluate('{"id": 42} + {"name": "x"}')

    def test_malformed_arithmetic(self, engine: ExpressionEngine) -> None:
        with pytest.raises(EvaluationError):
            engine.evaluate('({"id": 1} + 2')
