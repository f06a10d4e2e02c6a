"""Unit tests for the condition evaluator.

Tests operator semantics, type coercion and AND/OR combination.
"""

import pytest

from formengine.schemas.condition import Comparison, ConditionOp, all_of, any_of, parse_condition
from formengine.schemas.value import Value
from formengine.services.conditions import ConditionEvaluator, is_empty_value, values_equal


def evaluate(raw, values):
    return ConditionEvaluator.evaluate(parse_condition(raw), values)


class TestEquality:
    """Tests for eq/neq and coercion."""

    def test_string_equality(self):
        """Test exact string comparison."""
        assert ConditionEvaluator.evaluate(Comparison.eq("country", "US"), {"country": "US"}) is True
        assert ConditionEvaluator.evaluate(Comparison.eq("country", "US"), {"country": "us"}) is False

    def test_numeric_string_equals_number(self):
        """Test numbers and numeric strings compare as numbers."""
        assert ConditionEvaluator.evaluate(Comparison.eq("age", "18"), {"age": 18}) is True
        assert ConditionEvaluator.evaluate(Comparison.eq("age", 18), {"age": "18.0"}) is True
        assert ConditionEvaluator.evaluate(Comparison.eq("age", 18), {"age": 19}) is False

    def test_bool_and_bool_strings(self):
        """Test booleans match each other and "true"/"false" strings."""
        assert ConditionEvaluator.evaluate(Comparison.eq("agree", True), {"agree": True}) is True
        assert ConditionEvaluator.evaluate(Comparison.eq("agree", "true"), {"agree": True}) is True
        assert ConditionEvaluator.evaluate(Comparison.eq("agree", True), {"agree": "false"}) is False

    def test_bool_is_not_number(self):
        """Test True does not equal 1."""
        assert ConditionEvaluator.evaluate(Comparison.eq("flag", 1), {"flag": True}) is False

    def test_neq_is_complement_of_eq_when_present(self):
        """Test neq is the negation of eq for a present field."""
        for actual in ("US", "CA", 5, "5", True, ["a"]):
            values = {"f": actual}
            eq = ConditionEvaluator.evaluate(Comparison.eq("f", "US"), values)
            neq = ConditionEvaluator.evaluate(Comparison.neq("f", "US"), values)
            assert eq != neq

    def test_missing_field_is_false_for_eq_and_neq(self):
        """Test an absent field satisfies neither eq nor neq."""
        assert ConditionEvaluator.evaluate(Comparison.eq("f", "x"), {}) is False
        assert ConditionEvaluator.evaluate(Comparison.neq("f", "x"), {}) is False

    def test_values_equal_structural(self):
        """Test lists compare element by element."""
        assert values_equal(["a", "b"], ["a", "b"]) is True
        assert values_equal(["a", "b"], ["b", "a"]) is False
        assert values_equal(None, None) is True


class TestNumericComparison:
    """Tests for gt/gte/lt/lte."""

    def test_numeric_operators(self):
        """Test all four orderings."""
        values = {"age": 25}
        assert ConditionEvaluator.evaluate(Comparison.gt("age", 18), values) is True
        assert ConditionEvaluator.evaluate(Comparison.gte("age", 25), values) is True
        assert ConditionEvaluator.evaluate(Comparison.lt("age", 25), values) is False
        assert ConditionEvaluator.evaluate(Comparison.lte("age", 25), values) is True

    def test_numeric_strings(self):
        """Test numeric strings on either side."""
        assert ConditionEvaluator.evaluate(Comparison.gte("age", "18"), {"age": "21"}) is True
        assert ConditionEvaluator.evaluate(Comparison.gte("age", 18), {"age": 18}) is True

    def test_non_numeric_is_false(self):
        """Test non-numeric values make every ordering false."""
        for op in ("gt", "gte", "lt", "lte"):
            assert evaluate({"field": "age", "op": op, "value": 18}, {"age": "abc"}) is False
            assert evaluate({"field": "age", "op": op, "value": "x"}, {"age": 18}) is False
            assert evaluate({"field": "age", "op": op, "value": 18}, {}) is False

    def test_integers_beyond_float_range(self):
        """Test huge integer literals compare as infinity instead of raising."""
        huge = 10 ** 400
        assert evaluate({"field": "n", "op": "gt", "value": huge}, {"n": 5}) is False
        assert evaluate({"field": "n", "op": "lt", "value": huge}, {"n": 5}) is True
        assert evaluate({"field": "n", "op": "gt", "value": 0}, {"n": -huge}) is False
        assert evaluate({"field": "n", "op": "eq", "value": "1"}, {"n": huge}) is False
        assert evaluate({"field": "n", "op": "in", "value": [1, 2]}, {"n": huge}) is False

    def test_non_ascii_digits_are_not_numbers(self):
        """Test full-width and Arabic-Indic digits do not compare numerically."""
        assert evaluate({"field": "age", "op": "gte", "value": 18}, {"age": "１８"}) is False
        assert evaluate({"field": "age", "op": "eq", "value": 18}, {"age": "١٨"}) is False


class TestMembership:
    """Tests for contains/not_contains/in and string prefix operators."""

    def test_contains_substring(self):
        """Test substring matching on text."""
        assert ConditionEvaluator.evaluate(Comparison.contains("bio", "trail"), {"bio": "I love trails"}) is True
        assert ConditionEvaluator.evaluate(Comparison.contains("bio", "lake"), {"bio": "I love trails"}) is False

    def test_contains_array_element(self):
        """Test element matching on lists."""
        values = {"days": ["sat", "sun"]}
        assert ConditionEvaluator.evaluate(Comparison.contains("days", "sat"), values) is True
        assert ConditionEvaluator.evaluate(Comparison.contains("days", "mon"), values) is False

    def test_contains_non_string_non_array(self):
        """Test contains is false on other shapes."""
        assert ConditionEvaluator.evaluate(Comparison.contains("n", "1"), {"n": 12}) is False

    def test_not_contains(self):
        """Test not_contains negates contains."""
        cond = parse_condition({"field": "days", "op": "not_contains", "value": "mon"})
        assert ConditionEvaluator.evaluate(cond, {"days": ["sat"]}) is True

    def test_in(self):
        """Test membership in a literal list."""
        cond = Comparison.one_of("plan", ["basic", "pro", 3])
        assert ConditionEvaluator.evaluate(cond, {"plan": "pro"}) is True
        assert ConditionEvaluator.evaluate(cond, {"plan": "3"}) is True
        assert ConditionEvaluator.evaluate(cond, {"plan": "free"}) is False

    def test_in_requires_list(self):
        """Test in against a non-list literal is false."""
        cond = parse_condition({"field": "plan", "op": "in", "value": "pro"})
        assert ConditionEvaluator.evaluate(cond, {"plan": "pro"}) is False

    def test_starts_and_ends_with(self):
        """Test prefix and suffix matching."""
        starts = parse_condition({"field": "code", "op": "starts_with", "value": "AB"})
        ends = parse_condition({"field": "code", "op": "ends_with", "value": "99"})
        assert ConditionEvaluator.evaluate(starts, {"code": "AB-99"}) is True
        assert ConditionEvaluator.evaluate(ends, {"code": "AB-99"}) is True
        assert ConditionEvaluator.evaluate(starts, {"code": 1299}) is False


class TestEmptiness:
    """Tests for empty/not_empty."""

    @pytest.mark.parametrize("values", [{}, {"f": None}, {"f": ""}, {"f": []}, {"f": {}}])
    def test_empty_values(self, values):
        """Test every empty shape."""
        assert ConditionEvaluator.evaluate(Comparison.empty("f"), values) is True
        assert ConditionEvaluator.evaluate(Comparison.not_empty("f"), values) is False

    @pytest.mark.parametrize("value", ["x", 0, False, ["a"]])
    def test_present_values(self, value):
        """Test zero and false count as present."""
        values = {"f": value}
        assert ConditionEvaluator.evaluate(Comparison.empty("f"), values) is False
        assert ConditionEvaluator.evaluate(Comparison.not_empty("f"), values) is True

    def test_is_empty_value_with_value_objects(self):
        """Test Value instances are understood."""
        assert is_empty_value(Value.null()) is True
        assert is_empty_value(Value.text("a")) is False


class TestCombinators:
    """Tests for AND/OR trees."""

    def test_no_condition_is_true(self):
        """Test a missing condition always holds."""
        assert ConditionEvaluator.evaluate(None, {}) is True

    def test_empty_and_or(self):
        """Test the identities of empty AND and OR."""
        assert ConditionEvaluator.evaluate(all_of(), {}) is True
        assert ConditionEvaluator.evaluate(any_of(), {}) is False

    def test_nested_tree(self):
        """Test country = US and (age >= 21 or has_permission = true)."""
        cond = parse_condition({
            "and": [
                {"field": "country", "op": "eq", "value": "US"},
                {"or": [
                    {"field": "age", "op": "gte", "value": 21},
                    {"field": "has_permission", "op": "eq", "value": True},
                ]},
            ]
        })
        assert ConditionEvaluator.evaluate(cond, {"country": "US", "age": 18, "has_permission": True}) is True
        assert ConditionEvaluator.evaluate(cond, {"country": "US", "age": 25}) is True
        assert ConditionEvaluator.evaluate(cond, {"country": "US", "age": 18, "has_permission": False}) is False
        assert ConditionEvaluator.evaluate(cond, {"country": "CA", "age": 30}) is False

    def test_accepts_value_objects(self):
        """Test submitted Value instances are read like plain JSON."""
        values = {"age": Value.text("21"), "days": Value.array(["sat"])}
        assert ConditionEvaluator.evaluate(Comparison.gte("age", 18), values) is True
        assert ConditionEvaluator.evaluate(Comparison.contains("days", "sat"), values) is True

    def test_op_enum_covers_aliases(self):
        """Test every operator name parses."""
        for op in ConditionOp:
            raw = {"field": "f", "op": op.value}
            if op.needs_value:
                raw["value"] = ["x"] if op == ConditionOp.IN else "x"
            assert parse_condition(raw).op == op
