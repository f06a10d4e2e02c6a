"""Unit tests for form structure checks."""

import pytest

from formengine.schemas.form import FormDefinition
from formengine.services.form_structure import FormStructureChecker, FormStructureError


def build_form(fields, step_condition=None) -> FormDefinition:
    step = {"name": "main", "fields": fields}
    if step_condition is not None:
        step["condition"] = step_condition
    return FormDefinition.model_validate({"name": "F", "slug": "f", "steps": [step]})


class TestFormStructureChecker:
    """Tests for FormStructureChecker."""

    def test_clean_forms(self, contact_form, signup_form):
        """Test well-formed forms have no warnings."""
        assert FormStructureChecker.check(signup_form) == []
        assert FormStructureChecker.check(contact_form) == []

    def test_unknown_field_reference(self):
        """Test conditions naming missing fields are reported."""
        form = build_form(
            [{"name": "a", "label": "A", "condition": {"field": "ghost", "op": "not_empty"}}],
            step_condition={"field": "phantom", "op": "eq", "value": 1},
        )
        warnings = FormStructureChecker.check(form)
        assert "Step 'main' condition references unknown field 'phantom'" in warnings
        assert "Field 'a' condition references unknown field 'ghost'" in warnings

    def test_uncompilable_pattern(self):
        """Test bad patterns are reported, not raised."""
        form = build_form([{"name": "a", "label": "A", "validation": {"pattern": "(["}}])
        warnings = FormStructureChecker.check(form)
        assert warnings == ["Field 'a' pattern does not compile and will be ignored"]

    def test_options_required(self):
        """Test option-based fields without options are reported."""
        form = build_form([{"name": "pick", "label": "Pick", "type": "radio"}])
        assert FormStructureChecker.check(form) == ["Field 'pick' of type radio has no options"]

    def test_circular_conditions(self):
        """Test fields that reveal each other are rejected."""
        form = build_form([
            {"name": "a", "label": "A", "condition": {"field": "b", "op": "not_empty"}},
            {"name": "b", "label": "B", "condition": {"field": "c", "op": "not_empty"}},
            {"name": "c", "label": "C", "condition": {"field": "a", "op": "not_empty"}},
        ])
        with pytest.raises(FormStructureError, match="circular"):
            FormStructureChecker.check(form)

    def test_self_reference(self):
        """Test a field depending on itself is a cycle."""
        form = build_form([
            {"name": "a", "label": "A", "condition": {"field": "a", "op": "eq", "value": "x"}},
        ])
        with pytest.raises(FormStructureError):
            FormStructureChecker.check(form)

    def test_chain_is_not_a_cycle(self):
        """Test a dependency chain is accepted."""
        form = build_form([
            {"name": "a", "label": "A"},
            {"name": "b", "label": "B", "condition": {"field": "a", "op": "not_empty"}},
            {"name": "c", "label": "C", "condition": {"and": [
                {"field": "a", "op": "not_empty"},
                {"field": "b", "op": "not_empty"},
            ]}},
        ])
        assert FormStructureChecker.check(form) == []
