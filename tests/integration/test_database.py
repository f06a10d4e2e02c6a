"""Integration tests for the form repository.

These tests verify the database layer including:
- Saving and reloading definitions with ordered steps, fields and options
- Replacing definitions by slug
- Soft delete
- Recording and listing submissions
"""

import pytest
from sqlalchemy import select

from formengine.models.form import Form, FormField, FormStep
from formengine.models.submission import FormSubmission
from formengine.schemas.condition import Comparison
from formengine.schemas.form import FormDefinition
from formengine.schemas.value import Value
from formengine.services.form_loader import FormDefinitionError, FormNotFoundError
from formengine.services.form_repository import FormRepository


class TestFormRepository:
    """Integration tests for FormRepository."""

    def test_save_and_load_round_trip(self, db_session, signup_form):
        """Test a saved definition loads back with ids and order intact."""
        FormRepository.save_definition(db_session, signup_form)

        loaded = FormRepository.get_by_slug(db_session, "signup")

        assert loaded.id is not None
        assert [step.name for step in loaded.steps] == ["about", "guardian", "contact"]
        assert [f.name for f in loaded.steps[0].fields] == ["intro", "first_name", "age"]
        assert all(step.id is not None for step in loaded.steps)
        assert loaded.get_step("guardian").condition == Comparison.lt("age", 18)

    def test_list_order_wins_over_partial_order_values(self, db_session, signup_form_data):
        """Test steps and fields reload in definition order when only some set order."""
        signup_form_data["steps"][0]["order"] = 2
        signup_form_data["steps"][0]["fields"][0]["order"] = 5
        FormRepository.save_definition(db_session, FormDefinition.model_validate(signup_form_data))

        loaded = FormRepository.get_by_slug(db_session, "signup")

        assert [step.name for step in loaded.steps] == ["about", "guardian", "contact"]
        assert [step.order for step in loaded.steps] == [0, 1, 2]
        assert [f.name for f in loaded.steps[0].fields] == ["intro", "first_name", "age"]

    def test_ui_options_stored(self, db_session, contact_form_data):
        """Test rendering hints survive storage, unknown keys included."""
        fields = contact_form_data["steps"][0]["fields"]
        fields[0]["ui_options"] = {"css_class": "wide", "autofocus": True, "max_rating": 5}
        FormRepository.save_definition(db_session, FormDefinition.model_validate(contact_form_data))

        loaded = FormRepository.get_by_slug(db_session, "contact").all_fields()

        assert loaded[0].ui_options.css_class == "wide"
        assert loaded[0].ui_options.autofocus is True
        assert loaded[0].ui_options.to_dict()["max_rating"] == 5
        stored = db_session.scalars(select(FormField.ui_options).where(FormField.name == "email")).one()
        assert stored is None

    def test_options_and_rules_stored(self, db_session, contact_form_data):
        """Test options and validation rules survive storage."""
        contact_form_data["steps"][0]["fields"][0]["validation"] = {"min_length": 2}
        FormRepository.save_definition(db_session, FormDefinition.model_validate(contact_form_data))

        loaded = FormRepository.get_by_slug(db_session, "contact")
        fields = loaded.all_fields()
        assert fields[0].validation.min_length == 2
        assert [o.value for o in fields[2].options] == ["general", "other"]
        assert fields[3].condition == Comparison.eq("topic", "other")

        rules = db_session.scalars(select(FormField.validation_rules).where(FormField.name == "email")).one()
        assert rules is None

    def test_replace_by_slug(self, db_session, contact_form, contact_form_data):
        """Test saving the same slug replaces steps instead of adding."""
        FormRepository.save_definition(db_session, contact_form)
        contact_form_data["name"] = "Contact v2"
        contact_form_data["steps"][0]["fields"] = [{"name": "only", "label": "Only"}]
        FormRepository.save_definition(db_session, FormDefinition.model_validate(contact_form_data))

        assert len(db_session.scalars(select(Form)).all()) == 1
        assert len(db_session.scalars(select(FormStep)).all()) == 1
        loaded = FormRepository.get_by_slug(db_session, "contact")
        assert loaded.name == "Contact v2"
        assert [f.name for f in loaded.all_fields()] == ["only"]

    def test_not_found(self, db_session):
        """Test unknown slugs raise FormNotFoundError."""
        with pytest.raises(FormNotFoundError):
            FormRepository.get_by_slug(db_session, "missing")

    def test_soft_delete(self, db_session, contact_form):
        """Test deleted forms disappear from reads but keep their row."""
        FormRepository.save_definition(db_session, contact_form)
        FormRepository.soft_delete(db_session, "contact")

        with pytest.raises(FormNotFoundError):
            FormRepository.get_by_slug(db_session, "contact")
        with pytest.raises(FormNotFoundError):
            FormRepository.soft_delete(db_session, "contact")
        assert FormRepository.list_active(db_session) == []
        assert FormRepository.exists(db_session, "contact")

    def test_save_restores_deleted(self, db_session, contact_form):
        """Test re-saving a deleted slug brings it back."""
        FormRepository.save_definition(db_session, contact_form)
        FormRepository.soft_delete(db_session, "contact")
        FormRepository.save_definition(db_session, contact_form)

        assert FormRepository.get_by_slug(db_session, "contact").name == "Contact Us"

    def test_list_active_sorted(self, db_session, contact_form, signup_form):
        """Test live forms are listed by slug."""
        FormRepository.save_definition(db_session, signup_form)
        FormRepository.save_definition(db_session, contact_form)
        assert [f.slug for f in FormRepository.list_active(db_session)] == ["contact", "signup"]

    def test_invalid_stored_definition(self, db_session, contact_form):
        """Test corrupted stored JSON raises FormDefinitionError."""
        FormRepository.save_definition(db_session, contact_form)
        field = db_session.scalars(select(FormField).where(FormField.name == "name")).one()
        field.field_type = "signature"
        db_session.commit()

        with pytest.raises(FormDefinitionError):
            FormRepository.get_by_slug(db_session, "contact")

    def test_record_and_list_submissions(self, db_session, contact_form):
        """Test submissions store JSON values and metadata."""
        FormRepository.save_definition(db_session, contact_form)
        values = {"name": Value.text("Ada"), "days": Value.array(["sat"]), "age": Value.number(36)}

        submission = FormRepository.record_submission(
            db_session, "contact", values, {"user_agent": "pytest"}
        )

        assert submission.id is not None
        stored = db_session.scalars(select(FormSubmission)).one()
        assert stored.data == {"name": "Ada", "days": ["sat"], "age": 36.0}
        assert stored.client_info == {"user_agent": "pytest"}
        assert [s.id for s in FormRepository.list_submissions(db_session, "contact")] == [submission.id]

    def test_submissions_kept_after_delete(self, db_session, contact_form):
        """Test soft delete keeps submission rows."""
        FormRepository.save_definition(db_session, contact_form)
        FormRepository.record_submission(db_session, "contact", {"name": Value.text("Ada")})
        FormRepository.soft_delete(db_session, "contact")

        assert len(db_session.scalars(select(FormSubmission)).all()) == 1
        with pytest.raises(FormNotFoundError):
            FormRepository.list_submissions(db_session, "contact")
