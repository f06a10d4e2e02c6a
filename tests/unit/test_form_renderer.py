"""Unit tests for form rendering service."""

import json
from html import unescape

from formengine.schemas.value import Value
from formengine.services.form_renderer import FormRenderer, get_form_renderer


class TestFormRenderer:
    """Tests for FormRenderer class."""

    def test_renders_fields_and_submit_label(self, contact_form):
        """Test inputs and the default submit button."""
        html = FormRenderer().render_html(contact_form)

        assert '<form class="fe-form" method="POST" action="/api/forms/contact"' in html
        assert 'type="email"' in html
        assert 'name="topic"' in html
        assert '<option value="other">Other</option>' in html
        assert "<button type=\"submit\">Submit</button>" in html

    def test_conditional_field_hidden_with_condition(self, contact_form):
        """Test a false condition hides the field and carries its JSON."""
        html = FormRenderer().render_html(contact_form)
        marker = 'data-field="topic_other"'
        start = html.index(marker)
        tag = html[start:html.index(">", start)]

        assert 'style="display:none"' in tag
        condition_json = unescape(tag.split('data-condition="')[1].split('"')[0])
        assert json.loads(condition_json) == {"field": "topic", "op": "eq", "value": "other"}

    def test_conditional_field_shown_for_values(self, contact_form):
        """Test current values reveal the field and pre-fill inputs."""
        html = FormRenderer().render_html(contact_form, {"topic": Value.text("other")})
        start = html.index('data-field="topic_other"')
        tag = html[start:html.index(">", start)]

        assert "display:none" not in tag
        assert '<option value="other" selected>Other</option>' in html

    def test_hidden_step(self, signup_form):
        """Test steps get the same treatment as fields."""
        html = FormRenderer().render_html(signup_form, {"age": Value.number(30)})
        start = html.index('data-step="guardian"')
        tag = html[start:html.index(">", start)]
        assert 'style="display:none"' in tag
        assert "<legend>about</legend>" in html
        assert '<h3 class="fe-heading" data-field="intro">About you</h3>' in html

    def test_output_is_escaped(self, contact_form_data):
        """Test labels are HTML-escaped."""
        from formengine.schemas.form import FormDefinition

        contact_form_data["steps"][0]["fields"][0]["label"] = "<script>x</script>"
        html = FormRenderer().render_html(FormDefinition.model_validate(contact_form_data))
        assert "<script>" not in html
        assert "&lt;script&gt;" in html

    def test_multi_select_uses_array_name(self):
        """Test multi-value fields submit as name[]."""
        from formengine.schemas.form import FormDefinition

        form = FormDefinition.model_validate({
            "name": "F",
            "slug": "f",
            "steps": [{"name": "s", "fields": [{
                "name": "days",
                "label": "Days",
                "type": "checkbox",
                "options": [{"label": "Sat", "value": "sat"}, {"label": "Sun", "value": "sun"}],
            }]}],
        })
        html = FormRenderer().render_html(form, {"days": Value.array(["sun"])})
        assert 'type="checkbox" name="days[]" value="sat">' in html
        assert 'type="checkbox" name="days[]" value="sun" checked>' in html

    def test_render_json(self, contact_form):
        """Test JSON output is the wire definition."""
        assert get_form_renderer().render_json(contact_form) == contact_form.to_wire()

    def test_singleton(self):
        """Test the global renderer is reused."""
        assert get_form_renderer() is get_form_renderer()

    def test_depends_on_lists_referenced_fields(self, signup_form):
        """Test conditional elements name the fields they read."""
        html = FormRenderer().render_html(signup_form)
        assert 'data-depends-on="age"' in html

    def test_file_fields_switch_to_multipart(self):
        """Test file and image fields render file inputs on a multipart form."""
        from formengine.schemas.form import FormDefinition

        form = FormDefinition.model_validate({
            "name": "Apply",
            "slug": "apply",
            "steps": [{"name": "s", "fields": [
                {"name": "resume", "label": "Resume", "type": "file", "required": True},
                {"name": "photo", "label": "Photo", "type": "image"},
            ]}],
        })
        html = FormRenderer().render_html(form)

        assert 'enctype="multipart/form-data"' in html
        assert '<input type="file" id="field-resume" name="resume" required>' in html
        assert '<input type="file" id="field-photo" name="photo" accept="image/*">' in html

    def test_plain_form_is_not_multipart(self, contact_form):
        """Test forms without file fields keep the default encoding."""
        assert "enctype" not in FormRenderer().render_html(contact_form)

    def test_ui_options_rendered(self, contact_form_data):
        """Test rendering hints reach the container, label and input."""
        from formengine.schemas.form import FormDefinition

        fields = contact_form_data["steps"][0]["fields"]
        fields[0]["ui_options"] = {
            "css_class": "wide",
            "label_class": "bold",
            "input_class": "big",
            "autocomplete": "name",
            "autofocus": True,
        }
        fields[1]["type"] = "textarea"
        fields[1]["ui_options"] = {"rows": 4, "readonly": True}
        html = FormRenderer().render_html(FormDefinition.model_validate(contact_form_data))

        assert '<div class="fe-field fe-input wide" data-field="name">' in html
        assert '<label for="field-name" class="bold">' in html
        assert 'name="name" value="" required class="big" autocomplete="name" autofocus>' in html
        assert '<textarea id="field-email" name="email" rows="4" required readonly></textarea>' in html
