"""Form rendering service using Jinja2.

This module renders a form definition to HTML, or to its wire JSON. Steps
and fields whose condition is false for the given values are rendered
hidden, and every conditional element carries its condition in a
`data-condition` attribute so the page can re-evaluate it as the user types.
"""

import json
from typing import Any, Mapping, Optional

from jinja2 import BaseLoader, Environment, StrictUndefined, TemplateError

from formengine.schemas.condition import referenced_fields, to_wire
from formengine.schemas.form import FieldDefinition, FormDefinition, ValueType
from formengine.schemas.value import Value
from formengine.services.submission_validator import SubmissionValidator, lookup_value
from formengine.logging_config import get_logger

logger = get_logger(__name__)


FORM_TEMPLATE = """\
{%- macro attrs(item) -%}
{% if item.condition %} data-condition="{{ item.condition }}" data-depends-on="{{ item.depends_on }}"{% endif %}{% if item.hidden %} style="display:none"{% endif %}
{%- endmacro -%}
{%- macro ui(field) -%}
{% if field.ui.input_class %} class="{{ field.ui.input_class }}"{% endif %}{% if field.ui.autocomplete %} autocomplete="{{ field.ui.autocomplete }}"{% endif %}{% if field.ui.inputmode %} inputmode="{{ field.ui.inputmode }}"{% endif %}{% if field.ui.autofocus %} autofocus{% endif %}{% if field.ui.disabled %} disabled{% endif %}{% if field.ui.readonly %} readonly{% endif %}
{%- endmacro -%}
<form class="fe-form{% if css_class %} {{ css_class }}{% endif %}" method="{{ method }}" action="{{ action }}"{% if multipart %} enctype="multipart/form-data"{% endif %} data-form="{{ slug }}">
<h2 class="fe-title">{{ name }}</h2>
{%- if description %}
<p class="fe-description">{{ description }}</p>
{%- endif %}
{%- for step in steps %}
<fieldset class="fe-step" data-step="{{ step.key }}"{{ attrs(step) }}>
{%- if multi_step %}
<legend>{{ step.name }}</legend>
{%- endif %}
{%- for field in step.fields %}
{%- if field.kind == "heading" %}
<h3 class="fe-heading" data-field="{{ field.name }}"{{ attrs(field) }}>{{ field.label }}</h3>
{%- elif field.kind == "paragraph" %}
<p class="fe-paragraph" data-field="{{ field.name }}"{{ attrs(field) }}>{{ field.label }}</p>
{%- elif field.kind == "hidden" %}
<input type="hidden" id="{{ field.dom_id }}" name="{{ field.name }}" value="{{ field.value }}"{{ attrs(field) }}>
{%- else %}
<div class="fe-field fe-{{ field.kind }}{% if field.ui.css_class %} {{ field.ui.css_class }}{% endif %}" data-field="{{ field.name }}"{% if field.ui.width %} data-width="{{ field.ui.width }}"{% endif %}{{ attrs(field) }}>
<label for="{{ field.dom_id }}"{% if field.ui.label_class %} class="{{ field.ui.label_class }}"{% endif %}>{{ field.label }}{% if field.required %} <span class="fe-required">*</span>{% endif %}</label>
{%- if field.kind == "textarea" %}
<textarea id="{{ field.dom_id }}" name="{{ field.name }}"{% if field.ui.rows %} rows="{{ field.ui.rows }}"{% endif %}{% if field.ui.cols %} cols="{{ field.ui.cols }}"{% endif %}{% if field.placeholder %} placeholder="{{ field.placeholder }}"{% endif %}{% if field.required %} required{% endif %}{{ ui(field) }}>{{ field.value }}</textarea>
{%- elif field.kind == "file" %}
<input type="file" id="{{ field.dom_id }}" name="{{ field.name }}"{% if field.accept %} accept="{{ field.accept }}"{% endif %}{% if field.required %} required{% endif %}{{ ui(field) }}>
{%- elif field.kind == "select" %}
<select id="{{ field.dom_id }}" name="{{ field.input_name }}"{% if field.multiple %} multiple{% endif %}{% if field.required %} required{% endif %}{{ ui(field) }}>
{%- if not field.multiple %}
<option value="">{{ field.placeholder or "" }}</option>
{%- endif %}
{%- for option in field.options %}
<option value="{{ option.value }}"{% if option.selected %} selected{% endif %}>{{ option.label }}</option>
{%- endfor %}
</select>
{%- elif field.kind == "choices" %}
{%- for option in field.options %}
<label class="fe-choice"><input type="{{ field.input_type }}" name="{{ field.input_name }}" value="{{ option.value }}"{% if option.selected %} checked{% endif %}> {{ option.label }}</label>
{%- endfor %}
{%- elif field.kind == "toggle" %}
<input type="checkbox" id="{{ field.dom_id }}" name="{{ field.name }}" value="true"{% if field.checked %} checked{% endif %}{{ ui(field) }}>
{%- else %}
<input type="{{ field.input_type }}" id="{{ field.dom_id }}" name="{{ field.name }}" value="{{ field.value }}"{% if field.placeholder %} placeholder="{{ field.placeholder }}"{% endif %}{% if field.required %} required{% endif %}{{ ui(field) }}>
{%- endif %}
{%- if field.help_text %}
<small class="fe-help">{{ field.help_text }}</small>
{%- endif %}
</div>
{%- endif %}
{%- endfor %}
</fieldset>
{%- endfor %}
<button type="submit">{{ submit_label }}</button>
</form>
"""


class FormRenderError(Exception):
    """Raised when form rendering fails."""
    pass


class FormRenderer:
    """Service for rendering form definitions."""

    def __init__(self):
        """Initialize Jinja2 environment with strict settings."""
        self.env = Environment(
            loader=BaseLoader(),
            autoescape=True,
            undefined=StrictUndefined,
        )
        self.template = self.env.from_string(FORM_TEMPLATE)

    def render_html(
        self,
        form: FormDefinition,
        data: Optional[Mapping[str, Value]] = None,
        action: Optional[str] = None,
    ) -> str:
        """Render a form to HTML.

        Args:
            form: Form definition
            data: Current values, used to pre-fill inputs and decide what
                starts hidden
            action: Form action URL (defaults to the submit endpoint)

        Returns:
            HTML fragment containing the <form> element

        Raises:
            FormRenderError: If rendering fails

        Example:
            >>> html = get_form_renderer().render_html(form, {"country": Value.text("US")})
            >>> 'data-condition=' in html
            True
        """
        data = data or {}
        context = {
            "name": form.name,
            "slug": form.slug,
            "description": form.description,
            "css_class": form.settings.css_class,
            "method": form.settings.method_or_default(),
            "action": action or f"/api/forms/{form.slug}",
            "submit_label": form.settings.submit_label_or_default(),
            "multi_step": form.is_multi_step,
            "multipart": any(field.value_type.is_file_type for field in form.all_fields()),
            "steps": [
                {
                    "key": step.key,
                    "name": step.name,
                    "condition": _condition_attr(step.condition),
                    "depends_on": ",".join(sorted(referenced_fields(step.condition))),
                    "hidden": not SubmissionValidator.is_step_visible(step, data),
                    "fields": [_field_view(field, data) for field in step.fields],
                }
                for step in form.steps
            ],
        }

        try:
            rendered = self.template.render(context)
        except TemplateError as e:
            logger.error(f"Form rendering error for {form.slug}: {e}")
            raise FormRenderError(f"Failed to render form '{form.slug}': {e}")

        logger.debug(f"Rendered form {form.slug}", extra={"form_slug": form.slug})
        return rendered

    @staticmethod
    def render_json(form: FormDefinition) -> dict:
        """Wire JSON of a form definition."""
        return form.to_wire()


def _condition_attr(condition) -> Optional[str]:
    if condition is None:
        return None
    return json.dumps(to_wire(condition), separators=(",", ":"))


def _field_kind(field: FieldDefinition) -> str:
    value_type = field.value_type
    if value_type in (ValueType.HEADING, ValueType.PARAGRAPH, ValueType.HIDDEN, ValueType.TEXTAREA):
        return value_type.value
    if value_type.is_file_type:
        return "file"
    if value_type in (ValueType.SELECT, ValueType.MULTI_SELECT, ValueType.MATRIX):
        return "select"
    if value_type == ValueType.RADIO:
        return "choices"
    if value_type == ValueType.CHECKBOX:
        return "choices" if field.options else "toggle"
    return "input"


def _field_view(field: FieldDefinition, data: Mapping[str, Value]) -> dict[str, Any]:
    value = lookup_value(field, data)
    if value is None or value.is_null():
        current = field.default_value or ""
        selected = {current} if current else set()
    else:
        current = value.to_string_value()
        selected = set(value.as_array() or (current,))

    multiple = field.value_type.is_multi_value
    kind = _field_kind(field)

    return {
        "name": field.name,
        "dom_id": f"field-{field.name}",
        "input_name": f"{field.name}[]" if multiple and kind != "toggle" else field.name,
        "label": field.label,
        "kind": kind,
        "input_type": field.value_type.html_input_type or "text",
        "multiple": multiple,
        "required": field.required,
        "placeholder": field.placeholder,
        "help_text": field.help_text,
        "accept": "image/*" if field.value_type == ValueType.IMAGE else None,
        "ui": field.ui_options,
        "value": current,
        "checked": value is not None and value.as_bool() is True,
        "options": [
            {"label": option.label, "value": option.value, "selected": option.value in selected}
            for option in field.options
        ],
        "condition": _condition_attr(field.condition),
        "depends_on": ",".join(sorted(referenced_fields(field.condition))),
        "hidden": not SubmissionValidator.is_field_visible(field, data),
    }


# Global singleton instance
_renderer_instance: Optional[FormRenderer] = None


def get_form_renderer() -> FormRenderer:
    """Get global FormRenderer instance.

    Returns:
        Global FormRenderer instance
    """
    global _renderer_instance
    if _renderer_instance is None:
        _renderer_instance = FormRenderer()
    return _renderer_instance
