"""Pydantic schemas for form definitions.

A form is an ordered list of steps; a step is an ordered list of fields.
Definitions come from the database or from YAML/JSON files and are
read-only while a submission is being validated.
"""

from enum import Enum
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

from formengine.schemas.condition import Condition, parse_condition


class ValueType(str, Enum):
    """Field input types."""
    TEXT = "text"
    EMAIL = "email"
    URL = "url"
    TEL = "tel"
    NUMBER = "number"
    TEXTAREA = "textarea"
    SELECT = "select"
    MULTI_SELECT = "multi_select"
    RADIO = "radio"
    CHECKBOX = "checkbox"
    DATE = "date"
    DATETIME = "datetime"
    TIME = "time"
    FILE = "file"
    IMAGE = "image"
    HIDDEN = "hidden"
    HEADING = "heading"
    PARAGRAPH = "paragraph"
    RATING = "rating"
    SCALE = "scale"
    NPS = "nps"
    MATRIX = "matrix"

    @classmethod
    def parse(cls, raw: str) -> "ValueType":
        """Parse a stored field type, accepting the older spellings.

        Raises:
            ValueError: If the type is unknown

        Example:
            >>> ValueType.parse("Dropdown")
            <ValueType.SELECT: 'select'>
        """
        lowered = raw.lower()
        lowered = VALUE_TYPE_ALIASES.get(lowered, lowered)
        try:
            return cls(lowered)
        except ValueError:
            raise ValueError(f"Unknown field type: {raw}")

    @property
    def is_display_only(self) -> bool:
        return self in (ValueType.HEADING, ValueType.PARAGRAPH)

    @property
    def requires_options(self) -> bool:
        return self in (
            ValueType.SELECT,
            ValueType.MULTI_SELECT,
            ValueType.RADIO,
            ValueType.MATRIX,
        )

    @property
    def is_file_type(self) -> bool:
        return self in (ValueType.FILE, ValueType.IMAGE)

    @property
    def is_multi_value(self) -> bool:
        return self in (ValueType.MULTI_SELECT, ValueType.CHECKBOX, ValueType.MATRIX)

    @property
    def html_input_type(self) -> str:
        """The <input type=...> used to render this field, or "" for non-input widgets."""
        return HTML_INPUT_TYPES.get(self, "")


VALUE_TYPE_ALIASES = {
    "telephone": "tel",
    "phone": "tel",
    "numeric": "number",
    "integer": "number",
    "decimal": "number",
    "longtext": "textarea",
    "long_text": "textarea",
    "dropdown": "select",
    "multiselect": "multi_select",
    "date_time": "datetime",
    "header": "heading",
    "h1": "heading",
    "h2": "heading",
    "h3": "heading",
    "text_block": "paragraph",
    "description": "paragraph",
    "stars": "rating",
    "slider": "scale",
    "grid": "matrix",
}

HTML_INPUT_TYPES = {
    ValueType.TEXT: "text",
    ValueType.HIDDEN: "hidden",
    ValueType.EMAIL: "email",
    ValueType.URL: "url",
    ValueType.TEL: "tel",
    ValueType.NUMBER: "number",
    ValueType.RATING: "number",
    ValueType.SCALE: "range",
    ValueType.NPS: "number",
    ValueType.DATE: "date",
    ValueType.DATETIME: "datetime-local",
    ValueType.TIME: "time",
    ValueType.FILE: "file",
    ValueType.IMAGE: "file",
    ValueType.CHECKBOX: "checkbox",
    ValueType.RADIO: "radio",
}


class ValidationRules(BaseModel):
    """Optional constraints on a field's submitted value.

    Every constraint is optional; a rule set with nothing set is "empty"
    and is not stored.

    Attributes:
        min_length: Minimum text length in characters
        max_length: Maximum text length in characters
        min: Inclusive lower numeric bound
        max: Inclusive upper numeric bound
        pattern: Regular expression the text must match
        pattern_message: Message shown when the pattern does not match
        min_selections: Minimum number of selected options
        max_selections: Maximum number of selected options
    """
    min_length: Optional[int] = Field(None, ge=0, description="Minimum text length")
    max_length: Optional[int] = Field(None, ge=0, description="Maximum text length")
    min: Optional[float] = Field(None, description="Inclusive numeric minimum")
    max: Optional[float] = Field(None, description="Inclusive numeric maximum")
    pattern: Optional[str] = Field(None, description="Regex the text must match")
    pattern_message: Optional[str] = Field(None, description="Custom pattern failure text")
    min_selections: Optional[int] = Field(None, ge=0, description="Minimum selected options")
    max_selections: Optional[int] = Field(None, ge=0, description="Maximum selected options")

    @model_validator(mode="after")
    def bounds_ordered(self):
        """Ensure every max bound is >= its min bound when both are set."""
        pairs = (
            ("min_length", "max_length"),
            ("min", "max"),
            ("min_selections", "max_selections"),
        )
        for low_name, high_name in pairs:
            low = getattr(self, low_name)
            high = getattr(self, high_name)
            if low is not None and high is not None and high < low:
                raise ValueError(f"{high_name} must be >= {low_name}")
        return self

    def is_empty(self) -> bool:
        return all(getattr(self, name) is None for name in type(self).model_fields)

    def to_dict(self) -> dict:
        return self.model_dump(exclude_none=True)


class FieldOption(BaseModel):
    """A selectable option for select/radio/multi-select/matrix fields."""
    label: str = Field(..., min_length=1, description="Display text")
    value: str = Field(..., description="Submitted value")
    order: int = Field(default=0, description="Display order")


class UiOptions(BaseModel):
    """Rendering hints for a field.

    None of these affect validation. Unknown keys are kept so hints meant
    for other front ends survive storage.
    """
    css_class: Optional[str] = Field(None, description="Classes for the field container")
    input_class: Optional[str] = Field(None, description="Classes for the input element")
    label_class: Optional[str] = Field(None, description="Classes for the label")
    width: Optional[str] = Field(None, description="Width hint, e.g. full, half, 25%")
    rows: Optional[int] = Field(None, ge=1, description="Textarea rows")
    cols: Optional[int] = Field(None, ge=1, description="Textarea columns")
    autocomplete: Optional[str] = None
    inputmode: Optional[str] = None
    autofocus: Optional[bool] = None
    disabled: Optional[bool] = None
    readonly: Optional[bool] = None

    model_config = ConfigDict(extra="allow")

    def is_empty(self) -> bool:
        return not self.to_dict()

    def to_dict(self) -> dict:
        return self.model_dump(exclude_none=True)


class FieldDefinition(BaseModel):
    """A single form input definition.

    Attributes:
        id: Storage identifier (submitted data may be keyed by it)
        name: Snake_case identifier, unique within its step
        label: Display text used in error messages
        value_type: Input type
        required: Whether an empty value is rejected
        validation: Constraints on the submitted value
        condition: Visibility condition (None = always visible)
        options: Choices for option-based fields
        ui_options: Rendering hints
    """
    id: Optional[str] = Field(None, description="Storage identifier")
    name: str = Field(..., pattern=r"^[a-z][a-z0-9_]*$", description="Field identifier")
    label: str = Field(..., min_length=1, description="Display label")
    value_type: ValueType = Field(ValueType.TEXT, alias="type", description="Input type")
    required: bool = Field(default=False)
    placeholder: Optional[str] = None
    help_text: Optional[str] = None
    default_value: Optional[str] = None
    validation: ValidationRules = Field(default_factory=ValidationRules)
    condition: Optional[Condition] = None
    options: list[FieldOption] = Field(default_factory=list)
    ui_options: UiOptions = Field(default_factory=UiOptions)
    order: int = Field(default=0)

    model_config = ConfigDict(populate_by_name=True)

    @field_validator("value_type", mode="before")
    @classmethod
    def parse_value_type(cls, v):
        if isinstance(v, str):
            return ValueType.parse(v)
        return v

    @field_validator("validation", mode="before")
    @classmethod
    def null_validation_is_empty(cls, v):
        return ValidationRules() if v is None else v

    @field_validator("ui_options", mode="before")
    @classmethod
    def null_ui_options_is_empty(cls, v):
        return UiOptions() if v is None else v

    @field_validator("condition", mode="before")
    @classmethod
    def parse_stored_condition(cls, v):
        if isinstance(v, str):
            return parse_condition(v)
        return v

    @property
    def is_display_only(self) -> bool:
        return self.value_type.is_display_only


class StepDefinition(BaseModel):
    """An ordered group of fields, optionally itself conditional.

    Attributes:
        id: Storage identifier
        name: Step name, unique within the form
        condition: Visibility condition; when false every field is skipped
        fields: Ordered field definitions
    """
    id: Optional[str] = Field(None, description="Storage identifier")
    name: str = Field(..., min_length=1, description="Step name")
    description: Optional[str] = None
    order: int = Field(default=0)
    condition: Optional[Condition] = None
    fields: list[FieldDefinition] = Field(default_factory=list)

    @field_validator("condition", mode="before")
    @classmethod
    def parse_stored_condition(cls, v):
        if isinstance(v, str):
            return parse_condition(v)
        return v

    @model_validator(mode="after")
    def unique_field_names(self):
        names = [f.name for f in self.fields]
        if len(names) != len(set(names)):
            duplicates = sorted({n for n in names if names.count(n) > 1})
            raise ValueError(f"Duplicate field names in step '{self.name}': {duplicates}")
        return self

    @property
    def key(self) -> str:
        """Identifier used to group errors: the storage id, else the name."""
        return self.id or self.name


class FormSettings(BaseModel):
    """Per-form presentation and submission settings."""
    submit_label: Optional[str] = None
    success_message: Optional[str] = None
    redirect_url: Optional[str] = None
    show_progress: bool = False
    allow_partial_save: bool = False
    css_class: Optional[str] = None
    method: Optional[str] = None

    def submit_label_or_default(self) -> str:
        return self.submit_label or "Submit"

    def method_or_default(self) -> str:
        return self.method or "POST"


class FormDefinition(BaseModel):
    """Complete form definition.

    Attributes:
        id: Storage identifier
        name: Human-readable name
        slug: URL identifier
        settings: Presentation and submission settings
        steps: Ordered steps (at least one)
    """
    id: Optional[str] = None
    name: str = Field(..., min_length=1)
    slug: str = Field(..., pattern=r"^[a-z0-9][a-z0-9_-]*$")
    description: Optional[str] = None
    settings: FormSettings = Field(default_factory=FormSettings)
    steps: list[StepDefinition] = Field(..., min_length=1)

    @field_validator("settings", mode="before")
    @classmethod
    def null_settings_is_default(cls, v):
        return FormSettings() if v is None else v

    @model_validator(mode="after")
    def unique_step_names(self):
        names = [s.name for s in self.steps]
        if len(names) != len(set(names)):
            duplicates = sorted({n for n in names if names.count(n) > 1})
            raise ValueError(f"Duplicate step names: {duplicates}")
        return self

    @property
    def is_multi_step(self) -> bool:
        return len(self.steps) > 1

    def all_fields(self) -> list[FieldDefinition]:
        return [f for step in self.steps for f in step.fields]

    def get_step(self, key: str) -> Optional[StepDefinition]:
        """Find a step by storage id or name."""
        for step in self.steps:
            if step.id == key or step.name == key:
                return step
        return None

    def step_pairs(self) -> list[tuple[StepDefinition, list[FieldDefinition]]]:
        return [(step, step.fields) for step in self.steps]

    def to_wire(self) -> dict:
        """JSON-compatible form, with conditions in their stored shape."""
        return self.model_dump(mode="json", by_alias=True, exclude_none=True)
