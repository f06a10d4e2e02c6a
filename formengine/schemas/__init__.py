"""Schemas for form definitions, conditions, submitted values and error reports.

This package holds the typed data the condition evaluator and validators
operate on. Nothing in it performs I/O.
"""

from formengine.schemas.value import Value, ValueKind
from formengine.schemas.condition import (
    ConditionOp,
    Comparison,
    AndCondition,
    OrCondition,
    Condition,
    all_of,
    any_of,
    parse_condition,
    to_wire,
    referenced_fields,
)
from formengine.schemas.form import (
    ValueType,
    ValidationRules,
    FieldOption,
    UiOptions,
    FieldDefinition,
    StepDefinition,
    FormSettings,
    FormDefinition,
)
from formengine.schemas.errors import ValidationErrors, StepValidationErrors

__all__ = [
    "Value",
    "ValueKind",
    "ConditionOp",
    "Comparison",
    "AndCondition",
    "OrCondition",
    "Condition",
    "all_of",
    "any_of",
    "parse_condition",
    "to_wire",
    "referenced_fields",
    "ValueType",
    "ValidationRules",
    "FieldOption",
    "UiOptions",
    "FieldDefinition",
    "StepDefinition",
    "FormSettings",
    "FormDefinition",
    "ValidationErrors",
    "StepValidationErrors",
]
