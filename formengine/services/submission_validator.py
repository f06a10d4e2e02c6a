"""Submission validation service.

This module walks a form's steps and fields, skips whatever is hidden by
a condition or is display-only, validates the rest with FieldValidator,
and collects the messages into flat or step-grouped reports.

Conditions always see the complete submission, so a condition on one
step may read fields from any other step.
"""

from typing import Any, Iterable, Mapping, Optional, Sequence

from formengine.schemas.errors import StepValidationErrors, ValidationErrors
from formengine.schemas.form import FieldDefinition, StepDefinition
from formengine.schemas.value import Value
from formengine.services.conditions import ConditionEvaluator
from formengine.services.validation import FieldValidator
from formengine.logging_config import get_logger

logger = get_logger(__name__)


class SubmissionValidator:
    """Service for validating whole submissions against form definitions."""

    @staticmethod
    def validate_submission(
        fields: Sequence[FieldDefinition],
        data: Mapping[str, Value],
    ) -> ValidationErrors:
        """Validate every non-display field, ignoring conditions.

        Args:
            fields: Ordered field definitions
            data: Submitted values keyed by field id or field name

        Returns:
            Flat field -> messages report (empty when valid)

        Example:
            >>> fields = [FieldDefinition(name="name", label="Name", required=True)]
            >>> SubmissionValidator.validate_submission(fields, {}).to_dict()
            {'name': ['Name is required']}
        """
        errors = ValidationErrors()

        for field in fields:
            if field.is_display_only:
                continue
            for message in FieldValidator.validate(field, lookup_value(field, data)):
                errors.add(field.name, message)

        return errors

    @staticmethod
    def validate_multi_step_submission(
        steps: Iterable[tuple[StepDefinition, Sequence[FieldDefinition]]],
        data: Mapping[str, Value],
    ) -> StepValidationErrors:
        """Validate a multi-step submission, grouping errors by step.

        A step whose condition is false is skipped entirely, including
        required fields. Within a visible step, display-only fields and
        fields whose own condition is false are skipped.

        Args:
            steps: Ordered (step, fields) pairs
            data: Submitted values keyed by field id or field name

        Returns:
            Step key -> field name -> messages report
        """
        errors = StepValidationErrors()
        condition_values = to_condition_values(data)

        for step, fields in steps:
            if not _step_visible(step, condition_values):
                logger.debug(f"Skipping hidden step '{step.name}'")
                continue

            for field in _visible_fields(fields, condition_values):
                for message in FieldValidator.validate(field, lookup_value(field, data)):
                    errors.add(step.key, field.name, message)

        logger.debug(f"Multi-step validation finished with {errors.error_count()} error(s)")
        return errors

    @staticmethod
    def validate_step(
        step: StepDefinition,
        fields: Sequence[FieldDefinition],
        data: Mapping[str, Value],
    ) -> ValidationErrors:
        """Validate a single step with the same skip rules as the multi-step pass.

        Args:
            step: Step definition
            fields: The step's ordered fields
            data: Submitted values (may include other steps' fields)

        Returns:
            Flat field -> messages report
        """
        errors = ValidationErrors()
        condition_values = to_condition_values(data)

        if not _step_visible(step, condition_values):
            logger.debug(f"Step '{step.name}' is hidden; nothing to validate")
            return errors

        for field in _visible_fields(fields, condition_values):
            for message in FieldValidator.validate(field, lookup_value(field, data)):
                errors.add(field.name, message)

        return errors

    @staticmethod
    def is_field_visible(field: FieldDefinition, data: Mapping[str, Any]) -> bool:
        """Whether a field is shown for the given values (no condition = visible)."""
        if field.condition is None:
            return True
        return ConditionEvaluator.evaluate(field.condition, to_condition_values(data))

    @staticmethod
    def is_step_visible(step: StepDefinition, data: Mapping[str, Any]) -> bool:
        """Whether a step is shown for the given values (no condition = visible)."""
        if step.condition is None:
            return True
        return ConditionEvaluator.evaluate(step.condition, to_condition_values(data))


def lookup_value(field: FieldDefinition, data: Mapping[str, Value]) -> Optional[Value]:
    """Find a field's submitted value by storage id, falling back to name."""
    if field.id is not None and field.id in data:
        return data[field.id]
    return data.get(field.name)


def to_condition_values(data: Mapping[str, Any]) -> dict[str, Any]:
    """Convert submitted values to the plain JSON form conditions compare against."""
    return {
        key: value.to_json() if isinstance(value, Value) else value
        for key, value in data.items()
    }


def _step_visible(step: StepDefinition, condition_values: Mapping[str, Any]) -> bool:
    return step.condition is None or ConditionEvaluator.evaluate(step.condition, condition_values)


def _visible_fields(fields: Iterable[FieldDefinition], condition_values: Mapping[str, Any]):
    for field in fields:
        if field.is_display_only:
            continue
        if field.condition is not None and not ConditionEvaluator.evaluate(field.condition, condition_values):
            logger.debug(f"Skipping hidden field '{field.name}'")
            continue
        yield field
