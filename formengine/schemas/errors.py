"""Validation error reports.

These are the normal output of validating a submission: an empty report
means the submission is accepted. They are data, not exceptions.
"""

from dataclasses import dataclass, field
from typing import Optional


@dataclass
class ValidationErrors:
    """Field name -> ordered error messages.

    Attributes:
        errors: Messages per field, in validation order
    """
    errors: dict[str, list[str]] = field(default_factory=dict)

    def add(self, field_name: str, message: str) -> None:
        self.errors.setdefault(field_name, []).append(message)

    def get(self, field_name: str) -> Optional[list[str]]:
        return self.errors.get(field_name)

    def merge(self, other: "ValidationErrors") -> None:
        """Append another report's messages after this one's."""
        for field_name, messages in other.errors.items():
            self.errors.setdefault(field_name, []).extend(messages)

    def is_empty(self) -> bool:
        return not self.errors

    def field_count(self) -> int:
        return len(self.errors)

    def error_count(self) -> int:
        return sum(len(messages) for messages in self.errors.values())

    def to_dict(self) -> dict[str, list[str]]:
        return {name: list(messages) for name, messages in self.errors.items()}

    def __len__(self) -> int:
        return len(self.errors)

    def __str__(self) -> str:
        return f"{self.error_count()} validation error(s)"


@dataclass
class StepValidationErrors:
    """Step key -> field name -> ordered error messages.

    Used for multi-step forms so errors can be shown on the step that
    owns the field.
    """
    steps: dict[str, dict[str, list[str]]] = field(default_factory=dict)

    def add(self, step_key: str, field_name: str, message: str) -> None:
        self.steps.setdefault(step_key, {}).setdefault(field_name, []).append(message)

    def get_step(self, step_key: str) -> Optional[dict[str, list[str]]]:
        return self.steps.get(step_key)

    def get_field(self, step_key: str, field_name: str) -> Optional[list[str]]:
        return self.steps.get(step_key, {}).get(field_name)

    def is_empty(self) -> bool:
        return all(not fields for fields in self.steps.values())

    def field_count(self) -> int:
        return sum(len(fields) for fields in self.steps.values())

    def error_count(self) -> int:
        return sum(
            len(messages)
            for fields in self.steps.values()
            for messages in fields.values()
        )

    def flatten(self) -> ValidationErrors:
        """Collapse into a flat report.

        Step grouping is lost. A field name that appears in more than one
        step gets the concatenation of its messages, in step order.
        """
        flat = ValidationErrors()
        for fields in self.steps.values():
            flat.merge(ValidationErrors(fields))
        return flat

    def to_dict(self) -> dict[str, dict[str, list[str]]]:
        return {
            step_key: {name: list(messages) for name, messages in fields.items()}
            for step_key, fields in self.steps.items()
        }

    def __len__(self) -> int:
        return len(self.steps)

    def __str__(self) -> str:
        return f"{self.error_count()} validation error(s) across {len(self.steps)} step(s)"
