"""Submission service for orchestrating form submissions.

This module ties together the repository, the condition evaluator and the
validators: it loads the form, validates the submitted values, and stores
the submission when they are valid.
"""

from dataclasses import dataclass
from typing import Any, Mapping, Optional, Union

from sqlalchemy.orm import Session

from formengine.schemas.errors import StepValidationErrors, ValidationErrors
from formengine.schemas.form import FormDefinition
from formengine.schemas.value import Value
from formengine.services.form_repository import FormRepository
from formengine.services.submission_validator import SubmissionValidator
from formengine.logging_config import get_logger

logger = get_logger(__name__)


class SubmissionServiceError(Exception):
    """Raised when a submission request refers to something that doesn't exist."""
    pass


@dataclass
class SubmissionResult:
    """Outcome of a submission attempt.

    Attributes:
        errors: Validation report (flat for single-step forms, grouped by
            step for multi-step forms)
        submission_id: Stored submission id, when accepted
        success_message: Form's configured success message
        redirect_url: Form's configured redirect target
    """
    errors: Union[ValidationErrors, StepValidationErrors]
    submission_id: Optional[str] = None
    success_message: Optional[str] = None
    redirect_url: Optional[str] = None

    @property
    def is_valid(self) -> bool:
        return self.errors.is_empty()


class SubmissionService:
    """Main submission orchestration service."""

    def __init__(self, db: Session):
        """Initialize submission service.

        Args:
            db: SQLAlchemy database session
        """
        self.db = db

    def get_form(self, slug: str) -> FormDefinition:
        """Load a live form definition.

        Raises:
            FormNotFoundError: If the form doesn't exist or was deleted
            FormDefinitionError: If the stored definition is invalid
        """
        return FormRepository.get_by_slug(self.db, slug)

    @staticmethod
    def validate(
        form: FormDefinition,
        data: Mapping[str, Value],
    ) -> Union[ValidationErrors, StepValidationErrors]:
        """Validate values against a form without storing anything.

        Multi-step forms go through the step-aware pass. Single-step forms
        validate only the fields visible for the submitted values.
        """
        if form.is_multi_step:
            return SubmissionValidator.validate_multi_step_submission(form.step_pairs(), data)

        visible = [
            field
            for field in form.all_fields()
            if SubmissionValidator.is_field_visible(field, data)
        ]
        return SubmissionValidator.validate_submission(visible, data)

    def submit(
        self,
        slug: str,
        data: Mapping[str, Value],
        metadata: Optional[dict[str, Any]] = None,
    ) -> SubmissionResult:
        """Validate a submission and store it when valid.

        Args:
            slug: Form slug
            data: Submitted values
            metadata: Request metadata stored with the submission

        Returns:
            SubmissionResult with either errors or the stored submission id

        Raises:
            FormNotFoundError: If the form doesn't exist or was deleted
            FormDefinitionError: If the stored definition is invalid

        Example:
            >>> service = SubmissionService(db)
            >>> result = service.submit("contact", {"email": Value.text("a@b.co")})
            >>> result.is_valid
            True
        """
        form = self.get_form(slug)
        errors = self.validate(form, data)

        if not errors.is_empty():
            flat = errors.flatten() if isinstance(errors, StepValidationErrors) else errors
            logger.info(
                f"Rejected submission for form {slug}: {errors} on {', '.join(flat.errors)}",
                extra={"form_slug": slug},
            )
            return SubmissionResult(errors=errors)

        submission = FormRepository.record_submission(self.db, slug, data, metadata)
        return SubmissionResult(
            errors=errors,
            submission_id=submission.id,
            success_message=form.settings.success_message,
            redirect_url=form.settings.redirect_url,
        )

    def validate_step(
        self,
        slug: str,
        step_key: str,
        data: Mapping[str, Value],
    ) -> ValidationErrors:
        """Validate one step of a form without storing anything.

        Args:
            slug: Form slug
            step_key: Step id or name
            data: Submitted values (may include other steps' fields)

        Returns:
            Flat field -> messages report

        Raises:
            FormNotFoundError: If the form doesn't exist or was deleted
            SubmissionServiceError: If the form has no such step
        """
        form = self.get_form(slug)
        step = form.get_step(step_key)
        if step is None:
            raise SubmissionServiceError(f"Step '{step_key}' not found in form '{slug}'")

        return SubmissionValidator.validate_step(step, step.fields, data)
