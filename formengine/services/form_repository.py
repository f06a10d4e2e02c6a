"""Form repository for loading and storing form definitions.

This module converts between the ORM rows (forms, steps, fields, options,
submissions) and the FormDefinition schema consumed by the validators.
"""

from datetime import datetime, timezone
from typing import Any, Mapping, Optional

from pydantic import ValidationError
from sqlalchemy import select
from sqlalchemy.orm import Session

from formengine.models.form import Form, FormField, FormFieldOption, FormStep
from formengine.models.submission import FormSubmission
from formengine.schemas.condition import to_wire
from formengine.schemas.form import FieldDefinition, FormDefinition
from formengine.schemas.value import Value
from formengine.services.form_loader import FormDefinitionError, FormNotFoundError
from formengine.logging_config import get_logger

logger = get_logger(__name__)


class FormRepository:
    """Repository for form definitions and submissions.

    All methods take the caller's session; writes are committed here so each
    call is one transaction.
    """

    @staticmethod
    def _get_live_form(db: Session, slug: str) -> Form:
        form = db.scalars(select(Form).where(Form.slug == slug)).first()
        if form is None or form.is_deleted:
            raise FormNotFoundError(f"Form '{slug}' not found")
        return form

    @staticmethod
    def exists(db: Session, slug: str) -> bool:
        """Whether a form with this slug is stored, live or deleted."""
        return db.scalars(select(Form.id).where(Form.slug == slug)).first() is not None

    @staticmethod
    def get_by_slug(db: Session, slug: str) -> FormDefinition:
        """Load a live form definition with ordered steps, fields and options.

        Args:
            db: Database session
            slug: Form slug

        Returns:
            FormDefinition with storage ids on the form, steps and fields

        Raises:
            FormNotFoundError: If the form doesn't exist or was deleted
            FormDefinitionError: If stored JSON doesn't describe a valid form
        """
        form = FormRepository._get_live_form(db, slug)

        raw = {
            "id": form.id,
            "name": form.name,
            "slug": form.slug,
            "description": form.description,
            "settings": form.settings or None,
            "steps": [
                {
                    "id": step.id,
                    "name": step.name,
                    "description": step.description,
                    "order": step.sort_order,
                    "condition": step.condition,
                    "fields": [_field_to_raw(field) for field in step.fields],
                }
                for step in form.steps
            ],
        }

        try:
            definition = FormDefinition.model_validate(raw)
        except ValidationError as e:
            logger.error(f"Stored definition for form {slug} is invalid: {e}")
            raise FormDefinitionError(f"Stored definition for form '{slug}' is invalid: {e}")

        logger.debug(f"Loaded form {slug} from database", extra={"form_slug": slug})
        return definition

    @staticmethod
    def save_definition(db: Session, definition: FormDefinition) -> Form:
        """Create or replace a form, by slug, with all its steps and fields.

        Replacing a soft-deleted form brings it back. Existing submissions
        are kept. Steps, fields and options are stored in list order, so
        their `order` reads back as their position.

        Args:
            db: Database session
            definition: Validated form definition

        Returns:
            The saved Form row
        """
        form = db.scalars(select(Form).where(Form.slug == definition.slug)).first()
        created = form is None

        try:
            if created:
                form = Form(slug=definition.slug)
                db.add(form)
            else:
                form.steps.clear()
                db.flush()
                form.deleted_at = None
                form.updated_at = datetime.now(timezone.utc)

            form.name = definition.name
            form.description = definition.description
            form.settings = definition.settings.model_dump(exclude_none=True)

            for step_index, step in enumerate(definition.steps):
                step_row = FormStep(
                    name=step.name,
                    description=step.description,
                    sort_order=step_index,
                    condition=to_wire(step.condition) if step.condition is not None else None,
                )
                for field_index, field in enumerate(step.fields):
                    step_row.fields.append(_field_to_row(field, field_index))
                form.steps.append(step_row)

            db.commit()
        except Exception:
            db.rollback()
            raise

        db.refresh(form)
        action = "Created" if created else "Replaced"
        logger.info(
            f"{action} form definition {definition.slug} ({len(definition.steps)} step(s))",
            extra={"form_slug": definition.slug},
        )
        return form

    @staticmethod
    def list_active(db: Session) -> list[Form]:
        """List live forms ordered by slug."""
        return list(
            db.scalars(
                select(Form).where(Form.deleted_at.is_(None)).order_by(Form.slug)
            )
        )

    @staticmethod
    def soft_delete(db: Session, slug: str) -> None:
        """Soft-delete a live form.

        Raises:
            FormNotFoundError: If the form doesn't exist or was already deleted
        """
        form = FormRepository._get_live_form(db, slug)
        form.mark_deleted()
        db.commit()
        logger.info(f"Soft-deleted form {slug}", extra={"form_slug": slug})

    @staticmethod
    def record_submission(
        db: Session,
        form_slug: str,
        values: Mapping[str, Value],
        metadata: Optional[dict[str, Any]] = None,
    ) -> FormSubmission:
        """Store an accepted submission.

        Args:
            db: Database session
            form_slug: Slug of a live form
            values: Submitted values
            metadata: Request metadata to keep alongside the data

        Returns:
            The stored FormSubmission

        Raises:
            FormNotFoundError: If the form doesn't exist or was deleted
        """
        form = FormRepository._get_live_form(db, form_slug)

        submission = FormSubmission(
            form_id=form.id,
            data={key: value.to_json() for key, value in values.items()},
            client_info=metadata or None,
        )
        db.add(submission)
        db.commit()
        db.refresh(submission)

        logger.info(
            f"Recorded submission for form {form_slug}",
            extra={"form_slug": form_slug, "submission_id": submission.id},
        )
        return submission

    @staticmethod
    def list_submissions(db: Session, slug: str) -> list[FormSubmission]:
        """List a live form's submissions, newest first.

        Raises:
            FormNotFoundError: If the form doesn't exist or was deleted
        """
        form = FormRepository._get_live_form(db, slug)
        return list(
            db.scalars(
                select(FormSubmission)
                .where(FormSubmission.form_id == form.id)
                .order_by(FormSubmission.submitted_at.desc(), FormSubmission.id)
            )
        )


def _field_to_raw(field: FormField) -> dict:
    return {
        "id": field.id,
        "name": field.name,
        "label": field.label,
        "type": field.field_type,
        "required": field.required,
        "placeholder": field.placeholder,
        "help_text": field.help_text,
        "default_value": field.default_value,
        "order": field.sort_order,
        "validation": field.validation_rules,
        "condition": field.condition,
        "ui_options": field.ui_options,
        "options": [
            {"label": option.label, "value": option.value, "order": option.sort_order}
            for option in field.options
        ],
    }


def _field_to_row(field: FieldDefinition, index: int) -> FormField:
    rules = field.validation
    row = FormField(
        name=field.name,
        label=field.label,
        field_type=field.value_type.value,
        required=field.required,
        placeholder=field.placeholder,
        help_text=field.help_text,
        default_value=field.default_value,
        sort_order=index,
        validation_rules=None if rules.is_empty() else rules.to_dict(),
        condition=to_wire(field.condition) if field.condition is not None else None,
        ui_options=None if field.ui_options.is_empty() else field.ui_options.to_dict(),
    )
    for option_index, option in enumerate(field.options):
        row.options.append(
            FormFieldOption(
                label=option.label,
                value=option.value,
                sort_order=option_index,
            )
        )
    return row
