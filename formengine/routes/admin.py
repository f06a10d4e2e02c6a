"""Admin endpoints: list, sync and delete forms, and read submissions."""

import json

from fastapi import APIRouter, Depends, Request
from sqlalchemy.orm import Session

from formengine.models.database import get_db
from formengine.models.form import Form
from formengine.models.submission import FormSubmission
from formengine.routes.responses import (
    error_response,
    invalid_data_response,
    not_found_response,
    success_response,
)
from formengine.services.form_loader import (
    FormDefinitionError,
    FormNotFoundError,
    get_form_loader,
    parse_definition,
)
from formengine.services.form_repository import FormRepository
from formengine.services.form_structure import FormStructureChecker, FormStructureError
from formengine.logging_config import get_logger

logger = get_logger(__name__)

router = APIRouter(prefix="/api/admin/forms")


def _isoformat(value):
    return value.isoformat() if value is not None else None


def form_summary(form: Form) -> dict:
    return {
        "id": form.id,
        "slug": form.slug,
        "name": form.name,
        "description": form.description,
        "created_at": _isoformat(form.created_at),
        "updated_at": _isoformat(form.updated_at),
    }


def submission_summary(submission: FormSubmission) -> dict:
    return {
        "id": submission.id,
        "data": submission.data,
        "metadata": submission.client_info,
        "submitted_at": _isoformat(submission.submitted_at),
    }


@router.get("")
async def list_forms(db: Session = Depends(get_db)):
    """List live forms."""
    forms = FormRepository.list_active(db)
    return success_response([form_summary(form) for form in forms])


@router.post("/sync")
async def sync_forms(request: Request, db: Session = Depends(get_db)):
    """Create or replace forms from definitions.

    With a JSON array body, each element is a form definition. With an
    empty body, every definition file in the configured forms directory
    is loaded. Every definition is checked before anything is saved.

    Returns:
        Counts of created and updated forms, and structure warnings by slug
    """
    body = await request.body()

    try:
        if body.strip():
            try:
                payload = json.loads(body)
            except ValueError as e:
                return invalid_data_response(f"Malformed JSON body: {e}")
            if not isinstance(payload, list):
                return invalid_data_response("Sync body must be a JSON array of form definitions")
            definitions = [
                parse_definition(raw, f"#{index}") for index, raw in enumerate(payload)
            ]
        else:
            loader = get_form_loader()
            loader.clear_cache()
            definitions = [loader.load_form(slug) for slug in loader.list_forms()]

        warnings = {
            definition.slug: FormStructureChecker.check(definition)
            for definition in definitions
        }
    except (FormDefinitionError, FormStructureError) as e:
        logger.warning(f"Form sync rejected: {e}")
        return error_response(400, "INVALID_FORM_DEFINITION", str(e))

    created = 0
    updated = 0
    for definition in definitions:
        if FormRepository.exists(db, definition.slug):
            updated += 1
        else:
            created += 1
        FormRepository.save_definition(db, definition)

    logger.info(f"Synced {len(definitions)} form(s): {created} created, {updated} updated")
    return success_response(
        {
            "created": created,
            "updated": updated,
            "warnings": {slug: items for slug, items in warnings.items() if items},
        }
    )


@router.delete("/{slug}")
async def delete_form(slug: str, db: Session = Depends(get_db)):
    """Soft-delete a form; its submissions are kept."""
    try:
        FormRepository.soft_delete(db, slug)
    except FormNotFoundError as e:
        return not_found_response(str(e))

    return success_response({"deleted": slug})


@router.get("/{slug}/submissions")
async def list_submissions(slug: str, db: Session = Depends(get_db)):
    """List a form's submissions, newest first."""
    try:
        submissions = FormRepository.list_submissions(db, slug)
    except FormNotFoundError as e:
        return not_found_response(str(e))

    return success_response([submission_summary(s) for s in submissions])
