"""Public form endpoints: render, describe, submit, and validate a step.

Submissions may be sent as JSON, URL-encoded or multipart bodies. Multipart
file parts are recorded by file name only.
"""

from typing import Any

from fastapi import APIRouter, Depends, Request
from fastapi.responses import HTMLResponse
from sqlalchemy.orm import Session

from formengine.models.database import get_db
from formengine.routes.responses import (
    error_response,
    invalid_data_response,
    not_found_response,
    success_response,
    validation_failed_response,
)
from formengine.schemas.value import Value
from formengine.services.form_loader import FormDefinitionError, FormNotFoundError
from formengine.services.form_renderer import get_form_renderer
from formengine.services.submission_data import SubmissionDataError, from_form_items, from_json
from formengine.services.submission_service import SubmissionService, SubmissionServiceError
from formengine.logging_config import get_logger

logger = get_logger(__name__)

router = APIRouter(prefix="/api/forms")


async def read_submission(request: Request) -> dict[str, Value]:
    """Read submitted values from a JSON, URL-encoded or multipart body.

    Raises:
        SubmissionDataError: If the body cannot be decoded
    """
    content_type = request.headers.get("content-type", "")

    if content_type.startswith("application/json"):
        try:
            payload = await request.json()
        except ValueError as e:
            raise SubmissionDataError(f"Malformed JSON body: {e}")
        return from_json(payload)

    form = await request.form()
    items = []
    for key, value in form.multi_items():
        if isinstance(value, str):
            items.append((key, value))
        else:
            items.append((key, value.filename or ""))
    return from_form_items(items)


def request_metadata(request: Request) -> dict[str, Any]:
    metadata = {}
    if request.client is not None:
        metadata["remote_addr"] = request.client.host
    user_agent = request.headers.get("user-agent")
    if user_agent:
        metadata["user_agent"] = user_agent
    return metadata


def definition_error_response(slug: str, e: FormDefinitionError):
    logger.error(f"Form {slug} has an invalid stored definition: {e}", extra={"form_slug": slug})
    return error_response(500, "INVALID_FORM_DEFINITION", f"Form '{slug}' is misconfigured")


@router.get("/{slug}/json")
async def get_form_json(slug: str, db: Session = Depends(get_db)):
    """Return the form definition as wire JSON."""
    service = SubmissionService(db)
    try:
        form = service.get_form(slug)
    except FormNotFoundError as e:
        return not_found_response(str(e))
    except FormDefinitionError as e:
        return definition_error_response(slug, e)

    return success_response(get_form_renderer().render_json(form))


@router.get("/{slug}", response_class=HTMLResponse)
async def get_form_html(slug: str, request: Request, db: Session = Depends(get_db)):
    """Render the form as HTML.

    Query-string values pre-fill inputs and decide which conditional steps
    and fields start hidden.
    """
    service = SubmissionService(db)
    try:
        form = service.get_form(slug)
    except FormNotFoundError as e:
        return not_found_response(str(e))
    except FormDefinitionError as e:
        return definition_error_response(slug, e)

    data = from_form_items(request.query_params.multi_items())
    return HTMLResponse(get_form_renderer().render_html(form, data))


@router.post("/{slug}")
async def submit_form(slug: str, request: Request, db: Session = Depends(get_db)):
    """Validate and store a submission.

    Returns:
        201 with the submission id on success, 422 with the validation
        report otherwise
    """
    try:
        data = await read_submission(request)
    except SubmissionDataError as e:
        logger.info(f"Unreadable submission body for form {slug}: {e}", extra={"form_slug": slug})
        return invalid_data_response(str(e))

    service = SubmissionService(db)
    try:
        result = service.submit(slug, data, request_metadata(request))
    except FormNotFoundError as e:
        return not_found_response(str(e))
    except FormDefinitionError as e:
        return definition_error_response(slug, e)

    if not result.is_valid:
        return validation_failed_response(result.errors)

    return success_response(
        {
            "id": result.submission_id,
            "message": result.success_message,
            "redirect_url": result.redirect_url,
        },
        status_code=201,
    )


@router.post("/{slug}/steps/{step}/validate")
async def validate_step(slug: str, step: str, request: Request, db: Session = Depends(get_db)):
    """Validate one step without storing anything."""
    try:
        data = await read_submission(request)
    except SubmissionDataError as e:
        return invalid_data_response(str(e))

    service = SubmissionService(db)
    try:
        errors = service.validate_step(slug, step, data)
    except FormNotFoundError as e:
        return not_found_response(str(e))
    except FormDefinitionError as e:
        return definition_error_response(slug, e)
    except SubmissionServiceError as e:
        return error_response(404, "STEP_NOT_FOUND", str(e))

    if not errors.is_empty():
        return validation_failed_response(errors)

    return success_response({"valid": True})
