"""Response envelopes shared by the API routes.

Every JSON response is either

    {"success": true, "data": ...}

or

    {"success": false, "error": {"code": ..., "message": ..., "details": ...}}
"""

from typing import Any, Optional

from fastapi.responses import JSONResponse

from formengine.schemas.errors import StepValidationErrors


def success_response(data: Any, status_code: int = 200) -> JSONResponse:
    return JSONResponse(status_code=status_code, content={"success": True, "data": data})


def error_response(
    status_code: int,
    code: str,
    message: str,
    details: Optional[Any] = None,
) -> JSONResponse:
    """Build an error envelope; `details` is omitted when None."""
    error = {"code": code, "message": message}
    if details is not None:
        error["details"] = details
    return JSONResponse(status_code=status_code, content={"success": False, "error": error})


def not_found_response(message: str) -> JSONResponse:
    return error_response(404, "FORM_NOT_FOUND", message)


def invalid_data_response(message: str) -> JSONResponse:
    return error_response(400, "INVALID_DATA", message)


def validation_failed_response(errors) -> JSONResponse:
    """422 envelope for a ValidationErrors or StepValidationErrors report."""
    details = errors.to_dict()
    if isinstance(errors, StepValidationErrors):
        details = {"steps": details}
    message = f"{errors.error_count()} validation error(s)"
    return error_response(422, "VALIDATION_FAILED", message, details)
