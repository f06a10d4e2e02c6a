"""Extract submitted values from request bodies.

JSON bodies are objects of field name -> scalar or list of scalars.
URL-encoded and multipart bodies are (name, text) pairs where repeated
`name[]` or `name[0]` keys build up a list.
"""

from typing import Any, Iterable

from formengine.schemas.value import Value
from formengine.logging_config import get_logger

logger = get_logger(__name__)


class SubmissionDataError(Exception):
    """Raised when a request body cannot be read as submitted values."""
    pass


def from_json(payload: Any) -> dict[str, Value]:
    """Convert a decoded JSON body into submitted values.

    Args:
        payload: Decoded JSON document

    Returns:
        Field name -> Value

    Raises:
        SubmissionDataError: If the payload is not an object, or a value is
            a nested object

    Example:
        >>> from_json({"age": 18, "tags": ["a"], "note": ""})["note"].is_null()
        True
    """
    if not isinstance(payload, dict):
        raise SubmissionDataError("Submission body must be a JSON object")

    data = {}
    for key, raw in payload.items():
        try:
            data[str(key)] = Value.from_raw(raw)
        except TypeError as e:
            raise SubmissionDataError(f"Invalid value for '{key}': {e}")

    logger.debug(f"Read {len(data)} value(s) from JSON body")
    return data


def from_form_items(items: Iterable[tuple[str, str]]) -> dict[str, Value]:
    """Convert URL-encoded or multipart text parts into submitted values.

    A key ending in `[]` or containing `[` is an array key: its base name
    (the part before `[`) accumulates every value in order. Any other key
    keeps its last value, with an empty string read as Null.

    Args:
        items: (name, value) pairs in body order

    Returns:
        Field name -> Value
    """
    scalars: dict[str, str] = {}
    arrays: dict[str, list[str]] = {}

    for key, raw in items:
        if not key:
            continue
        if "[" in key:
            base = key.split("[", 1)[0]
            arrays.setdefault(base, []).append(raw)
        else:
            scalars[key] = raw

    data = {key: Value.text(raw) for key, raw in scalars.items()}
    for key, values in arrays.items():
        data[key] = Value.array(values)

    logger.debug(f"Read {len(data)} value(s) from form body")
    return data
