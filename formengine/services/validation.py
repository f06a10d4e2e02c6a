"""Field validation service.

This module checks one submitted value against its field definition:
the required flag, a type-specific format, and the field's validation
rules. The result is an ordered list of human-readable messages; an empty
list means the value is valid.
"""

import re
from functools import lru_cache
from typing import Optional

from formengine.schemas.form import FieldDefinition, ValidationRules, ValueType
from formengine.schemas.value import Value, format_number
from formengine.logging_config import get_logger

logger = get_logger(__name__)


# Shape checks only; dates are not checked against the calendar
EMAIL_PATTERN = re.compile(r"[^\s@]+@[^\s@]+\.[^\s@]+")
PHONE_PATTERN = re.compile(r"[0-9\s\-()+]+")
DATE_PATTERN = re.compile(r"[0-9]{4}-[0-9]{2}-[0-9]{2}")
DATETIME_PATTERN = re.compile(r"[0-9]{4}-[0-9]{2}-[0-9]{2}[T ][0-9]{2}:[0-9]{2}(:[0-9]{2})?")
TIME_PATTERN = re.compile(r"[0-9]{2}:[0-9]{2}(:[0-9]{2})?")

MIN_PHONE_DIGITS = 7
DEFAULT_PATTERN_MESSAGE = "Invalid format"

NUMERIC_TYPES = (ValueType.NUMBER, ValueType.RATING, ValueType.SCALE, ValueType.NPS)


DEFAULT_PATTERN_CACHE_SIZE = 256


def _build_pattern_cache(maxsize: int):
    @lru_cache(maxsize=maxsize)
    def compile_cached(pattern: str) -> Optional[re.Pattern]:
        try:
            return re.compile(pattern)
        except re.error as e:
            logger.warning(f"Ignoring invalid validation pattern {pattern!r}: {e}")
            return None

    return compile_cached


_compile_cached = _build_pattern_cache(DEFAULT_PATTERN_CACHE_SIZE)


def configure_pattern_cache(maxsize: int) -> None:
    """Replace the compiled-pattern cache with one of the given size."""
    global _compile_cached
    _compile_cached = _build_pattern_cache(maxsize)
    logger.debug(f"Pattern cache size set to {maxsize}")


def compile_pattern(pattern: str) -> Optional[re.Pattern]:
    """Compile a user-supplied pattern through a process-wide cache.

    Returns:
        The compiled pattern, or None if it does not compile
    """
    return _compile_cached(pattern)


class FieldValidator:
    """Service for validating a submitted value against its field definition."""

    @staticmethod
    def validate(field: FieldDefinition, value: Optional[Value]) -> list[str]:
        """Validate one field's value.

        A required field with no value gets exactly one "is required"
        message and nothing else is checked. An optional field with no
        value is always valid. Otherwise the type format is checked first,
        then every rule, and all messages are returned together.

        Args:
            field: Field definition
            value: Submitted value, or None when nothing was submitted

        Returns:
            Error messages in check order (empty when valid)

        Example:
            >>> field = FieldDefinition(name="email", label="Email", type="email", required=True)
            >>> FieldValidator.validate(field, Value.text("test@"))
            ['Email must be a valid email address']
        """
        is_empty = value is None or value.is_empty()

        if field.required and is_empty:
            return [f"{field.label} is required"]

        if is_empty:
            return []

        errors = FieldValidator._validate_by_type(field.value_type, value, field.label)
        errors.extend(FieldValidator._validate_by_rules(field.validation, value, field.label))
        return errors

    @staticmethod
    def _validate_by_type(value_type: ValueType, value: Value, label: str) -> list[str]:
        """Check the value's format for types that have one."""
        errors = []
        text = value.as_str()

        if value_type in NUMERIC_TYPES:
            if value.as_number() is None:
                errors.append(f"{label} must be a number")
            return errors

        if text is None:
            return errors

        if value_type == ValueType.EMAIL:
            if not EMAIL_PATTERN.fullmatch(text):
                errors.append(f"{label} must be a valid email address")
        elif value_type == ValueType.URL:
            if not (text.startswith("http://") or text.startswith("https://")):
                errors.append(f"{label} must be a valid URL")
        elif value_type == ValueType.TEL:
            if not is_valid_phone(text):
                errors.append(f"{label} must be a valid phone number")
        elif value_type == ValueType.DATE:
            if not DATE_PATTERN.fullmatch(text):
                errors.append(f"{label} must be a valid date (YYYY-MM-DD)")
        elif value_type == ValueType.DATETIME:
            # Trailing seconds fractions or offsets are tolerated
            if not DATETIME_PATTERN.match(text):
                errors.append(f"{label} must be a valid date and time")
        elif value_type == ValueType.TIME:
            if not TIME_PATTERN.fullmatch(text):
                errors.append(f"{label} must be a valid time (HH:MM)")

        return errors

    @staticmethod
    def _validate_by_rules(rules: ValidationRules, value: Value, label: str) -> list[str]:
        """Check every configured rule that applies to the value's shape."""
        errors = []

        text = value.as_str()
        if text is not None:
            if rules.min_length is not None and len(text) < rules.min_length:
                errors.append(f"{label} must be at least {rules.min_length} characters")
            if rules.max_length is not None and len(text) > rules.max_length:
                errors.append(f"{label} must be at most {rules.max_length} characters")

            if rules.pattern is not None:
                pattern = compile_pattern(rules.pattern)
                if pattern is not None and not pattern.search(text):
                    message = rules.pattern_message or DEFAULT_PATTERN_MESSAGE
                    errors.append(f"{label}: {message}")

        number = value.as_number()
        if number is not None:
            if rules.min is not None and number < rules.min:
                errors.append(f"{label} must be at least {format_number(rules.min)}")
            if rules.max is not None and number > rules.max:
                errors.append(f"{label} must be at most {format_number(rules.max)}")

        selections = value.as_array()
        if selections is not None:
            if rules.min_selections is not None and len(selections) < rules.min_selections:
                errors.append(f"{label} requires at least {rules.min_selections} selections")
            if rules.max_selections is not None and len(selections) > rules.max_selections:
                errors.append(f"{label} allows at most {rules.max_selections} selections")

        return errors


def is_valid_phone(text: str) -> bool:
    """Digits, spaces, dashes, parentheses and plus signs, with at least seven digits."""
    if not PHONE_PATTERN.fullmatch(text):
        return False
    return sum(1 for ch in text if ch in "0123456789") >= MIN_PHONE_DIGITS
