"""Submitted field values.

A submitted value is one of a small closed set of shapes: text, number,
boolean, a list of strings (multi-select / checkbox groups), or null.
Empty strings and empty lists are folded into null when a value is built,
so "absent" has exactly one representation.
"""

import math
import sys
from dataclasses import dataclass
from enum import Enum
from typing import Any, Optional


TRUE_STRINGS = {"true", "1", "yes", "on"}
FALSE_STRINGS = {"false", "0", "no", "off"}

FLOAT_EPSILON = sys.float_info.epsilon


class ValueKind(str, Enum):
    """Shapes a submitted value can take."""
    TEXT = "text"
    NUMBER = "number"
    BOOL = "bool"
    ARRAY = "array"
    NULL = "null"


def parse_number(raw: Any) -> Optional[float]:
    """Parse a native number or a numeric string into a float.

    Booleans are not numbers. Strings must be plain ASCII float syntax: no
    surrounding whitespace and no digit-group underscores. Integers beyond
    float range read as signed infinity.

    Returns:
        The parsed float, or None when the input is not numeric
    """
    if isinstance(raw, bool):
        return None
    if isinstance(raw, (int, float)):
        try:
            return float(raw)
        except OverflowError:
            return math.inf if raw > 0 else -math.inf
    if isinstance(raw, str):
        if not raw or not raw.isascii() or raw != raw.strip() or "_" in raw:
            return None
        try:
            return float(raw)
        except ValueError:
            return None
    return None


def format_number(n: float) -> str:
    """Render a float the way users expect to read it (18.0 -> "18")."""
    if math.isfinite(n) and n == int(n):
        return str(int(n))
    return repr(n)


@dataclass(frozen=True)
class Value:
    """One submitted field value.

    Build instances through the constructors (`text`, `number`, `boolean`,
    `array`, `null`, `from_raw`) rather than directly so that the
    empty-is-null rule holds.

    Attributes:
        kind: Which shape the value has
        data: The payload (str, float, bool, tuple of str, or None)
    """
    kind: ValueKind
    data: Any = None

    @classmethod
    def text(cls, s: str) -> "Value":
        if s == "":
            return cls.null()
        return cls(ValueKind.TEXT, s)

    @classmethod
    def number(cls, n: float) -> "Value":
        return cls(ValueKind.NUMBER, float(n))

    @classmethod
    def boolean(cls, b: bool) -> "Value":
        return cls(ValueKind.BOOL, bool(b))

    @classmethod
    def array(cls, items) -> "Value":
        items = tuple(items)
        if not items:
            return cls.null()
        return cls(ValueKind.ARRAY, tuple(str(item) for item in items))

    @classmethod
    def null(cls) -> "Value":
        return cls(ValueKind.NULL, None)

    @classmethod
    def from_raw(cls, raw: Any) -> "Value":
        """Build a Value from a decoded JSON or form value.

        Args:
            raw: None, bool, int, float, str, or a list/tuple of scalars

        Returns:
            The corresponding Value

        Raises:
            TypeError: If raw is not one of the supported shapes, or is an
                integer too large for a float

        Example:
            >>> Value.from_raw("")
            Value(kind=<ValueKind.NULL: 'null'>, data=None)
            >>> Value.from_raw(["a", 2]).as_array()
            ('a', '2')
        """
        if isinstance(raw, Value):
            return raw
        if raw is None:
            return cls.null()
        if isinstance(raw, bool):
            return cls.boolean(raw)
        if isinstance(raw, (int, float)):
            return cls.number(_checked_float(raw))
        if isinstance(raw, str):
            return cls.text(raw)
        if isinstance(raw, (list, tuple)):
            return cls.array(_scalar_to_string(item) for item in raw)
        raise TypeError(f"Unsupported submitted value type: {type(raw).__name__}")

    def as_str(self) -> Optional[str]:
        if self.kind == ValueKind.TEXT:
            return self.data
        return None

    def as_number(self) -> Optional[float]:
        if self.kind == ValueKind.NUMBER:
            return self.data
        if self.kind == ValueKind.TEXT:
            return parse_number(self.data)
        return None

    def as_bool(self) -> Optional[bool]:
        """Interpret the value as a boolean.

        Text accepts true/1/yes/on and false/0/no/off, case-insensitively.
        Numbers are true when non-zero.
        """
        if self.kind == ValueKind.BOOL:
            return self.data
        if self.kind == ValueKind.TEXT:
            lowered = self.data.lower()
            if lowered in TRUE_STRINGS:
                return True
            if lowered in FALSE_STRINGS:
                return False
            return None
        if self.kind == ValueKind.NUMBER:
            return self.data != 0.0
        return None

    def as_array(self) -> Optional[tuple]:
        if self.kind == ValueKind.ARRAY:
            return self.data
        return None

    def is_empty(self) -> bool:
        if self.kind == ValueKind.NULL:
            return True
        if self.kind in (ValueKind.TEXT, ValueKind.ARRAY):
            return len(self.data) == 0
        return False

    def is_null(self) -> bool:
        return self.kind == ValueKind.NULL

    def to_json(self) -> Any:
        """Plain JSON-compatible form, as seen by condition evaluation."""
        if self.kind == ValueKind.ARRAY:
            return list(self.data)
        return self.data

    def to_string_value(self) -> str:
        if self.kind == ValueKind.TEXT:
            return self.data
        if self.kind == ValueKind.NUMBER:
            return format_number(self.data)
        if self.kind == ValueKind.BOOL:
            return "true" if self.data else "false"
        if self.kind == ValueKind.ARRAY:
            return ", ".join(self.data)
        return ""


def _scalar_to_string(item: Any) -> str:
    if isinstance(item, bool):
        return "true" if item else "false"
    if isinstance(item, (int, float)):
        return format_number(_checked_float(item))
    if item is None:
        return ""
    if isinstance(item, str):
        return item
    raise TypeError(f"Unsupported array item type: {type(item).__name__}")


def _checked_float(n: Any) -> float:
    try:
        return float(n)
    except OverflowError:
        raise TypeError("Number is too large") from None
