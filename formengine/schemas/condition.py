"""Pydantic schemas for step/field visibility conditions.

Conditions are stored as JSON next to the step or field they belong to:

    {"field": "country", "op": "eq", "value": "US"}

and combined with AND/OR:

    {"and": [
        {"field": "country", "op": "eq", "value": "US"},
        {"field": "age", "op": "gte", "value": 18}
    ]}

Malformed JSON is rejected here, when definitions are loaded. Evaluation
lives in formengine.services.conditions.
"""

import json
from enum import Enum
from typing import Annotated, Any, Optional, Union

from pydantic import (
    BaseModel,
    ConfigDict,
    Discriminator,
    Field,
    Tag,
    TypeAdapter,
    field_validator,
    model_validator,
)


class ConditionOp(str, Enum):
    """Comparison operators understood by the evaluator."""
    EQ = "eq"
    NEQ = "neq"
    GT = "gt"
    GTE = "gte"
    LT = "lt"
    LTE = "lte"
    CONTAINS = "contains"
    NOT_CONTAINS = "not_contains"
    STARTS_WITH = "starts_with"
    ENDS_WITH = "ends_with"
    IN = "in"
    EMPTY = "empty"
    NOT_EMPTY = "not_empty"

    @property
    def needs_value(self) -> bool:
        return self not in (ConditionOp.EMPTY, ConditionOp.NOT_EMPTY)


OP_ALIASES = {
    "ne": ConditionOp.NEQ.value,
    "is_empty": ConditionOp.EMPTY.value,
    "is_not_empty": ConditionOp.NOT_EMPTY.value,
}


class Comparison(BaseModel):
    """Compare one submitted field against a literal.

    Attributes:
        field: Name of the field to read
        op: Comparison operator
        value: Literal to compare against (omitted for empty/not_empty)
    """
    model_config = ConfigDict(extra="forbid", frozen=True)

    field: str = Field(..., min_length=1, description="Field name to compare")
    op: ConditionOp = Field(..., description="Comparison operator")
    value: Optional[Any] = Field(None, description="Literal compared against")

    @field_validator("op", mode="before")
    @classmethod
    def normalize_op(cls, v):
        """Accept the legacy operator spellings."""
        if isinstance(v, str):
            lowered = v.lower()
            return OP_ALIASES.get(lowered, lowered)
        return v

    @model_validator(mode="after")
    def value_present_when_needed(self):
        if self.op.needs_value and self.value is None:
            raise ValueError(f"Operator '{self.op.value}' requires a value")
        return self

    @classmethod
    def eq(cls, field: str, value: Any) -> "Comparison":
        return cls(field=field, op=ConditionOp.EQ, value=value)

    @classmethod
    def neq(cls, field: str, value: Any) -> "Comparison":
        return cls(field=field, op=ConditionOp.NEQ, value=value)

    @classmethod
    def gt(cls, field: str, value: Any) -> "Comparison":
        return cls(field=field, op=ConditionOp.GT, value=value)

    @classmethod
    def gte(cls, field: str, value: Any) -> "Comparison":
        return cls(field=field, op=ConditionOp.GTE, value=value)

    @classmethod
    def lt(cls, field: str, value: Any) -> "Comparison":
        return cls(field=field, op=ConditionOp.LT, value=value)

    @classmethod
    def lte(cls, field: str, value: Any) -> "Comparison":
        return cls(field=field, op=ConditionOp.LTE, value=value)

    @classmethod
    def contains(cls, field: str, value: Any) -> "Comparison":
        return cls(field=field, op=ConditionOp.CONTAINS, value=value)

    @classmethod
    def one_of(cls, field: str, values: list) -> "Comparison":
        return cls(field=field, op=ConditionOp.IN, value=list(values))

    @classmethod
    def empty(cls, field: str) -> "Comparison":
        return cls(field=field, op=ConditionOp.EMPTY)

    @classmethod
    def not_empty(cls, field: str) -> "Comparison":
        return cls(field=field, op=ConditionOp.NOT_EMPTY)


class AndCondition(BaseModel):
    """True when every sub-condition is true (true for an empty list)."""
    model_config = ConfigDict(extra="forbid", frozen=True, populate_by_name=True)

    conditions: list["Condition"] = Field(..., alias="and")


class OrCondition(BaseModel):
    """True when any sub-condition is true (false for an empty list)."""
    model_config = ConfigDict(extra="forbid", frozen=True, populate_by_name=True)

    conditions: list["Condition"] = Field(..., alias="or")


def _condition_tag(v: Any) -> Optional[str]:
    if isinstance(v, dict):
        if "and" in v:
            return "and"
        if "or" in v:
            return "or"
        return "comparison"
    if isinstance(v, AndCondition):
        return "and"
    if isinstance(v, OrCondition):
        return "or"
    if isinstance(v, Comparison):
        return "comparison"
    return None


Condition = Annotated[
    Union[
        Annotated[Comparison, Tag("comparison")],
        Annotated[AndCondition, Tag("and")],
        Annotated[OrCondition, Tag("or")],
    ],
    Discriminator(_condition_tag),
]

AndCondition.model_rebuild()
OrCondition.model_rebuild()

_condition_adapter = TypeAdapter(Condition)


def all_of(*conditions) -> AndCondition:
    return AndCondition(conditions=list(conditions))


def any_of(*conditions) -> OrCondition:
    return OrCondition(conditions=list(conditions))


def parse_condition(raw: Any) -> Optional[Condition]:
    """Parse a stored condition into a typed tree.

    Args:
        raw: Wire-format dict, its JSON text, an already-parsed condition,
            or None / empty string

    Returns:
        The parsed condition, or None when there is no condition

    Raises:
        pydantic.ValidationError: If the structure or an operator is invalid
        ValueError: If raw is a string that is not valid JSON

    Example:
        >>> parse_condition({"field": "age", "op": "gte", "value": 18})
        Comparison(field='age', op=<ConditionOp.GTE: 'gte'>, value=18)
    """
    if raw is None or raw == "":
        return None
    if isinstance(raw, str):
        raw = json.loads(raw)
        if raw is None:
            return None
    return _condition_adapter.validate_python(raw)


def to_wire(condition: Condition) -> dict:
    """Serialize a condition back to its stored JSON shape."""
    return condition.model_dump(mode="json", by_alias=True, exclude_none=True)


def referenced_fields(condition: Optional[Condition]) -> set[str]:
    """Collect the names of every field a condition tree reads."""
    if condition is None:
        return set()
    if isinstance(condition, Comparison):
        return {condition.field}
    names: set[str] = set()
    for child in condition.conditions:
        names |= referenced_fields(child)
    return names
