"""ObjectId conversion helpers."""
from typing import Any

from bson import ObjectId
from bson.errors import InvalidId

from cmscore.core.exceptions import ValidationException

# Query operators whose operand is a list of ids
_LIST_OPERATORS = ("$in", "$nin", "$all")
# Query operators whose operand is a single id
_SCALAR_OPERATORS = ("$eq", "$ne")


def parse_object_id(value: Any, field: str = "id") -> ObjectId:
    """Strict conversion used at flow entry points; bad input is a validation error."""
    if isinstance(value, ObjectId):
        return value
    if value is None or (isinstance(value, str) and not value.strip()):
        raise ValidationException(field)
    try:
        return ObjectId(str(value))
    except (InvalidId, TypeError):
        raise ValidationException(field, f"'{value}' is not a valid id for '{field}'")


def to_object_id(value: Any) -> Any:
    """Lenient conversion: valid id strings become ObjectId, anything else is kept."""
    if isinstance(value, str) and ObjectId.is_valid(value):
        return ObjectId(value)
    return value


def to_object_id_condition(condition: Any) -> Any:
    """Convert a filter value (scalar or operator document) on an id field."""
    if isinstance(condition, dict):
        converted = dict(condition)
        for operator in _LIST_OPERATORS:
            if operator in converted and converted[operator] is not None:
                converted[operator] = [to_object_id(v) for v in converted[operator]]
        for operator in _SCALAR_OPERATORS:
            if operator in converted:
                converted[operator] = to_object_id(converted[operator])
        return converted
    return to_object_id(condition)
