"""Argument guards shared by the services."""
from typing import Any, Optional

from cmscore.core.exceptions import DocumentNotFoundException, ValidationException


def throw_if_null(field: str, value: Any) -> None:
    if value is None:
        raise ValidationException(field)


def throw_if_null_or_empty(field: str, value: Any) -> None:
    if value is None:
        raise ValidationException(field)
    if isinstance(value, str) and not value.strip():
        raise ValidationException(field)
    if isinstance(value, (list, tuple, dict, set)) and len(value) == 0:
        raise ValidationException(field)


def throw_if_not_found(entity: str, value: Any, query: Optional[Any] = None) -> None:
    if value is None:
        raise DocumentNotFoundException(entity, query)
