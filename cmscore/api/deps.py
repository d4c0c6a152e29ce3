"""Shared dependencies and helpers for the API routers."""
from typing import Any

from bson import ObjectId
from fastapi import HTTPException, Request
from fastapi.encoders import jsonable_encoder

from cmscore.core.config import settings


def get_current_user_id(request: Request) -> str:
    """
    Id of the acting user.

    Authentication happens in front of the API; the proxy forwards the user id
    in ``settings.user_id_header``.
    """
    user_id = request.headers.get(settings.user_id_header) or settings.default_user_id
    if not user_id:
        raise HTTPException(status_code=401, detail="Not authenticated")
    return user_id


def to_response(value: Any) -> Any:
    """JSON-ready copy of a service result with ObjectIds as strings."""
    return jsonable_encoder(value, custom_encoder={ObjectId: str})
