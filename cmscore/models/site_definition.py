"""
MongoDB models for site definitions and language branches.
"""
from datetime import datetime
from typing import Any, List, Optional

from bson import ObjectId
from pydantic import Field

from .content import MongoModel, utc_now


class HostDefinition(MongoModel):
    """A host name a site answers on, with its default language."""

    name: str
    language: str
    is_primary: bool = False


class SiteDefinition(MongoModel):
    """A site rooted at a start page."""

    id: Optional[ObjectId] = Field(default=None, alias="_id")
    name: str
    # ObjectId of the start page in the page collection
    start_page: Any
    hosts: List[HostDefinition] = Field(default_factory=list)

    created_by: Optional[Any] = None
    created_at: datetime = Field(default_factory=utc_now)
    updated_by: Optional[Any] = None
    updated_at: datetime = Field(default_factory=utc_now)
