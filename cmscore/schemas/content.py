"""
Pydantic schemas for content API requests.

JSON bodies use camelCase like the stored documents; the schemas are dumped
with ``by_alias=True`` before they reach the services.
"""
from datetime import datetime
from typing import Any, Dict, List, Optional, Union

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


class CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    def to_data(self) -> Dict[str, Any]:
        """camelCase dict without unset/None values."""
        return self.model_dump(by_alias=True, exclude_none=True)


class ChildItem(CamelModel):
    """Reference to another content item (``refPath`` is its type tag)."""

    id: Optional[str] = Field(None, alias="_id")
    ref_path: str
    content: str  # ObjectId as string


class ContentFields(CamelModel):
    """Publishable fields shared by create and update."""

    name: Optional[str] = Field(None, min_length=1, max_length=255)
    url_segment: Optional[str] = None
    properties: Optional[Dict[str, Any]] = None
    child_items: Optional[List[ChildItem]] = None
    child_order_rule: Optional[int] = None
    peer_order: Optional[int] = None
    stop_publish: Optional[datetime] = None
    delay_publish_until: Optional[datetime] = None

    # Page only
    visible_in_menu: Optional[bool] = None
    simple_address: Optional[str] = None
    link_url: Optional[str] = None


class ContentCreate(ContentFields):
    """Schema for creating a content in one language."""

    name: str = Field(..., min_length=1, max_length=255)
    content_type: str = Field(..., min_length=1)
    language: str = Field(..., min_length=1)
    parent_id: Optional[str] = None  # ObjectId as string, empty for root

    model_config = ConfigDict(
        json_schema_extra={
            "example": {
                "name": "About us",
                "contentType": "StandardPage",
                "language": "en",
                "parentId": "65f1c0a2e4b0a1b2c3d4e5f6",
                "urlSegment": "about-us",
                "properties": {"heading": "About us"},
                "visibleInMenu": True,
            }
        }
    )


class ContentUpdate(ContentFields):
    """Schema for saving a version; only the given fields change."""


class FolderCreate(CamelModel):
    """Schema for creating a folder."""

    name: str = Field(..., min_length=1, max_length=255)
    parent_id: Optional[str] = None

    model_config = ConfigDict(json_schema_extra={"example": {"name": "Campaigns", "parentId": None}})


class FolderUpdate(CamelModel):
    """Schema for renaming a folder."""

    name: str = Field(..., min_length=1, max_length=255)


class ContentMoveRequest(CamelModel):
    """Source and destination of a copy or cut; no target means the root."""

    source_content_id: str
    target_parent_id: Optional[str] = None


class ContentQueryRequest(CamelModel):
    """Flat content query; paginated when both ``page`` and ``limit`` are set."""

    filter: Dict[str, Any] = Field(default_factory=dict)
    project: Optional[Union[str, Dict[str, Any]]] = None
    sort: Optional[Union[str, Dict[str, Any]]] = None
    page: Optional[int] = Field(None, ge=1)
    limit: Optional[int] = Field(None, ge=1, le=1000)

    model_config = ConfigDict(
        json_schema_extra={
            "example": {
                "filter": {"parentId": "65f1c0a2e4b0a1b2c3d4e5f6", "language": "en", "status": 4},
                "project": "name,urlSegment,status",
                "sort": "-createdAt",
                "page": 1,
                "limit": 20,
            }
        }
    )


class ContentItemsRequest(CamelModel):
    """Schema for loading several contents in one language."""

    ids: List[str] = Field(..., min_length=1)
    language: str = Field(..., min_length=1)
    statuses: Optional[List[int]] = None
    project: Optional[Dict[str, Any]] = None
    deep_populate: bool = False
