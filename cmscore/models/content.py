"""
MongoDB document models for content nodes, their language overlays and versions.

Documents are stored with camelCase keys; the models expose snake_case attributes
and dump with ``by_alias=True`` the same way the API schemas do.
"""
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

from bson import ObjectId
from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from .version_status import VersionStatus

def utc_now() -> datetime:
    """Naive UTC timestamp, the form MongoDB hands back on reads."""
    return datetime.now(timezone.utc).replace(tzinfo=None)

class MongoModel(BaseModel):
    """Base for documents persisted in MongoDB."""
    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        arbitrary_types_allowed=True,
        extra="ignore",
    )

    def to_document(self) -> Dict[str, Any]:
        """Dump for insertion; an unset ``_id`` is left for MongoDB to assign."""
        document = self.model_dump(by_alias=True)
        if document.get("_id") is None:
            document.pop("_id", None)
        return document

class ContentLanguage(MongoModel):
    """Per-language overlay of a content node (embedded in ``contentLanguages``)."""

    language: str
    name: Optional[str] = None
    url_segment: Optional[str] = None
    status: int = int(VersionStatus.CHECKED_OUT)
    version_id: Optional[ObjectId] = None

    # Publishing window
    start_publish: Optional[datetime] = None
    stop_publish: Optional[datetime] = None
    delay_publish_until: Optional[datetime] = None
    published_by: Optional[Any] = None

    properties: Dict[str, Any] = Field(default_factory=dict)
    child_items: List[Dict[str, Any]] = Field(default_factory=list)

    created_by: Optional[Any] = None
    created_at: datetime = Field(default_factory=utc_now)
    updated_by: Optional[Any] = None
    updated_at: datetime = Field(default_factory=utc_now)

class ContentNode(MongoModel):
    """Language-independent content aggregate root."""

    id: Optional[ObjectId] = Field(default=None, alias="_id")

    # Hierarchy
    parent_id: Optional[ObjectId] = None
    parent_path: Optional[str] = None
    ancestors: List[str] = Field(default_factory=list)
    has_children: bool = False
    child_order_rule: int = 1
    peer_order: int = 100

    # Soft delete
    is_deleted: bool = False
    deleted_at: Optional[datetime] = None
    deleted_by: Optional[Any] = None

    # None means the node is a folder
    content_type: Optional[str] = None
    master_language_id: Optional[str] = None
    # Folders keep their (language-neutral) name on the node itself
    name: Optional[str] = None

    created_by: Optional[Any] = None
    created_at: datetime = Field(default_factory=utc_now)
    updated_by: Optional[Any] = None
    updated_at: datetime = Field(default_factory=utc_now)

    content_languages: List[Dict[str, Any]] = Field(default_factory=list)

class ContentVersion(MongoModel):
    """One saved revision of a content node in one language."""

    id: Optional[ObjectId] = Field(default=None, alias="_id")
    content_id: ObjectId
    language: str
    status: int = int(VersionStatus.CHECKED_OUT)

    name: Optional[str] = None
    url_segment: Optional[str] = None
    properties: Dict[str, Any] = Field(default_factory=dict)
    child_items: List[Dict[str, Any]] = Field(default_factory=list)
    child_order_rule: Optional[int] = None
    peer_order: Optional[int] = None

    start_publish: Optional[datetime] = None
    stop_publish: Optional[datetime] = None
    delay_publish_until: Optional[datetime] = None
    published_by: Optional[Any] = None

    master_version_id: Optional[ObjectId] = None
    is_primary: bool = False

    saved_at: datetime = Field(default_factory=utc_now)
    saved_by: Optional[Any] = None
    created_by: Optional[Any] = None
    created_at: datetime = Field(default_factory=utc_now)
    updated_by: Optional[Any] = None
    updated_at: datetime = Field(default_factory=utc_now)
