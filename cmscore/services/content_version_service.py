"""
Version history of content in one language.

Every save of published content creates a new version; versions are never
deleted, only demoted. Exactly one version per (content, language) is primary.
"""
import asyncio
import logging
import weakref
from typing import Any, Dict, Iterable, List, Optional, Tuple

from pymongo import ReturnDocument

from cmscore.core.ids import parse_object_id, to_object_id
from cmscore.core.mongodb import mongodb
from cmscore.core.validation import throw_if_not_found, throw_if_null_or_empty
from cmscore.models.content import ContentVersion
from cmscore.models.version_status import VersionStatus

logger = logging.getLogger(__name__)

# Fields a version carries over from the data it is created from
VERSION_DATA_KEYS = (
    "name",
    "urlSegment",
    "properties",
    "childItems",
    "childOrderRule",
    "peerOrder",
    "stopPublish",
    "delayPublishUntil",
)

_DRAFT_EXCLUDED_STATUSES = [int(VersionStatus.PUBLISHED), int(VersionStatus.PREVIOUSLY_PUBLISHED)]


def normalize_child_items(child_items: Optional[Iterable[Dict[str, Any]]]) -> List[Dict[str, Any]]:
    """Store child item references as ids, even when given a populated content."""
    normalized = []
    for item in child_items or []:
        content = item.get("content")
        if isinstance(content, dict):
            content = content.get("_id")
        reference = {"refPath": item.get("refPath"), "content": to_object_id(content)}
        if item.get("_id") is not None:
            reference["_id"] = item["_id"]
        normalized.append(reference)
    return normalized


def pick_data(data: Dict[str, Any], keys: Iterable[str]) -> Dict[str, Any]:
    """Non-null subset of ``data``; child item references are normalized."""
    picked = {key: data[key] for key in keys if data.get(key) is not None}
    if "childItems" in picked:
        picked["childItems"] = normalize_child_items(picked["childItems"])
    return picked


class ContentVersionService:
    """CRUD over one version collection plus the primary-version bookkeeping."""

    def __init__(self, collection_name: str, extension_fields: Tuple[str, ...] = ()):
        self.collection_name = collection_name
        self.extension_fields = extension_fields
        # One lock per (contentId, language) while a primary flip is in flight
        self._primary_locks: "weakref.WeakValueDictionary[Tuple[str, str], asyncio.Lock]" = (
            weakref.WeakValueDictionary()
        )

    @property
    def collection(self):
        return mongodb.get_collection(self.collection_name)

    async def get_version_by_id(self, version_id: Any) -> Dict[str, Any]:
        version_oid = parse_object_id(version_id, "versionId")
        version = await self.collection.find_one({"_id": version_oid})
        throw_if_not_found("ContentVersion", version, {"_id": str(version_oid)})
        return version

    async def find_one(self, filter: Dict[str, Any]) -> Optional[Dict[str, Any]]:
        return await self.collection.find_one(filter)

    async def find(
        self, filter: Dict[str, Any], sort: Optional[List[Tuple[str, int]]] = None
    ) -> List[Dict[str, Any]]:
        return await self.collection.find(filter, sort=sort).to_list(length=None)

    async def update_by_id(self, version_id: Any, fields: Dict[str, Any]) -> Optional[Dict[str, Any]]:
        """Set ``fields`` on a version and return the updated document."""
        return await self.collection.find_one_and_update(
            {"_id": to_object_id(version_id)},
            {"$set": fields},
            return_document=ReturnDocument.AFTER,
        )

    async def create_new_version(
        self,
        data: Dict[str, Any],
        content_id: Any,
        user_id: str,
        language: str,
        master_version_id: Optional[Any] = None,
    ) -> Dict[str, Any]:
        """
        Insert a new checked-out, non-primary version built from ``data``.

        Only publishable fields are copied; identity, status and audit fields of
        ``data`` (e.g. when branching from an existing version) are ignored.
        """
        throw_if_null_or_empty("language", language)
        throw_if_null_or_empty("userId", user_id)

        user = to_object_id(user_id)
        version = ContentVersion.model_validate(
            {
                **pick_data(data, VERSION_DATA_KEYS),
                "contentId": parse_object_id(content_id, "contentId"),
                "language": language,
                "masterVersionId": to_object_id(master_version_id) if master_version_id else None,
                "savedBy": user,
                "createdBy": user,
                "updatedBy": user,
            }
        )
        document = version.to_document()
        document.update(pick_data(data, self.extension_fields))

        result = await self.collection.insert_one(document)
        document["_id"] = result.inserted_id
        logger.debug(
            "Created version %s of content %s (%s)", document["_id"], document["contentId"], language
        )
        return document

    def _primary_lock(self, content_id: Any, language: str) -> asyncio.Lock:
        key = (str(content_id), language)
        lock = self._primary_locks.get(key)
        if lock is None:
            lock = asyncio.Lock()
            self._primary_locks[key] = lock
        return lock

    async def set_primary_version(self, version_id: Any) -> Dict[str, Any]:
        """
        Make a version the primary one of its (content, language) pair.

        Flips for the same pair are serialized. The new primary is set before the
        others are demoted in one update scoped by the pair, so readers always
        find a primary while a flip is in flight.
        """
        version = await self.get_version_by_id(version_id)
        content_id, language = version["contentId"], version["language"]

        async with self._primary_lock(content_id, language):
            await self.collection.update_one({"_id": version["_id"]}, {"$set": {"isPrimary": True}})
            await self.collection.update_many(
                {"contentId": content_id, "language": language, "_id": {"$ne": version["_id"]}},
                {"$set": {"isPrimary": False}},
            )

        version["isPrimary"] = True
        return version

    async def get_primary_version(self, content_id: Any, language: str) -> Optional[Dict[str, Any]]:
        return await self.collection.find_one(
            {"contentId": to_object_id(content_id), "language": language, "isPrimary": True}
        )

    async def get_primary_draft_version(self, content_id: Any, language: str) -> Optional[Dict[str, Any]]:
        """The primary version of the pair if it has not been published yet."""
        return await self.collection.find_one(
            {
                "contentId": to_object_id(content_id),
                "language": language,
                "isPrimary": True,
                "status": {"$nin": _DRAFT_EXCLUDED_STATUSES},
            }
        )

    @staticmethod
    def latest_versions_by_language(versions: Iterable[Dict[str, Any]]) -> List[Dict[str, Any]]:
        """Newest version per language by ``createdAt`` (ObjectId order breaks ties)."""
        latest: Dict[str, Dict[str, Any]] = {}
        for version in versions:
            current = latest.get(version["language"])
            if current is None or (version["createdAt"], version["_id"]) > (
                current["createdAt"],
                current["_id"],
            ):
                latest[version["language"]] = version
        return list(latest.values())
