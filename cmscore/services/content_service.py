"""
Content service for one content type (pages, blocks or media).

Nodes live in the type's content collection with their language records
embedded; version history lives in the type's version collection and is handled
by ``ContentVersionService``. The flows below keep the three in step without
multi-document transactions: every flow validates and loads what it needs before
its first write.
"""
import asyncio
import logging
from collections import defaultdict
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any, Dict, Iterable, List, Mapping, Optional

from pymongo import ReturnDocument, UpdateOne
from pymongo.errors import BulkWriteError

from cmscore.core.config import settings
from cmscore.core.exceptions import (
    ContentLanguageNotFoundException,
    ContentTypeNotRegisteredException,
    DocumentNotFoundException,
    ValidationException,
)
from cmscore.core.ids import parse_object_id, to_object_id
from cmscore.core.mongodb import mongodb
from cmscore.core.validation import throw_if_not_found, throw_if_null, throw_if_null_or_empty
from cmscore.models.content import ContentLanguage, ContentNode, utc_now
from cmscore.models.content_type import ContentTypeDefinition
from cmscore.models.version_status import VersionStatus, is_draft_version
from cmscore.services.content_version_service import VERSION_DATA_KEYS, ContentVersionService, pick_data
from cmscore.services.hierarchy import (
    hierarchy_under,
    is_in_subtree,
    rebase_descendant,
    split_parent_path,
    subtree_filter,
)
from cmscore.services.merge import (
    find_content_language,
    merge_child_items,
    merge_to_content_language,
    merge_to_content_version,
)
from cmscore.services.query_helper import ProjectSpec, QueryHelper, QueryResult, SortSpec

if TYPE_CHECKING:
    from cmscore.services.content_registry import ContentTypeRegistry

logger = logging.getLogger(__name__)

# Node fields that are computed by the flows and never taken from input
NODE_SYSTEM_KEYS = (
    "_id",
    "parentId",
    "parentPath",
    "ancestors",
    "hasChildren",
    "isDeleted",
    "deletedAt",
    "deletedBy",
    "createdBy",
    "createdAt",
    "updatedBy",
    "updatedAt",
    "contentLanguages",
)

# Fields of a language record that a save or a new version carries
LANGUAGE_DATA_KEYS = (
    "name",
    "urlSegment",
    "properties",
    "childItems",
    "stopPublish",
    "delayPublishUntil",
)

# Node fields overwritten from the publishing version when it carries them
PUBLISHED_NODE_KEYS = ("childOrderRule", "peerOrder", "visibleInMenu")

DEFAULT_ITEM_PROJECTION = {
    "_id": 1,
    "parentId": 1,
    "parentPath": 1,
    "contentType": 1,
    "isDeleted": 1,
    "deletedBy": 1,
    "visibleInMenu": 1,
    "createdBy": 1,
    "createdAt": 1,
    "updatedAt": 1,
    "contentLanguages": 1,
}

ROOT_PARENT_IDS = (None, "", "0")


@dataclass
class CopyContentResult:
    """Copied root plus the subtrees that could not be copied (source id -> error)."""
    content: Dict[str, Any]
    copied_count: int = 0
    failed: Dict[str, str] = field(default_factory=dict)


@dataclass
class CutContentResult:
    """Moved root and the raw report of the descendant bulk update."""
    content: Dict[str, Any]
    descendant_count: int = 0
    bulk_result: Optional[Dict[str, Any]] = None


class ContentService:
    """Queries and mutation flows over one content type."""

    def __init__(
        self,
        definition: ContentTypeDefinition,
        registry: Optional["ContentTypeRegistry"] = None,
    ):
        self.definition = definition
        self.registry = registry
        self.version_service = ContentVersionService(
            definition.version_collection, definition.language_fields
        )

    @property
    def collection(self):
        return mongodb.get_collection(self.definition.collection)

    @property
    def type_tag(self) -> str:
        return self.definition.kind.value

    def _resolve_service(self, type_tag: str) -> "ContentService":
        if type_tag == self.type_tag:
            return self
        if self.registry is None:
            raise ContentTypeNotRegisteredException(type_tag)
        return self.registry.get(type_tag)

    # Queries

    async def query_content(
        self,
        filter: Mapping[str, Any],
        project: ProjectSpec = None,
        sort: SortSpec = None,
        page: Optional[int] = None,
        limit: Optional[int] = None,
    ) -> QueryResult:
        """
        Run a flat content query over the unwound language records.

        Each row is one (node, language) pair flattened with
        ``merge_to_content_language``. With ``page`` and ``limit`` the data and
        count queries run concurrently and the paging fields are filled in.
        """
        pipeline = QueryHelper.build_pipeline(filter, project)

        if page is not None and limit is not None:
            data_stages = QueryHelper.page_stages(sort, page, limit)
            rows, counts = await asyncio.gather(
                self.collection.aggregate(pipeline + data_stages).to_list(length=None),
                self.collection.aggregate(pipeline + QueryHelper.count_stages()).to_list(length=None),
            )
            total = counts[0]["total"] if counts else 0
            return QueryResult(
                docs=[self._flatten_row(row) for row in rows],
                total=total,
                pages=QueryHelper.page_count(total, limit),
                page=page,
                limit=limit,
            )

        if sort:
            pipeline.append({"$sort": QueryHelper.get_combined_content_sort(sort)})
        rows = await self.collection.aggregate(pipeline).to_list(length=None)
        return QueryResult(docs=[self._flatten_row(row) for row in rows])

    @staticmethod
    def _flatten_row(row: Dict[str, Any]) -> Dict[str, Any]:
        return merge_to_content_language(row, row.get("contentLanguages"))

    async def get_content_version(
        self,
        content_id: str,
        version_id: Optional[str],
        language: str,
        host: Optional[str] = None,
    ) -> Dict[str, Any]:
        """
        A content merged with one of its versions.

        Without ``version_id`` the primary version for ``language`` is used. Child
        item references are populated one level deep with their branch in
        ``language``, drafts included.
        """
        throw_if_null_or_empty("contentId", content_id)
        throw_if_null_or_empty("language", language)

        content = await self._get_content_by_id(content_id)
        if version_id:
            query = {"_id": parse_object_id(version_id, "versionId"), "contentId": content["_id"]}
        else:
            query = {"contentId": content["_id"], "language": language, "isPrimary": True}
        version = await self.version_service.find_one(query)
        throw_if_not_found("ContentVersion", version, {k: str(v) for k, v in query.items()})

        if version.get("childItems"):
            populated = await self._populate_child_items(version["childItems"], language, depth=1)
            version["childItems"] = merge_child_items(populated, language, published_only=False)
        return merge_to_content_version(content, version)

    async def get_content(
        self,
        content_id: str,
        language: str,
        statuses: Optional[Iterable[int]] = None,
        select: ProjectSpec = None,
    ) -> Dict[str, Any]:
        throw_if_null_or_empty("contentId", content_id)
        throw_if_null_or_empty("language", language)

        filter: Dict[str, Any] = {
            "_id": parse_object_id(content_id, "contentId"),
            "isDeleted": False,
            "language": language,
        }
        if statuses:
            filter["status"] = {"$in": [int(s) for s in statuses]}
        result = await self.query_content(filter, select)
        if not result.docs:
            raise DocumentNotFoundException("Content", {"_id": content_id, "language": language})
        return result.docs[0]

    async def get_content_children(
        self,
        parent_id: Optional[str],
        language: str,
        host: Optional[str] = None,
        select: ProjectSpec = None,
    ) -> List[Dict[str, Any]]:
        """Typed (non-folder) children of a node; ``None`` or ``"0"`` lists the roots."""
        throw_if_null_or_empty("language", language)

        parent = None if parent_id in ROOT_PARENT_IDS else parse_object_id(parent_id, "parentId")
        filter = {
            "parentId": {"$eq": parent},
            "contentType": {"$ne": None},
            "isDeleted": False,
            "language": language,
        }
        result = await self.query_content(filter, select)
        return result.docs

    async def get_ancestors(
        self,
        content_id: str,
        language: str,
        host: Optional[str] = None,
        select: ProjectSpec = None,
    ) -> List[Dict[str, Any]]:
        """Ancestors of a content in ``language``, root first."""
        content = await self.get_content(content_id, language, select="_id,parentId,parentPath,ancestors")
        ancestor_ids = split_parent_path(content.get("parentPath"))
        if not ancestor_ids:
            return []

        filter = {
            "_id": {"$in": ancestor_ids},
            "isDeleted": False,
            "language": language,
        }
        result = await self.query_content(filter, select)
        by_id = {str(doc["_id"]): doc for doc in result.docs}
        return [by_id[ancestor_id] for ancestor_id in ancestor_ids if ancestor_id in by_id]

    async def get_content_items(
        self,
        ids: Iterable[str],
        language: str,
        statuses: Optional[Iterable[int]] = None,
        project: Optional[Mapping[str, Any]] = None,
        deep_populate: bool = False,
    ) -> List[Dict[str, Any]]:
        """
        Several contents flattened to their record in ``language``, in the order
        of ``ids``. Contents without a matching record are skipped.
        """
        throw_if_null_or_empty("language", language)

        allowed = [int(s) for s in statuses] if statuses else None
        record_filter: Dict[str, Any] = {"language": language}
        if allowed:
            record_filter["status"] = {"$in": allowed}
        object_ids = [parse_object_id(content_id, "ids") for content_id in ids]
        filter = {
            "_id": {"$in": object_ids},
            "isDeleted": False,
            "contentLanguages": {"$elemMatch": record_filter},
        }

        projection = dict(project) if project else dict(DEFAULT_ITEM_PROJECTION)
        if any(projection.values()):
            projection["contentLanguages"] = 1
        else:
            projection.pop("contentLanguages", None)

        docs = await self.collection.find(filter, projection).to_list(length=None)
        by_id = {str(doc["_id"]): doc for doc in docs}

        items = []
        for object_id in object_ids:
            doc = by_id.get(str(object_id))
            record = find_content_language(doc, language, allowed)
            if record is None:
                continue
            if deep_populate and record.get("childItems"):
                record = dict(record)
                record["childItems"] = await self._populate_child_items(
                    record["childItems"], language, settings.deep_populate_depth
                )
            items.append(merge_to_content_language(doc, record))
        return items

    async def _populate_child_items(
        self, child_items: List[Dict[str, Any]], language: str, depth: int
    ) -> List[Dict[str, Any]]:
        """
        Replace child item ids with their content documents.

        Only non-deleted contents having a record in ``language`` are loaded;
        other references resolve to ``None``. With ``depth`` > 1 the loaded
        documents' records in ``language`` are populated in turn.
        """
        if depth <= 0 or not child_items:
            return list(child_items or [])

        ids_by_type: Dict[str, List[Any]] = defaultdict(list)
        for item in child_items:
            if item.get("refPath") and not isinstance(item.get("content"), dict):
                ids_by_type[item["refPath"]].append(to_object_id(item.get("content")))

        loaded: Dict[tuple, Dict[str, Any]] = {}
        for type_tag, ids in ids_by_type.items():
            service = self._resolve_service(type_tag)
            docs = await service.collection.find(
                {"_id": {"$in": ids}, "isDeleted": False, "contentLanguages.language": language}
            ).to_list(length=None)
            for doc in docs:
                if depth > 1:
                    records = []
                    for record in doc.get("contentLanguages") or []:
                        if record.get("language") == language and record.get("childItems"):
                            record = dict(record)
                            record["childItems"] = await service._populate_child_items(
                                record["childItems"], language, depth - 1
                            )
                        records.append(record)
                    doc["contentLanguages"] = records
                loaded[(type_tag, str(doc["_id"]))] = doc

        populated = []
        for item in child_items:
            item = dict(item)
            content = item.get("content")
            if not isinstance(content, dict):
                item["content"] = loaded.get((item.get("refPath"), str(content)))
            populated.append(item)
        return populated

    async def _get_content_by_id(self, content_id: Any) -> Dict[str, Any]:
        object_id = parse_object_id(content_id, "contentId")
        content = await self.collection.find_one({"_id": object_id, "isDeleted": False})
        throw_if_not_found("Content", content, {"_id": str(object_id)})
        return content

    async def _find_parent(self, parent_id: Any) -> Optional[Dict[str, Any]]:
        """The parent node for a new location; ``None`` stands for the root."""
        if parent_id in ROOT_PARENT_IDS:
            return None
        object_id = parse_object_id(parent_id, "parentId")
        parent = await self.collection.find_one({"_id": object_id, "isDeleted": False})
        throw_if_not_found("Parent content", parent, {"_id": str(object_id)})
        return parent

    # Hierarchy bookkeeping

    async def _create_content(
        self, data: Mapping[str, Any], parent: Optional[Dict[str, Any]], user_id: str
    ) -> Dict[str, Any]:
        """Insert a node placed under ``parent``, without language records."""
        node_data = {
            key: value
            for key, value in data.items()
            if value is not None and key not in NODE_SYSTEM_KEYS
        }
        if node_data.get("contentType") is not None:
            # Typed content is named per language
            node_data.pop("name", None)
        user = to_object_id(user_id)
        document = ContentNode.model_validate(
            {**node_data, "createdBy": user, "updatedBy": user}
        ).to_document()
        document.update(pick_data(data, self.definition.node_fields))
        document.update(hierarchy_under(parent))

        result = await self.collection.insert_one(document)
        document["_id"] = result.inserted_id
        await self._mark_has_children(parent)
        return document

    async def _mark_has_children(self, parent: Optional[Dict[str, Any]]) -> None:
        if parent is not None and not parent.get("hasChildren"):
            await self.collection.update_one({"_id": parent["_id"]}, {"$set": {"hasChildren": True}})
            parent["hasChildren"] = True

    async def _refresh_has_children(self, parent_id: Any) -> None:
        """Recompute ``hasChildren`` of a node from its non-deleted children."""
        if parent_id is None:
            return
        count = await self.collection.count_documents({"parentId": parent_id, "isDeleted": False})
        await self.collection.update_one({"_id": parent_id}, {"$set": {"hasChildren": count > 0}})

    def _create_content_language(
        self, data: Mapping[str, Any], version_id: Any, user_id: str, language: str
    ) -> Dict[str, Any]:
        user = to_object_id(user_id)
        record = ContentLanguage.model_validate(
            {
                **pick_data(data, LANGUAGE_DATA_KEYS),
                "language": language,
                "versionId": version_id,
                "status": int(VersionStatus.CHECKED_OUT),
                "createdBy": user,
                "updatedBy": user,
            }
        ).to_document()
        record.update(pick_data(data, self.definition.language_fields))
        return record

    def _language_changes(self, data: Mapping[str, Any]) -> Dict[str, Any]:
        return pick_data(data, LANGUAGE_DATA_KEYS + self.definition.language_fields)

    def _version_changes(self, data: Mapping[str, Any]) -> Dict[str, Any]:
        return pick_data(data, VERSION_DATA_KEYS + self.definition.language_fields)

    async def _replace_content_language(
        self,
        content: Dict[str, Any],
        language: str,
        changes: Mapping[str, Any],
        extra: Optional[Mapping[str, Any]] = None,
    ) -> Dict[str, Any]:
        """
        Write ``changes`` into the record of ``language``.

        The whole array is set in one update (last write wins), together with
        any ``extra`` node fields.
        """
        records = []
        for record in content.get("contentLanguages") or []:
            if record.get("language") == language:
                record = {**record, **changes}
            records.append(record)
        await self.collection.update_one(
            {"_id": content["_id"]},
            {"$set": {"contentLanguages": records, **(extra or {})}},
        )
        content["contentLanguages"] = records
        if extra:
            content.update(extra)
        return content

    # Flows

    async def execute_create_content_flow(
        self, content: Mapping[str, Any], language: str, user_id: str
    ) -> Dict[str, Any]:
        """
        Create a content with its first (primary, checked out) version in
        ``language`` and return the merged view.
        """
        throw_if_null("content", content)
        throw_if_null_or_empty("language", language)
        throw_if_null_or_empty("userId", user_id)

        parent = await self._find_parent(content.get("parentId"))
        data = {**content, "masterLanguageId": language}

        saved_content = await self._create_content(data, parent, user_id)
        saved_version = await self.version_service.create_new_version(
            data, saved_content["_id"], user_id, language
        )
        saved_version = await self.version_service.set_primary_version(saved_version["_id"])

        record = self._create_content_language(data, saved_version["_id"], user_id, language)
        await self.collection.update_one(
            {"_id": saved_content["_id"]}, {"$push": {"contentLanguages": record}}
        )
        saved_content["contentLanguages"] = [record]

        logger.info(
            "Created %s %s (%s) under %s",
            self.type_tag,
            saved_content["_id"],
            language,
            saved_content.get("parentId") or "root",
        )
        return merge_to_content_version(saved_content, saved_version)

    async def execute_update_content_flow(
        self,
        content_id: Optional[str],
        version_id: str,
        user_id: str,
        content: Mapping[str, Any],
    ) -> Dict[str, Any]:
        """
        Save changes to a version.

        A draft is updated in place (its language record too while that record
        is still a draft). A published version is never changed: a new draft is
        branched from it instead.
        """
        throw_if_null_or_empty("versionId", version_id)
        throw_if_null_or_empty("userId", user_id)
        throw_if_null("content", content)

        version = await self.version_service.get_version_by_id(version_id)
        current = await self._get_content_by_id(version["contentId"])
        if content_id and str(current["_id"]) != str(content_id):
            raise ValidationException(
                "versionId", f"Version {version_id} does not belong to content {content_id}"
            )

        language = version["language"]
        user = to_object_id(user_id)
        now = utc_now()

        if is_draft_version(version.get("status")):
            record = find_content_language(current, language)
            if record is None:
                raise ContentLanguageNotFoundException(current["_id"], language)

            if is_draft_version(record.get("status")):
                changes = {**self._language_changes(content), "updatedBy": user, "updatedAt": now}
                await self._replace_content_language(
                    current, language, changes, extra={"updatedBy": user, "updatedAt": now}
                )

            saved_version = await self.version_service.update_by_id(
                version["_id"],
                {
                    **self._version_changes(content),
                    "savedAt": now,
                    "savedBy": user,
                    "updatedBy": user,
                    "updatedAt": now,
                },
            )
            return merge_to_content_version(current, saved_version)

        branched = await self.version_service.create_new_version(
            {**version, **self._version_changes(content)},
            current["_id"],
            user_id,
            language,
            master_version_id=version["_id"],
        )
        primary_draft = await self.version_service.get_primary_draft_version(current["_id"], language)
        if primary_draft is None:
            branched = await self.version_service.set_primary_version(branched["_id"])

        logger.info("Branched draft %s from published version %s", branched["_id"], version["_id"])
        return merge_to_content_version(current, branched)

    async def execute_publish_content_flow(
        self,
        content_id: Optional[str],
        version_id: str,
        user_id: str,
        host: Optional[str] = None,
    ) -> Dict[str, Any]:
        """
        Publish a version; publishing a version that is not a draft is a no-op.
        """
        throw_if_null_or_empty("versionId", version_id)
        throw_if_null_or_empty("userId", user_id)

        version = await self.version_service.get_version_by_id(version_id)
        current = await self._get_content_by_id(version["contentId"])
        if content_id and str(current["_id"]) != str(content_id):
            raise ValidationException(
                "versionId", f"Version {version_id} does not belong to content {content_id}"
            )

        language = version["language"]
        record = find_content_language(current, language)
        if record is None:
            raise ContentLanguageNotFoundException(current["_id"], language)

        if not is_draft_version(version.get("status")):
            return merge_to_content_version(current, version)

        user = to_object_id(user_id)
        now = utc_now()
        published = await self.version_service.update_by_id(
            version["_id"],
            {
                "status": int(VersionStatus.PUBLISHED),
                "startPublish": now,
                "publishedBy": user,
                "savedAt": now,
                "savedBy": user,
                "masterVersionId": None,
                "updatedBy": user,
                "updatedAt": now,
            },
        )

        record_changes = {
            key: published[key]
            for key in ("urlSegment", "simpleAddress", "name", "properties", "childItems")
            if key in published
        }
        record_changes.update(
            {
                "status": int(VersionStatus.PUBLISHED),
                "startPublish": now,
                "publishedBy": user,
                "versionId": published["_id"],
                "updatedBy": user,
                "updatedAt": now,
            }
        )
        node_changes = {
            key: published[key] for key in PUBLISHED_NODE_KEYS if published.get(key) is not None
        }
        await self._replace_content_language(
            current, language, record_changes, extra={**node_changes, "updatedBy": user, "updatedAt": now}
        )

        previous_version_id = record.get("versionId")
        if previous_version_id is not None and str(previous_version_id) != str(published["_id"]):
            await self.version_service.update_by_id(
                previous_version_id, {"status": int(VersionStatus.PREVIOUSLY_PUBLISHED)}
            )

        if not published.get("isPrimary"):
            primary_draft = await self.version_service.get_primary_draft_version(current["_id"], language)
            if primary_draft is None:
                published = await self.version_service.set_primary_version(published["_id"])

        logger.info("Published version %s of %s %s (%s)", published["_id"], self.type_tag, current["_id"], language)
        return merge_to_content_version(current, published)

    async def execute_move_content_to_trash_flow(self, content_id: str, user_id: str) -> Dict[str, Any]:
        """Soft-delete a content and its whole subtree."""
        throw_if_null_or_empty("contentId", content_id)
        throw_if_null_or_empty("userId", user_id)

        object_id = parse_object_id(content_id, "contentId")
        content = await self.collection.find_one({"_id": object_id})
        throw_if_not_found("Content", content, {"_id": str(object_id)})

        deleted_fields = {"isDeleted": True, "deletedAt": utc_now(), "deletedBy": to_object_id(user_id)}
        deleted, descendants = await asyncio.gather(
            self.collection.find_one_and_update(
                {"_id": object_id},
                {"$set": deleted_fields},
                return_document=ReturnDocument.AFTER,
            ),
            self.collection.update_many({"parentPath": subtree_filter(content)}, {"$set": deleted_fields}),
        )
        await self._refresh_has_children(content.get("parentId"))

        logger.info(
            "Moved %s %s to trash with %d descendants",
            self.type_tag,
            object_id,
            descendants.modified_count,
        )
        return deleted

    async def execute_copy_content_flow(
        self, source_content_id: str, target_parent_id: Optional[str], user_id: str
    ) -> CopyContentResult:
        """
        Copy a content and its non-deleted subtree under a new parent.

        Each copy gets the newest version of every language as its primary
        draft. Children are copied concurrently, at most
        ``settings.copy_concurrency`` nodes at a time; a failing child subtree is
        reported in the result instead of aborting its siblings.
        """
        throw_if_null_or_empty("sourceContentId", source_content_id)
        throw_if_null_or_empty("userId", user_id)

        source = await self._get_content_by_id(source_content_id)
        target = await self._find_parent(target_parent_id)
        if target is not None and is_in_subtree(source, target):
            raise ValidationException(
                "targetParentId", "Content cannot be copied under itself or one of its descendants"
            )

        result = CopyContentResult(content={})
        semaphore = asyncio.Semaphore(max(1, settings.copy_concurrency))
        result.content = await self._copy_subtree(source, target, user_id, semaphore, result)

        logger.info(
            "Copied %s %s to %s: %d nodes, %d failed",
            self.type_tag,
            source["_id"],
            target["_id"] if target else "root",
            result.copied_count,
            len(result.failed),
        )
        return result

    async def _copy_subtree(
        self,
        source: Dict[str, Any],
        target: Optional[Dict[str, Any]],
        user_id: str,
        semaphore: asyncio.Semaphore,
        result: CopyContentResult,
    ) -> Dict[str, Any]:
        # The semaphore covers one node at a time so recursion never waits on itself
        async with semaphore:
            copied = await self._copy_node(source, target, user_id)
        result.copied_count += 1

        children = await self.collection.find(
            {"parentId": source["_id"], "isDeleted": False}
        ).to_list(length=None)
        outcomes = await asyncio.gather(
            *(self._copy_subtree(child, copied, user_id, semaphore, result) for child in children),
            return_exceptions=True,
        )
        for child, outcome in zip(children, outcomes):
            if isinstance(outcome, asyncio.CancelledError):
                raise outcome
            if isinstance(outcome, Exception):
                logger.error("Failed to copy %s %s: %s", self.type_tag, child["_id"], outcome)
                result.failed[str(child["_id"])] = str(outcome)
        return copied

    async def _copy_node(
        self, source: Dict[str, Any], target: Optional[Dict[str, Any]], user_id: str
    ) -> Dict[str, Any]:
        """Copy one node with the newest version of each of its languages."""
        versions = await self.version_service.find({"contentId": source["_id"]})
        latest = ContentVersionService.latest_versions_by_language(versions)

        copied = await self._create_content(source, target, user_id)
        records = []
        for version in latest:
            language = version["language"]
            saved = await self.version_service.create_new_version(version, copied["_id"], user_id, language)
            saved = await self.version_service.set_primary_version(saved["_id"])
            records.append(self._create_content_language(version, saved["_id"], user_id, language))

        if records:
            await self.collection.update_one({"_id": copied["_id"]}, {"$set": {"contentLanguages": records}})
            copied["contentLanguages"] = records
        return copied

    async def execute_cut_content_flow(
        self, source_content_id: str, target_parent_id: Optional[str], user_id: str
    ) -> CutContentResult:
        """
        Move a content and its subtree under a new parent.

        Descendants keep their path below the moved content. They are rewritten
        with one unordered bulk write whose outcome is reported, not raised.
        """
        throw_if_null_or_empty("sourceContentId", source_content_id)
        throw_if_null_or_empty("userId", user_id)

        source_id = parse_object_id(source_content_id, "sourceContentId")
        source = await self.collection.find_one({"_id": source_id})
        throw_if_not_found("Content", source, {"_id": str(source_id)})
        target = await self._find_parent(target_parent_id)
        if target is not None and is_in_subtree(source, target):
            raise ValidationException(
                "targetParentId", "Content cannot be moved under itself or one of its descendants"
            )

        old_parent_id = source.get("parentId")
        descendants = await self.collection.find(
            {"parentPath": subtree_filter(source)}, {"_id": 1, "parentId": 1, "ancestors": 1}
        ).to_list(length=None)

        user = to_object_id(user_id)
        now = utc_now()
        moved = await self.collection.find_one_and_update(
            {"_id": source_id},
            {"$set": {**hierarchy_under(target), "updatedBy": user, "updatedAt": now}},
            return_document=ReturnDocument.AFTER,
        )

        bulk_result = None
        if descendants:
            operations = [
                UpdateOne(
                    {"_id": descendant["_id"]},
                    {"$set": {**rebase_descendant(descendant, moved), "updatedBy": user, "updatedAt": now}},
                )
                for descendant in descendants
            ]
            try:
                write_result = await self.collection.bulk_write(operations, ordered=False)
                bulk_result = write_result.bulk_api_result
            except BulkWriteError as e:
                logger.error("Descendant update of cut %s partially failed: %s", source_id, e.details)
                bulk_result = e.details

        await self._mark_has_children(target)
        target_id = target["_id"] if target else None
        if old_parent_id is not None and old_parent_id != target_id:
            await self._refresh_has_children(old_parent_id)

        logger.info(
            "Moved %s %s to %s with %d descendants",
            self.type_tag,
            source_id,
            target_id or "root",
            len(descendants),
        )
        return CutContentResult(content=moved, descendant_count=len(descendants), bulk_result=bulk_result)

    # Folder operations

    async def get_folder_children(self, parent_id: Optional[str]) -> List[Dict[str, Any]]:
        """Non-deleted folders directly under a node (or at the root), by name."""
        parent = None if parent_id in ROOT_PARENT_IDS else parse_object_id(parent_id, "parentId")
        return await self.collection.find(
            {"parentId": {"$eq": parent}, "contentType": None, "isDeleted": False},
            sort=[("name", 1)],
        ).to_list(length=None)

    async def create_folder_content(self, folder: Mapping[str, Any], user_id: str) -> Dict[str, Any]:
        throw_if_null("folder", folder)
        throw_if_null_or_empty("name", folder.get("name"))
        throw_if_null_or_empty("userId", user_id)

        parent = await self._find_parent(folder.get("parentId"))
        saved = await self._create_content({"name": folder["name"], "contentType": None}, parent, user_id)
        logger.info("Created %s folder %s", self.type_tag, saved["_id"])
        return saved

    async def update_folder_name(self, folder_id: str, name: str, user_id: str) -> Dict[str, Any]:
        throw_if_null_or_empty("name", name)
        throw_if_null_or_empty("userId", user_id)

        object_id = parse_object_id(folder_id, "folderId")
        folder = await self.collection.find_one_and_update(
            {"_id": object_id, "contentType": None, "isDeleted": False},
            {"$set": {"name": name, "updatedBy": to_object_id(user_id), "updatedAt": utc_now()}},
            return_document=ReturnDocument.AFTER,
        )
        throw_if_not_found("Folder", folder, {"_id": str(object_id)})
        return folder
