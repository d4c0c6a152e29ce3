"""
Flattening of a content node with one of its language overlays or versions.

All functions return new dicts and leave their arguments untouched.
"""
from typing import Any, Dict, Iterable, List, Optional

from cmscore.models.version_status import VersionStatus

# Node fields that stay authoritative when a node is merged with a version
CONTENT_VERSION_KEYS = (
    "_id",
    "ancestors",
    "hasChildren",
    "isDeleted",
    "contentType",
    "masterLanguageId",
    "parentId",
    "parentPath",
    "createdBy",
)


def find_content_language(
    content: Optional[Dict[str, Any]],
    language: Optional[str],
    statuses: Optional[Iterable[int]] = None,
) -> Optional[Dict[str, Any]]:
    """The overlay of ``content`` in ``language``, optionally restricted by status."""
    if not content:
        return None
    allowed = set(statuses) if statuses is not None else None
    for record in content.get("contentLanguages") or []:
        if record.get("language") != language:
            continue
        if allowed is not None and record.get("status") not in allowed:
            continue
        return record
    return None


def merge_child_items(
    child_items: Optional[List[Dict[str, Any]]],
    language: Optional[str],
    published_only: bool = True,
) -> List[Dict[str, Any]]:
    """Flatten populated child item contents to their branch in ``language``."""
    merged_items = []
    for item in child_items or []:
        item = dict(item)
        child = item.get("content")
        if isinstance(child, dict) and isinstance(child.get("contentLanguages"), list):
            statuses = [VersionStatus.PUBLISHED] if published_only else None
            branch = find_content_language(child, language, statuses)
            item["content"] = merge_to_content_language(child, branch)
        merged_items.append(item)
    return merged_items


def merge_to_content_language(
    content: Optional[Dict[str, Any]], content_language: Optional[Dict[str, Any]]
) -> Dict[str, Any]:
    """
    Overlay a content-language record onto its node.

    Overlay values win on key collisions, except ``_id`` which stays the node's.
    Populated child items are flattened recursively to their published branch in
    the overlay's language.
    """
    overlay = dict(content_language or {})
    overlay.pop("_id", None)
    if overlay.get("childItems"):
        overlay["childItems"] = merge_child_items(overlay["childItems"], overlay.get("language"))

    merged = dict(content or {})
    merged.update(overlay)
    merged.pop("contentLanguages", None)
    return merged


def merge_to_content_version(
    content: Optional[Dict[str, Any]], content_version: Optional[Dict[str, Any]]
) -> Dict[str, Any]:
    """
    Flatten a node with one of its versions.

    The version supplies the publishable data; the node keeps its identity and
    hierarchy fields. ``versionId`` carries the version's own id.
    """
    version = dict(content_version or {})
    merged = dict(version)
    if content:
        for key in CONTENT_VERSION_KEYS:
            merged[key] = content.get(key)
    merged["versionId"] = version.get("_id")
    merged.pop("contentLanguages", None)
    merged.pop("contentId", None)
    return merged
