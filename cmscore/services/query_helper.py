"""
Translation of flat content queries into aggregation pipelines.

Language data lives in the embedded ``contentLanguages`` array, so a flat filter
such as ``{"parentId": ..., "language": "en", "status": 4}`` is split in two:
node fields are matched before ``$unwind`` (with the language part folded in as
an ``$elemMatch`` so whole documents are discarded early) and the language part
is matched again on the unwound rows.
"""
import math
from dataclasses import dataclass, field
from typing import Any, Dict, List, Mapping, Optional, Union

from cmscore.core.exceptions import ValidationException
from cmscore.core.ids import to_object_id_condition

CONTENT_LANGUAGES = "contentLanguages"
PROPERTIES = "properties"

CONTENT_FILTER_FIELDS = (
    "_id",
    "hasChildren",
    "parentId",
    "parentPath",
    "contentType",
    "createdBy",
    "isDeleted",
    "deletedBy",
)
CONTENT_LANGUAGE_FILTER_FIELDS = (
    "name",
    "urlSegment",
    "language",
    "status",
    "startPublish",
    "updatedAt",
)
OBJECT_ID_FIELDS = ("_id", "parentId", "createdBy", "deletedBy")

CONTENT_PROJECT_FIELDS = (
    "ancestors",
    "hasChildren",
    "childOrderRule",
    "peerOrder",
    "isDeleted",
    "visibleInMenu",
    "contentType",
    "masterLanguageId",
    "createdBy",
    "createdAt",
    "updatedBy",
    "updatedAt",
    "parentId",
    "parentPath",
)
CONTENT_LANGUAGE_PROJECT_FIELDS = (
    "name",
    "urlSegment",
    "language",
    "status",
    "startPublish",
    "updatedAt",
    "createdBy",
    "versionId",
    "childItems",
    "createdAt",
    "updatedBy",
    "publishedBy",
    "properties",
)

CONTENT_SORT_FIELDS = ("parentId", "parentPath", "contentType", "createdAt", "updatedAt", "deletedBy")
CONTENT_LANGUAGE_SORT_FIELDS = ("name", "urlSegment", "language", "status", "startPublish", "updatedAt")

# Tiebreaker appended to every paginated sort so equal keys page deterministically
STABLE_SORT_KEY = "createdAt"

SortSpec = Union[str, Mapping[str, Any], None]
ProjectSpec = Union[str, Mapping[str, Any], None]

_SORT_DIRECTIONS = {
    "asc": 1,
    "ascending": 1,
    "1": 1,
    "desc": -1,
    "descending": -1,
    "-1": -1,
}


@dataclass
class QueryResult:
    """Result of ``ContentService.query_content``; paging fields are set only when paginated."""
    docs: List[Dict[str, Any]] = field(default_factory=list)
    total: Optional[int] = None
    pages: Optional[int] = None
    page: Optional[int] = None
    limit: Optional[int] = None


def _without_nil(values: Mapping[str, Any], keys) -> Dict[str, Any]:
    return {key: values[key] for key in keys if values.get(key) is not None}


def _property_entries(values: Mapping[str, Any]) -> Dict[str, Any]:
    """``properties`` entries given either nested or as ``properties.<key>``."""
    entries: Dict[str, Any] = {}
    nested = values.get(PROPERTIES)
    if isinstance(nested, Mapping):
        for key, value in nested.items():
            if value is not None:
                entries[f"{PROPERTIES}.{key}"] = value
    for key, value in values.items():
        if key.startswith(f"{PROPERTIES}.") and value is not None:
            entries[key] = value
    return entries


def _parse_field_list(fields: str) -> Dict[str, int]:
    """``'a, -b'`` -> ``{'a': 1, 'b': -1}``"""
    parsed: Dict[str, int] = {}
    for token in fields.split(","):
        token = token.strip()
        if not token:
            continue
        if token.startswith("-"):
            parsed[token[1:].strip()] = -1
        else:
            parsed[token.lstrip("+").strip()] = 1
    return parsed


def _sort_direction(value: Any) -> int:
    if isinstance(value, bool):
        raise ValidationException("sort", f"Invalid sort direction: {value}")
    if isinstance(value, (int, float)):
        return -1 if value < 0 else 1
    direction = _SORT_DIRECTIONS.get(str(value).strip().lower())
    if direction is None:
        raise ValidationException("sort", f"Invalid sort direction: {value}")
    return direction


class QueryHelper:
    """Builders for the two-stage content/content-language aggregation."""

    @staticmethod
    def get_content_filter(filter: Mapping[str, Any]) -> Dict[str, Any]:
        """Pre-unwind stage: node fields plus an ``$elemMatch`` over the language fields."""
        content_filter = _without_nil(filter, CONTENT_FILTER_FIELDS)
        for key in OBJECT_ID_FIELDS:
            if key in content_filter:
                content_filter[key] = to_object_id_condition(content_filter[key])

        language_filter = _without_nil(filter, CONTENT_LANGUAGE_FILTER_FIELDS)
        language_filter.update(_property_entries(filter))
        if language_filter:
            content_filter[CONTENT_LANGUAGES] = {"$elemMatch": language_filter}
        return content_filter

    @staticmethod
    def get_content_language_filter(filter: Mapping[str, Any]) -> Dict[str, Any]:
        """Post-unwind stage: language fields addressed through ``contentLanguages.``."""
        language_filter = _without_nil(filter, CONTENT_LANGUAGE_FILTER_FIELDS)
        language_filter.update(_property_entries(filter))
        return {f"{CONTENT_LANGUAGES}.{key}": value for key, value in language_filter.items()}

    @staticmethod
    def parse_project(project: ProjectSpec) -> Dict[str, Any]:
        if project is None:
            return {}
        if isinstance(project, str):
            return {key: (0 if direction < 0 else 1) for key, direction in _parse_field_list(project).items()}
        return {key: value for key, value in project.items() if value is not None}

    @staticmethod
    def get_content_projection(project: ProjectSpec) -> Dict[str, Any]:
        """
        Map flat field names to their stored paths.

        Fields present on both the node and its language records (audit fields)
        are projected on both. Unknown fields are ignored; an empty result means
        no ``$project`` stage. Inclusions and exclusions cannot be mixed.
        """
        requested = QueryHelper.parse_project(project)
        projection: Dict[str, Any] = {}
        for key, value in requested.items():
            if key in CONTENT_PROJECT_FIELDS:
                projection[key] = value
            if key in CONTENT_LANGUAGE_PROJECT_FIELDS or key.startswith(f"{PROPERTIES}."):
                projection[f"{CONTENT_LANGUAGES}.{key}"] = value
        excluded = [key for key, value in projection.items() if value in (0, False)]
        if excluded and len(excluded) < len(projection):
            raise ValidationException(
                "project", "Cannot mix included and excluded fields: " + ", ".join(excluded)
            )
        return projection

    @staticmethod
    def parse_sort(sort: SortSpec) -> Dict[str, int]:
        if sort is None:
            return {}
        if isinstance(sort, str):
            return _parse_field_list(sort)
        parsed: Dict[str, int] = {}
        for key, value in sort.items():
            if value is None:
                continue
            if key == PROPERTIES and isinstance(value, Mapping):
                for prop, direction in value.items():
                    if direction is not None:
                        parsed[f"{PROPERTIES}.{prop}"] = _sort_direction(direction)
            else:
                parsed[key] = _sort_direction(value)
        return parsed

    @staticmethod
    def get_combined_content_sort(sort: SortSpec) -> Dict[str, int]:
        """
        Node and language sort keys in the caller's order, with ``createdAt``
        descending appended unless already present.
        """
        combined: Dict[str, int] = {}
        for key, direction in QueryHelper.parse_sort(sort).items():
            if key in CONTENT_SORT_FIELDS:
                combined[key] = direction
            if key in CONTENT_LANGUAGE_SORT_FIELDS or key.startswith(f"{PROPERTIES}."):
                combined[f"{CONTENT_LANGUAGES}.{key}"] = direction
        if STABLE_SORT_KEY not in combined:
            combined[STABLE_SORT_KEY] = -1
        return combined

    @staticmethod
    def build_pipeline(filter: Mapping[str, Any], project: ProjectSpec = None) -> List[Dict[str, Any]]:
        """Match -> unwind -> match -> project; shared by the data and count queries."""
        pipeline: List[Dict[str, Any]] = [
            {"$match": QueryHelper.get_content_filter(filter)},
            {"$unwind": f"${CONTENT_LANGUAGES}"},
        ]
        language_filter = QueryHelper.get_content_language_filter(filter)
        if language_filter:
            pipeline.append({"$match": language_filter})
        projection = QueryHelper.get_content_projection(project)
        if projection:
            pipeline.append({"$project": projection})
        return pipeline

    @staticmethod
    def page_stages(sort: SortSpec, page: int, limit: int) -> List[Dict[str, Any]]:
        if page < 1:
            raise ValidationException("page", "page must be greater than or equal to 1")
        if limit < 1:
            raise ValidationException("limit", "limit must be greater than or equal to 1")
        return [
            {"$sort": QueryHelper.get_combined_content_sort(sort)},
            {"$skip": (page - 1) * limit},
            {"$limit": limit},
        ]

    @staticmethod
    def count_stages() -> List[Dict[str, Any]]:
        return [{"$count": "total"}]

    @staticmethod
    def page_count(total: int, limit: int) -> int:
        return math.ceil(total / limit) if limit else 0
