from .version_status import VersionStatus, is_draft_version, is_published
from .content import (
    MongoModel,
    ContentLanguage,
    ContentNode,
    ContentVersion,
    utc_now,
)
from .content_type import (
    ContentKind,
    ContentTypeDefinition,
    PAGE,
    BLOCK,
    MEDIA,
    CONTENT_TYPE_DEFINITIONS,
)
from .site_definition import HostDefinition, SiteDefinition

__all__ = [
    "VersionStatus",
    "is_draft_version",
    "is_published",
    "MongoModel",
    "ContentLanguage",
    "ContentNode",
    "ContentVersion",
    "utc_now",
    "ContentKind",
    "ContentTypeDefinition",
    "PAGE",
    "BLOCK",
    "MEDIA",
    "CONTENT_TYPE_DEFINITIONS",
    "HostDefinition",
    "SiteDefinition",
]
