"""
Content type definitions.

Pages, blocks and media share the content/language/version shape from
``cmscore.models.content``; a ``ContentTypeDefinition`` selected by its type tag
adds the collection names and the extra fields each type carries.
"""
import enum
from dataclasses import dataclass
from typing import Tuple


class ContentKind(str, enum.Enum):
    """Type tag of a content tree."""
    PAGE = "page"
    BLOCK = "block"
    MEDIA = "media"


@dataclass(frozen=True)
class ContentTypeDefinition:
    kind: ContentKind
    collection: str
    version_collection: str
    # Plural path segment used by the HTTP routes (pages, blocks, media)
    route: str
    # Extra node fields accepted on create and overwritten on publish
    node_fields: Tuple[str, ...] = ()
    # Extra fields carried by language records and versions
    language_fields: Tuple[str, ...] = ()


PAGE = ContentTypeDefinition(
    kind=ContentKind.PAGE,
    collection="cms_Page",
    version_collection="cms_PageVersion",
    route="pages",
    node_fields=("visibleInMenu",),
    language_fields=("simpleAddress", "linkUrl", "visibleInMenu"),
)

BLOCK = ContentTypeDefinition(
    kind=ContentKind.BLOCK,
    collection="cms_Block",
    version_collection="cms_BlockVersion",
    route="blocks",
)

MEDIA = ContentTypeDefinition(
    kind=ContentKind.MEDIA,
    collection="cms_Media",
    version_collection="cms_MediaVersion",
    route="media",
)

CONTENT_TYPE_DEFINITIONS: Tuple[ContentTypeDefinition, ...] = (PAGE, BLOCK, MEDIA)
