"""API v1 router."""
from fastapi import APIRouter

from cmscore.models.content_type import CONTENT_TYPE_DEFINITIONS

from .endpoints import contents, site_definitions

router = APIRouter()

# Site routes come first so "/site-definitions" is never taken for a content id
router.include_router(site_definitions.router)

# One set of content routes per content type
for definition in CONTENT_TYPE_DEFINITIONS:
    router.include_router(
        contents.create_content_router(definition.kind.value),
        prefix=f"/{definition.route}",
        tags=[definition.route],
    )
