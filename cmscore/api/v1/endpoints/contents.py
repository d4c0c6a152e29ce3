"""
Content API endpoints.

The same set of routes is mounted once per content type (``/pages``,
``/blocks``, ``/media``); each router resolves its service from the registry
by type tag. Service exceptions are turned into responses by the handler
registered in ``cmscore.main``.
"""
from typing import Optional

from fastapi import APIRouter, Depends, Query, Request

from cmscore.api.deps import get_current_user_id, to_response
from cmscore.schemas.content import (
    ContentCreate,
    ContentItemsRequest,
    ContentMoveRequest,
    ContentQueryRequest,
    ContentUpdate,
    FolderCreate,
    FolderUpdate,
)
from cmscore.services.content_registry import content_registry
from cmscore.services.content_service import ContentService
from cmscore.services.site_definition_service import site_definition_service


async def resolve_language(request: Request, language: Optional[str]) -> str:
    """The requested language, else the language of the site serving the host."""
    if language:
        return language
    _, site_language = await site_definition_service.get_current_site_definition(
        request.headers.get("host")
    )
    return site_language


def create_content_router(type_tag: str) -> APIRouter:
    """Build the routes of one content type."""
    router = APIRouter()

    def get_service() -> ContentService:
        return content_registry.get(type_tag)

    # Folder Endpoints

    @router.get("/folders")
    @router.get("/folders/{parent_id}")
    async def get_folder_children(
        parent_id: Optional[str] = None,
        service: ContentService = Depends(get_service),
    ):
        """List the folders directly under a node (or at the root)."""
        folders = await service.get_folder_children(parent_id)
        return to_response(folders)

    @router.post("/folder", status_code=201)
    async def create_folder(
        folder_data: FolderCreate,
        user_id: str = Depends(get_current_user_id),
        service: ContentService = Depends(get_service),
    ):
        folder = await service.create_folder_content(folder_data.to_data(), user_id)
        return to_response(folder)

    @router.put("/folder/{folder_id}")
    async def update_folder(
        folder_id: str,
        folder_update: FolderUpdate,
        user_id: str = Depends(get_current_user_id),
        service: ContentService = Depends(get_service),
    ):
        folder = await service.update_folder_name(folder_id, folder_update.name, user_id)
        return to_response(folder)

    # Content Endpoints

    @router.get("/children")
    @router.get("/children/{parent_id}")
    async def get_content_children(
        request: Request,
        parent_id: Optional[str] = None,
        language: Optional[str] = Query(None),
        select: Optional[str] = Query(None),
        service: ContentService = Depends(get_service),
    ):
        """List the typed contents directly under a node (or at the root)."""
        language = await resolve_language(request, language)
        children = await service.get_content_children(
            parent_id, language, request.headers.get("host"), select
        )
        return to_response(children)

    @router.post("/query")
    async def query_content(
        query: ContentQueryRequest,
        service: ContentService = Depends(get_service),
    ):
        result = await service.query_content(
            query.filter, query.project, query.sort, query.page, query.limit
        )
        if result.total is None:
            return to_response({"docs": result.docs})
        return to_response(result)

    @router.post("/items")
    async def get_content_items(
        items_request: ContentItemsRequest,
        service: ContentService = Depends(get_service),
    ):
        """Load several contents in one language, in the requested order."""
        items = await service.get_content_items(
            items_request.ids,
            items_request.language,
            items_request.statuses,
            items_request.project,
            items_request.deep_populate,
        )
        return to_response(items)

    @router.post("/cut")
    async def cut_content(
        move_request: ContentMoveRequest,
        user_id: str = Depends(get_current_user_id),
        service: ContentService = Depends(get_service),
    ):
        """Move a content and its subtree under another parent."""
        result = await service.execute_cut_content_flow(
            move_request.source_content_id, move_request.target_parent_id, user_id
        )
        return to_response(
            {
                "content": result.content,
                "descendantCount": result.descendant_count,
                "bulkResult": result.bulk_result,
            }
        )

    @router.post("/copy", status_code=201)
    async def copy_content(
        move_request: ContentMoveRequest,
        user_id: str = Depends(get_current_user_id),
        service: ContentService = Depends(get_service),
    ):
        """Copy a content and its subtree under another parent."""
        result = await service.execute_copy_content_flow(
            move_request.source_content_id, move_request.target_parent_id, user_id
        )
        return to_response(
            {
                "content": result.content,
                "copiedCount": result.copied_count,
                "failed": result.failed,
            }
        )

    @router.post("", status_code=201)
    async def create_content(
        content_data: ContentCreate,
        user_id: str = Depends(get_current_user_id),
        service: ContentService = Depends(get_service),
    ):
        content = await service.execute_create_content_flow(
            content_data.to_data(), content_data.language, user_id
        )
        return to_response(content)

    @router.get("/{content_id}/ancestors")
    async def get_ancestors(
        request: Request,
        content_id: str,
        language: Optional[str] = Query(None),
        select: Optional[str] = Query(None),
        service: ContentService = Depends(get_service),
    ):
        language = await resolve_language(request, language)
        ancestors = await service.get_ancestors(content_id, language, request.headers.get("host"), select)
        return to_response(ancestors)

    @router.get("/{content_id}")
    async def get_content_version(
        request: Request,
        content_id: str,
        language: Optional[str] = Query(None),
        version_id: Optional[str] = Query(None, alias="versionId"),
        service: ContentService = Depends(get_service),
    ):
        """Get a content with its primary version, or with ``versionId``."""
        language = await resolve_language(request, language)
        content = await service.get_content_version(
            content_id, version_id, language, request.headers.get("host")
        )
        return to_response(content)

    @router.put("/{content_id}/versions/{version_id}")
    async def update_content(
        content_id: str,
        version_id: str,
        content_update: ContentUpdate,
        user_id: str = Depends(get_current_user_id),
        service: ContentService = Depends(get_service),
    ):
        """Save changes to a version; saving a published version branches a new draft."""
        content = await service.execute_update_content_flow(
            content_id, version_id, user_id, content_update.to_data()
        )
        return to_response(content)

    @router.put("/{content_id}/versions/{version_id}/publish")
    async def publish_content(
        request: Request,
        content_id: str,
        version_id: str,
        user_id: str = Depends(get_current_user_id),
        service: ContentService = Depends(get_service),
    ):
        content = await service.execute_publish_content_flow(
            content_id, version_id, user_id, request.headers.get("host")
        )
        return to_response(content)

    @router.delete("/{content_id}")
    async def move_content_to_trash(
        content_id: str,
        user_id: str = Depends(get_current_user_id),
        service: ContentService = Depends(get_service),
    ):
        """Move a content and its subtree to the trash."""
        content = await service.execute_move_content_to_trash_flow(content_id, user_id)
        return to_response(content)

    return router
