"""
Site definition API endpoints.
"""
from typing import Optional

from fastapi import APIRouter, Depends, Query

from cmscore.api.deps import get_current_user_id, to_response
from cmscore.schemas.site_definition import CurrentSiteResponse, SiteDefinitionCreate
from cmscore.services.site_definition_service import site_definition_service

router = APIRouter(prefix="/site-definitions", tags=["site-definitions"])


@router.get("")
async def list_site_definitions():
    sites = await site_definition_service.get_site_definitions()
    return to_response(sites)


@router.get("/current", response_model=CurrentSiteResponse, response_model_by_alias=True)
async def get_current_site_definition(host: Optional[str] = Query(None)):
    """Start page and language for a host, falling back to the first site."""
    start_page, language = await site_definition_service.get_current_site_definition(host)
    return CurrentSiteResponse(start_page=start_page, language=language)


@router.post("", status_code=201)
async def create_site_definition(
    site_data: SiteDefinitionCreate,
    user_id: str = Depends(get_current_user_id),
):
    site = await site_definition_service.create_site_definition(site_data.to_data(), user_id)
    return to_response(site)


@router.put("/{site_id}")
async def update_site_definition(
    site_id: str,
    site_data: SiteDefinitionCreate,
    user_id: str = Depends(get_current_user_id),
):
    site = await site_definition_service.update_site_definition(site_id, site_data.to_data(), user_id)
    return to_response(site)
