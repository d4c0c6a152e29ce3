"""
Pydantic schemas for site definition API requests/responses.
"""
from typing import List, Optional

from pydantic import ConfigDict, Field

from cmscore.schemas.content import CamelModel


class HostDefinitionSchema(CamelModel):
    name: str = Field(..., min_length=1, max_length=255)
    language: str = Field(..., min_length=1)
    is_primary: bool = False


class SiteDefinitionCreate(CamelModel):
    """Schema for creating or replacing a site definition."""

    name: str = Field(..., min_length=1, max_length=255)
    start_page: str  # ObjectId of a page, as string
    hosts: List[HostDefinitionSchema] = Field(default_factory=list)

    model_config = ConfigDict(
        json_schema_extra={
            "example": {
                "name": "Corporate",
                "startPage": "65f1c0a2e4b0a1b2c3d4e5f6",
                "hosts": [
                    {"name": "www.example.com", "language": "en", "isPrimary": True},
                    {"name": "www.example.de", "language": "de", "isPrimary": True},
                ],
            }
        }
    )


class CurrentSiteResponse(CamelModel):
    """Start page and language resolved for a host."""

    start_page: str
    language: Optional[str] = None
