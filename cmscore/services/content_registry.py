"""
Registry of content services by type tag.

Routers and child item population resolve services through the registry; an
unknown tag is a configuration error.
"""
import logging
from typing import Dict, List

from cmscore.core.exceptions import ContentTypeNotRegisteredException
from cmscore.models.content_type import CONTENT_TYPE_DEFINITIONS
from cmscore.services.content_service import ContentService

logger = logging.getLogger(__name__)

class ContentTypeRegistry:
    """Maps type tags (``page``) to content services."""

    def __init__(self):
        self._services: Dict[str, ContentService] = {}

    def register(self, service: ContentService) -> ContentService:
        type_tag = service.type_tag
        if service.registry is None:
            service.registry = self
        self._services[type_tag] = service
        logger.debug("Registered content service for %s", type_tag)
        return service

    def get(self, type_tag: str) -> ContentService:
        service = self._services.get(type_tag)
        if service is None:
            raise ContentTypeNotRegisteredException(type_tag)
        return service

    def content_collections(self) -> List[str]:
        return [service.definition.collection for service in self._services.values()]

    def version_collections(self) -> List[str]:
        return [service.definition.version_collection for service in self._services.values()]

    @classmethod
    def with_defaults(cls) -> "ContentTypeRegistry":
        """Registry holding a service for every built-in content type."""
        registry = cls()
        for definition in CONTENT_TYPE_DEFINITIONS:
            registry.register(ContentService(definition, registry))
        return registry

# Global registry
content_registry = ContentTypeRegistry.with_defaults()
