"""
Site definitions and languages.

A site is rooted at a start page and answers on a set of host names, each
with a default language. Resolving the current site runs on every public read,
so the result is cached per host and the cache is dropped on every write.
"""
import logging
from collections import Counter
from typing import Any, Dict, List, Mapping, Optional, Tuple

from pymongo import ReturnDocument

from cmscore.core.cache import CacheService, cache_service
from cmscore.core.exceptions import (
    CmsException,
    DuplicateHostNameException,
    DuplicateSiteNameException,
    DuplicateStartPageException,
    HostNameAlreadyUsedException,
    MultiplePrimaryHostException,
)
from cmscore.core.ids import parse_object_id, to_object_id
from cmscore.core.mongodb import get_language_collection, get_site_definition_collection, mongodb
from cmscore.core.validation import throw_if_not_found, throw_if_null, throw_if_null_or_empty
from cmscore.models.content import utc_now
from cmscore.models.content_type import PAGE
from cmscore.models.site_definition import HostDefinition, SiteDefinition

logger = logging.getLogger(__name__)

ROOT_START_PAGE = "0"


class LanguageService:
    """Service for language branch lookups."""

    @staticmethod
    async def get_enabled_languages() -> List[Dict[str, Any]]:
        """Enabled languages ordered by ``sortIndex``."""
        return await get_language_collection().find(
            {"enabled": True}, sort=[("sortIndex", 1)]
        ).to_list(length=None)


class SiteDefinitionService:
    """Service for site definition operations."""

    PREFIX_CACHE_KEY = "SiteDefinition"

    def __init__(self, cache: CacheService = cache_service):
        self.cache = cache

    async def get_site_definitions(self) -> List[Dict[str, Any]]:
        return await get_site_definition_collection().find({}, sort=[("createdAt", 1)]).to_list(length=None)

    async def get_current_site_definition(self, host: Optional[str] = None) -> Tuple[str, str]:
        """
        ``(start page id, language)`` for a host.

        Without a matching site the first site is used; when no usable site
        exists at all the root (``"0"``) and the first enabled language are
        returned so public reads keep working.
        """
        cache_key = CacheService.build_key(self.PREFIX_CACHE_KEY, host)
        cached = self.cache.get(cache_key)
        if cached is not None:
            return cached

        try:
            site = await self._get_site_definition_with_fallback(host)
            host_definition = self._get_host_definition_with_fallback(site, host)
            current = (str(site["startPage"]), host_definition["language"])
        except CmsException as e:
            logger.error("The site definition must be configured: %s", e.message)
            languages = await LanguageService.get_enabled_languages()
            current = (ROOT_START_PAGE, languages[0]["language"] if languages else "")

        self.cache.set(cache_key, current)
        return current

    async def _get_site_definition_with_fallback(self, host: Optional[str]) -> Dict[str, Any]:
        collection = get_site_definition_collection()
        site = None
        if host:
            site = await collection.find_one({"hosts.name": host})
        if site is None:
            site = await collection.find_one({}, sort=[("createdAt", 1)])
        throw_if_not_found("SiteDefinition", site, {"host": host})

        start_page = await mongodb.get_collection(PAGE.collection).find_one(
            {"_id": to_object_id(site["startPage"]), "isDeleted": False}, {"_id": 1}
        )
        throw_if_not_found("StartPage", start_page, {"_id": str(site["startPage"])})
        return site

    @staticmethod
    def _get_host_definition_with_fallback(site: Mapping[str, Any], host: Optional[str]) -> Dict[str, Any]:
        hosts = site.get("hosts") or []
        throw_if_null_or_empty("hosts", hosts)
        for candidate in hosts:
            if host and candidate.get("name") == host:
                return candidate
        for candidate in hosts:
            if candidate.get("isPrimary"):
                return candidate
        return hosts[0]

    async def create_site_definition(self, site: Mapping[str, Any], user_id: str) -> Dict[str, Any]:
        throw_if_null("site", site)
        throw_if_null_or_empty("userId", user_id)
        await self._validate_site_definition(site)

        self.cache.delete_start_with(self.PREFIX_CACHE_KEY)
        user = to_object_id(user_id)
        document = SiteDefinition.model_validate(
            {
                **site,
                "startPage": parse_object_id(site.get("startPage"), "startPage"),
                "createdBy": user,
                "updatedBy": user,
            }
        ).to_document()
        result = await get_site_definition_collection().insert_one(document)
        document["_id"] = result.inserted_id

        logger.info("Created site definition %s (%s)", document["name"], document["_id"])
        return document

    async def update_site_definition(
        self, site_id: str, site: Mapping[str, Any], user_id: str
    ) -> Dict[str, Any]:
        throw_if_null("site", site)
        throw_if_null_or_empty("userId", user_id)
        object_id = parse_object_id(site_id, "siteId")
        await self._validate_site_definition(site, object_id)

        self.cache.delete_start_with(self.PREFIX_CACHE_KEY)
        hosts = [HostDefinition.model_validate(h).to_document() for h in site.get("hosts") or []]
        updated = await get_site_definition_collection().find_one_and_update(
            {"_id": object_id},
            {
                "$set": {
                    "name": site.get("name"),
                    "startPage": parse_object_id(site.get("startPage"), "startPage"),
                    "hosts": hosts,
                    "updatedBy": to_object_id(user_id),
                    "updatedAt": utc_now(),
                }
            },
            return_document=ReturnDocument.AFTER,
        )
        throw_if_not_found("SiteDefinition", updated, {"_id": site_id})
        return updated

    async def _validate_site_definition(self, site: Mapping[str, Any], site_id: Optional[Any] = None) -> None:
        """
        Unique name and start page across sites, unique host names, and at most
        one primary host per language.
        """
        throw_if_null_or_empty("name", site.get("name"))
        name = site["name"]
        start_page = parse_object_id(site.get("startPage"), "startPage")
        others_filter: Dict[str, Any] = {"_id": {"$ne": site_id}} if site_id else {}

        collection = get_site_definition_collection()
        existing = await collection.find_one(
            {**others_filter, "$or": [{"name": name}, {"startPage": start_page}]}
        )
        if existing:
            if existing.get("name") == name:
                raise DuplicateSiteNameException(name)
            raise DuplicateStartPageException(str(start_page))

        hosts = site.get("hosts") or []
        name_counts = Counter(h.get("name") for h in hosts)
        for host_name, count in name_counts.items():
            if count > 1:
                raise DuplicateHostNameException(host_name)

        primary_counts = Counter(h.get("language") for h in hosts if h.get("isPrimary"))
        for language, count in primary_counts.items():
            if count > 1:
                raise MultiplePrimaryHostException(language)

        if hosts:
            other = await collection.find_one(
                {**others_filter, "hosts.name": {"$in": list(name_counts)}}
            )
            if other:
                used = {h.get("name") for h in other.get("hosts") or []}
                host_name = next(h.get("name") for h in hosts if h.get("name") in used)
                raise HostNameAlreadyUsedException(host_name, other.get("name"))


# Global instance
site_definition_service = SiteDefinitionService()
