"""
Exceptions raised by the content core.

Every exception carries the HTTP status the API layer answers with, so routers
and the global handler in ``cmscore.main`` never need to map them one by one.
"""
from typing import Any, Optional


class CmsException(Exception):
    """Base class for all content core errors."""

    status_code: int = 500

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class DocumentNotFoundException(CmsException):
    """An id does not resolve, or resolves to a deleted/filtered-out record."""

    status_code = 404

    def __init__(self, entity: str, query: Optional[Any] = None):
        detail = f"{entity} not found"
        if query is not None:
            detail = f"{detail}: {query}"
        super().__init__(detail)
        self.entity = entity
        self.query = query


class ValidationException(CmsException):
    """A required argument is missing or malformed."""

    status_code = 400

    def __init__(self, field: str, message: Optional[str] = None):
        super().__init__(message or f"The parameter '{field}' is required")
        self.field = field


class ContentLanguageNotFoundException(DocumentNotFoundException):
    """The content has no overlay record for the requested language."""

    def __init__(self, content_id: Any, language: str):
        super().__init__("ContentLanguage", {"contentId": str(content_id), "language": language})
        self.content_id = content_id
        self.language = language


class ContentTypeNotRegisteredException(CmsException):
    """No content service is registered for a type tag."""

    status_code = 500

    def __init__(self, type_tag: str):
        super().__init__(f"No content service registered for content type '{type_tag}'")
        self.type_tag = type_tag


# Site definition errors


class SiteDefinitionException(CmsException):
    status_code = 409


class DuplicateSiteNameException(SiteDefinitionException):
    def __init__(self, site_name: str):
        super().__init__(f"The site name '{site_name}' is already used")


class DuplicateStartPageException(SiteDefinitionException):
    def __init__(self, start_page: str):
        super().__init__(f"The start page '{start_page}' is already used by another site")


class DuplicateHostNameException(SiteDefinitionException):
    def __init__(self, host_name: str):
        super().__init__(f"The host name '{host_name}' is duplicated")


class MultiplePrimaryHostException(SiteDefinitionException):
    def __init__(self, language: str):
        super().__init__(f"Only one primary host is allowed for language '{language}'")


class HostNameAlreadyUsedException(SiteDefinitionException):
    def __init__(self, host_name: str, site_name: str):
        super().__init__(f"The host name '{host_name}' is already used in site '{site_name}'")
