"""Version lifecycle states."""
import enum
from typing import Optional


class VersionStatus(enum.IntEnum):
    """Status shared by a version record and its content-language record."""
    NOT_CREATED = 0
    REJECTED = 1
    CHECKED_OUT = 2
    CHECKED_IN = 3
    PUBLISHED = 4
    PREVIOUSLY_PUBLISHED = 5
    DELAYED_PUBLISH = 6
    AWAITING_APPROVAL = 7


def is_draft_version(status: Optional[int]) -> bool:
    """Every state that has never been live is a draft."""
    return status not in (VersionStatus.PUBLISHED, VersionStatus.PREVIOUSLY_PUBLISHED)


def is_published(status: Optional[int]) -> bool:
    return status == VersionStatus.PUBLISHED
