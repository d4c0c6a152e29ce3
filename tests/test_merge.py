from bson import ObjectId

from cmscore.models.version_status import VersionStatus, is_draft_version, is_published
from cmscore.services.merge import (
    find_content_language,
    merge_child_items,
    merge_to_content_language,
    merge_to_content_version,
)

CONTENT_ID = ObjectId("65f1c0a2e4b0a1b2c3d4e5a1")
VERSION_ID = ObjectId("65f1c0a2e4b0a1b2c3d4e5b2")


def _content():
    return {
        "_id": CONTENT_ID,
        "parentId": None,
        "parentPath": None,
        "ancestors": [],
        "contentType": "StandardPage",
        "createdBy": "u1",
        "updatedAt": "node",
        "contentLanguages": [
            {"_id": "en-record", "language": "en", "name": "Home", "status": 4, "updatedAt": "en"},
            {"_id": "de-record", "language": "de", "name": "Startseite", "status": 2},
        ],
    }


def test_draft_statuses():
    assert is_draft_version(VersionStatus.CHECKED_OUT)
    assert is_draft_version(VersionStatus.AWAITING_APPROVAL)
    assert is_draft_version(None)
    assert not is_draft_version(VersionStatus.PUBLISHED)
    assert not is_draft_version(5)
    assert is_published(4)


def test_find_content_language_by_language_and_status():
    content = _content()
    assert find_content_language(content, "de")["name"] == "Startseite"
    assert find_content_language(content, "de", [VersionStatus.PUBLISHED]) is None
    assert find_content_language(content, "fr") is None
    assert find_content_language(None, "en") is None


def test_language_overlay_wins_but_keeps_node_id():
    content = _content()
    merged = merge_to_content_language(content, content["contentLanguages"][0])

    assert merged["_id"] == CONTENT_ID
    assert merged["name"] == "Home"
    assert merged["updatedAt"] == "en"
    assert merged["contentType"] == "StandardPage"
    assert "contentLanguages" not in merged
    # Inputs are untouched
    assert "contentLanguages" in content


def test_language_merge_flattens_published_child_items():
    child = {
        "_id": ObjectId(),
        "contentType": "TeaserBlock",
        "contentLanguages": [
            {"language": "en", "name": "Teaser draft", "status": 2},
            {"language": "de", "name": "Teaser DE", "status": 4},
        ],
    }
    record = {
        "language": "de",
        "name": "Startseite",
        "childItems": [{"refPath": "block", "content": child}],
    }
    merged = merge_to_content_language(_content(), record)

    flattened = merged["childItems"][0]["content"]
    assert flattened["name"] == "Teaser DE"
    assert "contentLanguages" not in flattened


def test_merge_child_items_leaves_unpopulated_references():
    reference = {"refPath": "block", "content": ObjectId()}
    assert merge_child_items([reference], "en") == [reference]


def test_merge_child_items_can_include_drafts():
    child = {"_id": ObjectId(), "contentLanguages": [{"language": "en", "name": "Draft", "status": 2}]}
    items = merge_child_items([{"refPath": "block", "content": child}], "en", published_only=False)
    assert items[0]["content"]["name"] == "Draft"


def test_version_merge_keeps_structural_fields():
    content = _content()
    version = {
        "_id": VERSION_ID,
        "contentId": CONTENT_ID,
        "language": "en",
        "name": "Home v2",
        "parentId": "ignored",
        "createdBy": "someone-else",
        "status": 2,
    }
    merged = merge_to_content_version(content, version)

    assert merged["_id"] == CONTENT_ID
    assert merged["versionId"] == VERSION_ID
    assert merged["name"] == "Home v2"
    assert merged["parentId"] is None
    assert merged["createdBy"] == "u1"
    assert "contentId" not in merged
    assert "contentLanguages" not in merged
