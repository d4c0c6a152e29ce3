import asyncio
from datetime import datetime

import pytest
from bson import ObjectId

from cmscore.core.exceptions import DocumentNotFoundException, ValidationException
from cmscore.models.version_status import VersionStatus
from cmscore.services.content_version_service import ContentVersionService, normalize_child_items

USER_ID = "65f1c0a2e4b0a1b2c3d4e5f0"


@pytest.fixture
def version_service():
    return ContentVersionService("cms_TestVersion", ("simpleAddress",))


@pytest.mark.asyncio
async def test_create_new_version_strips_bookkeeping(db, version_service):
    content_id = ObjectId()
    source = {
        "_id": ObjectId(),
        "contentId": ObjectId(),
        "isPrimary": True,
        "status": int(VersionStatus.PUBLISHED),
        "name": "Home",
        "urlSegment": "home",
        "properties": {"title": "Hello"},
        "simpleAddress": "/start",
        "unknownField": "dropped",
    }

    version = await version_service.create_new_version(source, content_id, USER_ID, "en")

    assert version["_id"] != source["_id"]
    assert version["contentId"] == content_id
    assert version["status"] == VersionStatus.CHECKED_OUT
    assert version["isPrimary"] is False
    assert version["name"] == "Home"
    assert version["simpleAddress"] == "/start"
    assert "unknownField" not in version
    assert await version_service.get_version_by_id(version["_id"]) is not None


@pytest.mark.asyncio
async def test_create_new_version_requires_language(db, version_service):
    with pytest.raises(ValidationException):
        await version_service.create_new_version({"name": "x"}, ObjectId(), USER_ID, "")


@pytest.mark.asyncio
async def test_get_version_by_id_not_found(db, version_service):
    with pytest.raises(DocumentNotFoundException):
        await version_service.get_version_by_id(ObjectId())
    with pytest.raises(ValidationException):
        await version_service.get_version_by_id("not-an-id")


@pytest.mark.asyncio
async def test_set_primary_version_is_unique_per_pair(db, version_service):
    content_id = ObjectId()
    en_1 = await version_service.create_new_version({"name": "a"}, content_id, USER_ID, "en")
    en_2 = await version_service.create_new_version({"name": "b"}, content_id, USER_ID, "en")
    de_1 = await version_service.create_new_version({"name": "c"}, content_id, USER_ID, "de")

    await version_service.set_primary_version(de_1["_id"])
    await version_service.set_primary_version(en_1["_id"])
    await version_service.set_primary_version(en_2["_id"])

    primaries = await version_service.find({"contentId": content_id, "isPrimary": True})
    assert {(v["language"], v["_id"]) for v in primaries} == {("en", en_2["_id"]), ("de", de_1["_id"])}


@pytest.mark.asyncio
async def test_concurrent_primary_flips_leave_one_primary(db, version_service):
    content_id = ObjectId()
    versions = [
        await version_service.create_new_version({"name": str(i)}, content_id, USER_ID, "en")
        for i in range(5)
    ]

    await asyncio.gather(*(version_service.set_primary_version(v["_id"]) for v in versions))

    primaries = await version_service.find({"contentId": content_id, "language": "en", "isPrimary": True})
    assert len(primaries) == 1


class PrimaryCountingCollection:
    """Delegating collection that counts the pair's primaries before each write."""

    def __init__(self, collection, content_id, counts):
        self._collection = collection
        self._pair = {"contentId": content_id, "language": "en", "isPrimary": True}
        self.counts = counts

    def __getattr__(self, name):
        return getattr(self._collection, name)

    async def update_one(self, *args, **kwargs):
        self.counts.append(await self._collection.count_documents(self._pair))
        return await self._collection.update_one(*args, **kwargs)

    async def update_many(self, *args, **kwargs):
        self.counts.append(await self._collection.count_documents(self._pair))
        return await self._collection.update_many(*args, **kwargs)


@pytest.mark.asyncio
async def test_primary_flip_never_leaves_the_pair_without_primary(db, version_service, monkeypatch):
    content_id = ObjectId()
    old = await version_service.create_new_version({"name": "old"}, content_id, USER_ID, "en")
    new = await version_service.create_new_version({"name": "new"}, content_id, USER_ID, "en")
    await version_service.set_primary_version(old["_id"])

    counts = []
    collection = PrimaryCountingCollection(version_service.collection, content_id, counts)
    monkeypatch.setattr(ContentVersionService, "collection", property(lambda self: collection))

    await version_service.set_primary_version(new["_id"])

    assert counts and all(count >= 1 for count in counts)
    primary = await version_service.get_primary_version(content_id, "en")
    assert primary["_id"] == new["_id"]
    assert await collection.count_documents({"contentId": content_id, "isPrimary": True}) == 1


@pytest.mark.asyncio
async def test_primary_draft_version(db, version_service):
    content_id = ObjectId()
    version = await version_service.create_new_version({"name": "a"}, content_id, USER_ID, "en")
    await version_service.set_primary_version(version["_id"])

    draft = await version_service.get_primary_draft_version(content_id, "en")
    assert draft["_id"] == version["_id"]

    await version_service.update_by_id(version["_id"], {"status": int(VersionStatus.PUBLISHED)})
    assert await version_service.get_primary_draft_version(content_id, "en") is None
    assert (await version_service.get_primary_version(content_id, "en"))["_id"] == version["_id"]


def test_latest_versions_by_language():
    t1, t2 = datetime(2024, 1, 1), datetime(2024, 2, 1)
    versions = [
        {"_id": ObjectId(), "language": "en", "createdAt": t1},
        {"_id": ObjectId(), "language": "en", "createdAt": t2, "name": "newest en"},
        {"_id": ObjectId(), "language": "de", "createdAt": t1, "name": "only de"},
    ]

    latest = {v["language"]: v for v in ContentVersionService.latest_versions_by_language(versions)}
    assert latest["en"]["name"] == "newest en"
    assert latest["de"]["name"] == "only de"


def test_normalize_child_items_keeps_ids_only():
    block_id = ObjectId()
    items = normalize_child_items(
        [
            {"refPath": "block", "content": str(block_id)},
            {"refPath": "block", "content": {"_id": block_id, "name": "populated"}},
        ]
    )
    assert items == [
        {"refPath": "block", "content": block_id},
        {"refPath": "block", "content": block_id},
    ]
