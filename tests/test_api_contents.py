import pytest
from bson import ObjectId


async def create_page(client, name, parent_id=None, language="en"):
    response = await client.post(
        "/api/v1/pages",
        json={
            "name": name,
            "contentType": "StandardPage",
            "language": language,
            "parentId": parent_id,
            "urlSegment": name.lower(),
        },
    )
    assert response.status_code == 201, response.text
    return response.json()


@pytest.mark.asyncio
async def test_health(client):
    response = await client.get("/health")
    assert response.status_code == 200
    assert response.json() == {"status": "healthy"}


@pytest.mark.asyncio
async def test_create_publish_and_read_page(client):
    folder = await client.post("/api/v1/pages/folder", json={"name": "Site"})
    assert folder.status_code == 201
    folder_id = folder.json()["_id"]

    page = await create_page(client, "Home", folder_id)
    assert page["parentId"] == folder_id
    assert page["status"] == 2
    assert ObjectId.is_valid(page["versionId"])

    published = await client.put(f"/api/v1/pages/{page['_id']}/versions/{page['versionId']}/publish")
    assert published.status_code == 200
    assert published.json()["status"] == 4

    detail = await client.get(f"/api/v1/pages/{page['_id']}", params={"language": "en"})
    assert detail.status_code == 200
    assert detail.json()["name"] == "Home"

    children = await client.get(f"/api/v1/pages/children/{folder_id}", params={"language": "en"})
    assert [child["name"] for child in children.json()] == ["Home"]

    folders = await client.get("/api/v1/pages/folders")
    assert [f["name"] for f in folders.json()] == ["Site"]


@pytest.mark.asyncio
async def test_update_version(client):
    page = await create_page(client, "Home")

    response = await client.put(
        f"/api/v1/pages/{page['_id']}/versions/{page['versionId']}",
        json={"name": "Welcome", "properties": {"heading": "Hello"}},
    )

    assert response.status_code == 200
    body = response.json()
    assert body["name"] == "Welcome"
    assert body["properties"] == {"heading": "Hello"}


@pytest.mark.asyncio
async def test_query_items_and_ancestors(client):
    parent = await create_page(client, "Parent")
    child = await create_page(client, "Child", parent["_id"])

    query = await client.post(
        "/api/v1/pages/query",
        json={"filter": {"language": "en"}, "sort": "-createdAt", "page": 1, "limit": 1},
    )
    assert query.status_code == 200
    body = query.json()
    assert body["total"] == 2
    assert body["pages"] == 2
    assert len(body["docs"]) == 1

    unpaged = await client.post("/api/v1/pages/query", json={"filter": {"parentId": parent["_id"]}})
    assert [doc["name"] for doc in unpaged.json()["docs"]] == ["Child"]

    projected = await client.post(
        "/api/v1/pages/query",
        json={"filter": {"parentId": parent["_id"]}, "project": "name,urlSegment,status"},
    )
    assert projected.status_code == 200
    assert projected.json()["docs"][0]["urlSegment"] == "child"
    assert "properties" not in projected.json()["docs"][0]

    mixed = await client.post(
        "/api/v1/pages/query",
        json={"filter": {"parentId": parent["_id"]}, "project": "name,urlSegment,-properties"},
    )
    assert mixed.status_code == 400

    items = await client.post(
        "/api/v1/pages/items", json={"ids": [child["_id"], parent["_id"]], "language": "en"}
    )
    assert [item["name"] for item in items.json()] == ["Child", "Parent"]

    ancestors = await client.get(f"/api/v1/pages/{child['_id']}/ancestors", params={"language": "en"})
    assert [a["_id"] for a in ancestors.json()] == [parent["_id"]]


@pytest.mark.asyncio
async def test_copy_cut_and_delete(client):
    source = await create_page(client, "Source")
    await create_page(client, "Child", source["_id"])
    target = await create_page(client, "Target")

    copied = await client.post(
        "/api/v1/pages/copy", json={"sourceContentId": source["_id"], "targetParentId": target["_id"]}
    )
    assert copied.status_code == 201
    assert copied.json()["copiedCount"] == 2
    assert copied.json()["content"]["parentId"] == target["_id"]

    cut = await client.post("/api/v1/pages/cut", json={"sourceContentId": source["_id"], "targetParentId": target["_id"]})
    assert cut.status_code == 200
    assert cut.json()["descendantCount"] == 1
    assert cut.json()["content"]["parentPath"] == f",{target['_id']},"

    deleted = await client.delete(f"/api/v1/pages/{target['_id']}")
    assert deleted.status_code == 200
    assert deleted.json()["isDeleted"] is True

    missing = await client.get(f"/api/v1/pages/{source['_id']}", params={"language": "en"})
    assert missing.status_code == 404


@pytest.mark.asyncio
async def test_errors_map_to_status_codes(client):
    not_found = await client.get(f"/api/v1/pages/{ObjectId()}", params={"language": "en"})
    assert not_found.status_code == 404
    assert "not found" in not_found.json()["detail"]

    bad_id = await client.get("/api/v1/pages/not-an-id", params={"language": "en"})
    assert bad_id.status_code == 400

    page = await create_page(client, "A")
    child = await create_page(client, "B", page["_id"])
    cycle = await client.post("/api/v1/pages/cut", json={"sourceContentId": page["_id"], "targetParentId": child["_id"]})
    assert cycle.status_code == 400


@pytest.mark.asyncio
async def test_user_header_is_required(client):
    response = await client.post(
        "/api/v1/pages",
        json={"name": "x", "contentType": "StandardPage", "language": "en"},
        headers={"X-User-Id": ""},
    )
    assert response.status_code == 401


@pytest.mark.asyncio
async def test_blocks_have_their_own_routes(client):
    response = await client.post(
        "/api/v1/blocks", json={"name": "Teaser", "contentType": "TeaserBlock", "language": "en"}
    )
    assert response.status_code == 201

    pages = await client.post("/api/v1/pages/query", json={"filter": {"language": "en"}})
    assert pages.json()["docs"] == []


@pytest.mark.asyncio
async def test_site_definitions(client):
    start = await create_page(client, "Start")

    created = await client.post(
        "/api/v1/site-definitions",
        json={"name": "Corporate", "startPage": start["_id"], "hosts": [{"name": "a.com", "language": "en", "isPrimary": True}]},
    )
    assert created.status_code == 201

    duplicate = await client.post(
        "/api/v1/site-definitions", json={"name": "Corporate", "startPage": start["_id"], "hosts": []}
    )
    assert duplicate.status_code == 409

    current = await client.get("/api/v1/site-definitions/current", params={"host": "a.com"})
    assert current.json() == {"startPage": start["_id"], "language": "en"}

    listed = await client.get("/api/v1/site-definitions")
    assert [s["name"] for s in listed.json()] == ["Corporate"]
