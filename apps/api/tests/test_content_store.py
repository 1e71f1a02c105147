import asyncio

import pytest

from services.records import derive_key


async def _create(client, headers, **payload):
    body = {"content_type": "hero", "title": {"en": "Welcome"}}
    body.update(payload)
    return await client.post("/content", json=body, headers=headers)


def test_derive_key_slugs_title():
    assert derive_key("Welcome to the Stage!") == "welcome_to_the_stage"
    assert derive_key("  ¡Hola!  ") == "hola"
    assert derive_key("A") == "a_item"
    assert derive_key("!!!") == "item"
    assert len(derive_key("x" * 80)) == 50


@pytest.mark.asyncio
async def test_create_derives_key_and_disambiguates_collisions(repo_client, editor_headers):
    client, _ = repo_client

    first = await _create(client, editor_headers)
    assert first.status_code == 201
    first_data = first.json()
    assert first_data["key"] == "welcome"
    assert first_data["created_by"] == "editor-1"
    assert first_data["metadata"]["is_active"] is True
    assert first_data["metadata"]["order"] == 0

    second = await _create(client, editor_headers)
    assert second.status_code == 201
    second_data = second.json()
    assert second_data["id"] != first_data["id"]
    assert second_data["key"] == "welcome_2"


@pytest.mark.asyncio
async def test_long_titles_derive_distinct_truncated_keys(repo_client, editor_headers):
    client, _ = repo_client
    title = {"en": "a" * 60}

    keys = []
    for _ in range(3):
        response = await _create(client, editor_headers, title=title)
        assert response.status_code == 201
        keys.append(response.json()["key"])

    assert keys == ["a" * 50, "a" * 48 + "_2", "a" * 48 + "_3"]


@pytest.mark.asyncio
async def test_create_requires_english_title(repo_client, editor_headers):
    client, _ = repo_client
    response = await _create(client, editor_headers, title={"es": "Bienvenido"})
    assert response.status_code == 422
    error = response.json()["error"]
    assert error["kind"] == "validation_error"
    assert error["field"] == "title.en"


@pytest.mark.asyncio
async def test_create_rejects_unknown_content_type(repo_client, editor_headers):
    client, _ = repo_client
    response = await _create(client, editor_headers, content_type="banner")
    assert response.status_code == 422
    assert response.json()["error"]["field"] == "content_type"


@pytest.mark.asyncio
async def test_duplicate_explicit_key_conflicts(repo_client, editor_headers):
    client, _ = repo_client
    first = await _create(client, editor_headers, key="hero_main")
    assert first.status_code == 201

    second = await _create(client, editor_headers, key="hero_main", title={"en": "Other"})
    assert second.status_code == 409
    error = second.json()["error"]
    assert error["kind"] == "conflict"
    assert error["field"] == "key"


@pytest.mark.asyncio
async def test_concurrent_duplicate_keys_yield_one_success(repo_client, editor_headers):
    client, _ = repo_client
    responses = await asyncio.gather(
        _create(client, editor_headers, key="race_key", title={"en": "One"}),
        _create(client, editor_headers, key="race_key", title={"en": "Two"}),
    )
    statuses = sorted(response.status_code for response in responses)
    assert statuses == [201, 409]


@pytest.mark.asyncio
async def test_update_merges_only_supplied_fields(repo_client, editor_headers):
    client, _ = repo_client
    created = (
        await _create(
            client,
            editor_headers,
            key="about_us",
            content_type="about",
            title={"en": "About", "es": "Acerca"},
            description={"en": "Story"},
            metadata={"order": 3, "tags": ["Story", "story", "Team"]},
        )
    ).json()
    assert created["metadata"]["tags"] == ["story", "team"]

    response = await client.put(
        f"/content/{created['id']}",
        json={"subtitle": {"en": "Since 2020"}, "metadata": {"is_featured": True}},
        headers=editor_headers,
    )
    assert response.status_code == 200
    updated = response.json()
    assert updated["title"] == {"en": "About", "es": "Acerca"}
    assert updated["description"] == {"en": "Story"}
    assert updated["subtitle"] == {"en": "Since 2020"}
    assert updated["metadata"]["order"] == 3
    assert updated["metadata"]["is_featured"] is True
    assert updated["last_modified_by"] == "editor-1"


@pytest.mark.asyncio
async def test_update_key_rechecks_uniqueness_excluding_self(repo_client, editor_headers):
    client, _ = repo_client
    first = (await _create(client, editor_headers, key="first_key")).json()
    second = (await _create(client, editor_headers, key="second_key")).json()

    same = await client.put(f"/content/{first['id']}", json={"key": "first_key"}, headers=editor_headers)
    assert same.status_code == 200

    taken = await client.put(f"/content/{first['id']}", json={"key": "second_key"}, headers=editor_headers)
    assert taken.status_code == 409

    missing = await client.put("/content/does-not-exist", json={"key": "third_key"}, headers=editor_headers)
    assert missing.status_code == 404
    assert second["key"] == "second_key"


@pytest.mark.asyncio
async def test_editor_list_filters_sorts_and_paginates(repo_client, editor_headers):
    client, _ = repo_client
    for index, title in enumerate(["Gamma", "Alpha", "Beta"]):
        await _create(client, editor_headers, title={"en": title}, metadata={"order": index})
    await _create(
        client,
        editor_headers,
        content_type="team",
        title={"en": "Hidden member"},
        metadata={"is_active": False, "tags": ["crew"]},
    )

    response = await client.get(
        "/content",
        params={"type": "hero", "sort": "title.en", "order": "asc", "limit": 2},
        headers=editor_headers,
    )
    assert response.status_code == 200
    payload = response.json()
    assert [item["title"]["en"] for item in payload["contents"]] == ["Alpha", "Beta"]
    assert payload["pagination"] == {
        "current_page": 1,
        "total_pages": 2,
        "total_items": 3,
        "items_per_page": 2,
        "has_next_page": True,
        "has_prev_page": False,
    }

    everything = (await client.get("/content", headers=editor_headers)).json()
    assert everything["pagination"]["total_items"] == 4

    by_tag = (await client.get("/content", params={"search": "CREW"}, headers=editor_headers)).json()
    assert [item["title"]["en"] for item in by_tag["contents"]] == ["Hidden member"]


@pytest.mark.asyncio
async def test_editor_list_rejects_bad_sort_and_limit(repo_client, editor_headers):
    client, _ = repo_client
    bad_sort = await client.get("/content", params={"sort": "views"}, headers=editor_headers)
    assert bad_sort.status_code == 422
    assert bad_sort.json()["error"]["field"] == "sort"

    bad_limit = await client.get("/content", params={"limit": 101}, headers=editor_headers)
    assert bad_limit.status_code == 422


@pytest.mark.asyncio
async def test_bulk_reorder_is_reflected_in_visitor_order(repo_client, editor_headers):
    client, _ = repo_client
    a = (await _create(client, editor_headers, key="item_a", title={"en": "A"})).json()
    b = (await _create(client, editor_headers, key="item_b", title={"en": "B"})).json()

    response = await client.put(
        "/content/bulk/reorder",
        json={"updates": [{"id": a["id"], "order": 5}, {"id": b["id"], "order": 1}, {"id": "ghost", "order": 2}]},
        headers=editor_headers,
    )
    assert response.status_code == 200
    assert response.json() == {"matched_count": 2, "modified_count": 2}

    visitor = (await client.get("/public/content", params={"lang": "en"})).json()
    assert [item["key"] for item in visitor["content"]["hero"]] == ["item_b", "item_a"]

    repeat = await client.put(
        "/content/bulk/reorder",
        json={"updates": [{"id": a["id"], "order": 5}, {"id": b["id"], "order": 1}]},
        headers=editor_headers,
    )
    assert repeat.json() == {"matched_count": 2, "modified_count": 0}


@pytest.mark.asyncio
async def test_bulk_reorder_last_duplicate_wins(repo_client, editor_headers):
    client, _ = repo_client
    a = (await _create(client, editor_headers, key="dup_item")).json()
    response = await client.put(
        "/content/bulk/reorder",
        json={"updates": [{"id": a["id"], "order": 9}, {"id": a["id"], "order": 4}]},
        headers=editor_headers,
    )
    assert response.json()["matched_count"] == 1
    fetched = (await client.get(f"/content/{a['id']}", headers=editor_headers)).json()
    assert fetched["metadata"]["order"] == 4


@pytest.mark.asyncio
async def test_delete_content_keeps_referenced_media(repo_client, editor_headers):
    client, _ = repo_client
    upload = await client.post(
        "/upload/single",
        files={"file": ("about_photo.png", b"png-bytes", "image/png")},
        headers=editor_headers,
    )
    assert upload.status_code == 201
    asset = upload.json()["file"]

    item = (
        await _create(
            client,
            editor_headers,
            content_type="about",
            title={"en": "About"},
            media={"images": [{"asset_id": asset["id"], "url": asset["secure_url"]}]},
        )
    ).json()
    assert item["media_count"] == 1

    deleted = await client.delete(f"/content/{item['id']}", headers=editor_headers)
    assert deleted.status_code == 200
    assert (await client.get(f"/content/{item['id']}", headers=editor_headers)).status_code == 404

    still_there = await client.get(f"/upload/files/{asset['id']}", headers=editor_headers)
    assert still_there.status_code == 200


@pytest.mark.asyncio
async def test_editor_routes_require_permission(repo_client, viewer_headers):
    client, _ = repo_client
    anonymous = await client.get("/content")
    assert anonymous.status_code == 401
    assert anonymous.json()["error"]["kind"] == "authentication_error"

    forbidden = await client.get("/content", headers=viewer_headers)
    assert forbidden.status_code == 403
    assert forbidden.json()["error"]["kind"] == "authorization_error"
