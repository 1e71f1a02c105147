from unittest.mock import patch

import pytest

from services.localization import SUPPORTED_LANGUAGES


async def _create(client, headers, **payload):
    body = {"content_type": "hero", "title": {"en": "Welcome"}}
    body.update(payload)
    response = await client.post("/content", json=body, headers=headers)
    assert response.status_code == 201
    return response.json()


@pytest.mark.asyncio
async def test_inactive_content_is_hidden_from_visitors(repo_client, editor_headers):
    client, _ = repo_client
    await _create(client, editor_headers, key="shown_item", title={"en": "Shown"})
    await _create(client, editor_headers, key="hidden_item", title={"en": "Hidden"}, metadata={"is_active": False})

    visitor = (await client.get("/public/content")).json()
    assert visitor["total"] == 1
    assert [item["key"] for item in visitor["content"]["hero"]] == ["shown_item"]

    hidden = await client.get("/public/content/hidden_item")
    assert hidden.status_code == 404

    editor = (await client.get("/content", headers=editor_headers)).json()
    assert {item["key"] for item in editor["contents"]} == {"shown_item", "hidden_item"}


@pytest.mark.asyncio
async def test_visitor_content_falls_back_to_english(repo_client, editor_headers):
    client, _ = repo_client
    await _create(
        client,
        editor_headers,
        key="about_story",
        content_type="about",
        title={"en": "Our story", "ko": "우리의 이야기"},
        description={"en": "Founded in Seoul"},
    )

    korean = (await client.get("/public/content/about_story", params={"lang": "ko"})).json()
    assert korean["title"] == "우리의 이야기"
    assert korean["description"] == "Founded in Seoul"
    assert korean["subtitle"] == ""

    unknown = (await client.get("/public/content/about_story", params={"lang": "fr"})).json()
    assert unknown["title"] == "Our story"

    by_type = (await client.get("/public/content/type/about", params={"lang": "ko"})).json()
    assert by_type["type"] == "about"
    assert [item["title"] for item in by_type["contents"]] == ["우리의 이야기"]


@pytest.mark.asyncio
async def test_visitor_featured_and_type_filters(repo_client, editor_headers):
    client, _ = repo_client
    await _create(client, editor_headers, key="plain_hero")
    await _create(client, editor_headers, key="star_hero", metadata={"is_featured": True})
    await _create(client, editor_headers, key="team_lead", content_type="team", title={"en": "Lead"})

    featured = (await client.get("/public/content", params={"featured": "true"})).json()
    assert featured["total"] == 1
    assert featured["content"]["hero"][0]["key"] == "star_hero"

    team = (await client.get("/public/content", params={"type": "team"})).json()
    assert list(team["content"]) == ["team"]

    bad_type = await client.get("/public/content/type/banner")
    assert bad_type.status_code == 422


@pytest.mark.asyncio
@pytest.mark.parametrize("key", ["ab", "Bad-Key", "has%20space"])
async def test_content_key_format_is_checked(repo_client, key):
    client, _ = repo_client
    response = await client.get(f"/public/content/{key}")
    assert response.status_code == 422
    assert response.json()["error"]["field"] == "key"


@pytest.mark.asyncio
async def test_search_matches_any_translation(repo_client, editor_headers):
    client, _ = repo_client
    await _create(client, editor_headers, key="greeting", title={"en": "Welcome", "es": "Bienvenido"})
    await _create(client, editor_headers, key="farewell", title={"en": "Goodbye"}, metadata={"tags": ["closing"]})

    spanish = (await client.get("/public/search", params={"q": "bienven", "lang": "es"})).json()
    assert [item["key"] for item in spanish["results"]] == ["greeting"]
    assert spanish["results"][0]["title"] == "Bienvenido"
    assert spanish["has_more"] is False

    by_tag = (await client.get("/public/search", params={"q": "CLOSING"})).json()
    assert [item["key"] for item in by_tag["results"]] == ["farewell"]

    too_short = (await client.get("/public/search", params={"q": "e"})).json()
    assert too_short["error"]["field"] == "q"

    one = (await client.get("/public/search", params={"q": "oo", "limit": 1})).json()
    assert one["total"] == 1
    assert one["has_more"] is True


@pytest.mark.asyncio
async def test_meta_lists_languages_and_types(repo_client):
    client, _ = repo_client
    meta = (await client.get("/public/meta")).json()
    assert [entry["code"] for entry in meta["languages"]] == list(SUPPORTED_LANGUAGES)
    assert meta["default_language"] == "en"
    assert "hero" in [entry["value"] for entry in meta["content_types"]]


@pytest.mark.asyncio
async def test_stats_add_recent_items_for_editors(repo_client, editor_headers):
    client, _ = repo_client
    await _create(client, editor_headers, key="stat_one", metadata={"is_featured": True})
    await _create(client, editor_headers, key="stat_two", content_type="team", metadata={"is_active": False})

    anonymous = (await client.get("/public/stats")).json()
    assert anonymous["content"] == {"total": 2, "active": 1, "featured": 1}
    assert anonymous["content_by_type"] == {"hero": 1}
    assert "recent_content" not in anonymous

    editor = (await client.get("/public/stats", headers=editor_headers)).json()
    assert [item["key"] for item in editor["recent_content"]] == ["stat_one"]


@pytest.mark.asyncio
async def test_public_media_records_usage(repo_client, editor_headers):
    client, _ = repo_client
    upload = await client.post(
        "/upload/single",
        files={"file": ("game_map.png", b"png", "image/png")},
        headers=editor_headers,
    )
    asset = upload.json()["file"]

    first = await client.get("/public/media", params={"category": "game_screenshot"})
    assert first.status_code == 200
    assert [entry["id"] for entry in first.json()["media"]] == [asset["id"]]
    await client.get("/public/media")

    refreshed = (await client.get(f"/upload/files/{asset['id']}", headers=editor_headers)).json()
    assert refreshed["usage_count"] == 2
    assert refreshed["last_used_at"] is not None


@pytest.mark.asyncio
async def test_public_media_survives_usage_counter_failure(repo_client, editor_headers):
    client, _ = repo_client
    asset = (
        await client.post(
            "/upload/single",
            files={"file": ("feature_icon.png", b"png", "image/png")},
            headers=editor_headers,
        )
    ).json()["file"]

    with patch("services.media_ledger.async_session_maker", side_effect=RuntimeError("database unavailable")):
        response = await client.get("/public/media", params={"type": "image"})
    assert response.status_code == 200
    assert response.json()["total"] == 1

    refreshed = (await client.get(f"/upload/files/{asset['id']}", headers=editor_headers)).json()
    assert refreshed["usage_count"] == 0


@pytest.mark.asyncio
async def test_public_media_rejects_unknown_category(repo_client):
    client, _ = repo_client
    response = await client.get("/public/media", params={"category": "posters"})
    assert response.status_code == 422
