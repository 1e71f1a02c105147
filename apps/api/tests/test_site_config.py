import pytest


FOOTER = {
    "left_column": {"title": {"en": "Visit", "es": "Visita"}, "description": {"en": "Seoul"}},
    "center_column": {"title": {"en": "Follow"}},
    "right_column": {"title": {"en": "Contact"}},
    "social_icons": [
        {"platform": "youtube", "url": "https://youtube.com/@site", "icon_url": "https://cdn.test/yt.svg", "order": 2},
        {"platform": "instagram", "url": "https://instagram.com/site", "icon_url": "https://cdn.test/ig.svg", "order": 1},
    ],
    "copyright_text": {"en": "© 2026 Site", "ko": "© 2026 사이트"},
}

NEW_ICON = {"platform": "tiktok", "url": "https://tiktok.com/@site", "icon_url": "https://cdn.test/tt.svg"}


async def _save_footer(client, headers, payload=None):
    return await client.post("/footer", json=payload or FOOTER, headers=headers)


@pytest.mark.asyncio
async def test_missing_footer_is_not_found(repo_client, editor_headers):
    client, _ = repo_client
    assert (await client.get("/footer")).status_code == 404
    assert (await client.get("/footer/admin", headers=editor_headers)).status_code == 404
    assert (await client.post("/footer/social-icon", json=NEW_ICON, headers=editor_headers)).status_code == 404


@pytest.mark.asyncio
async def test_footer_save_is_an_upsert_that_merges(repo_client, editor_headers):
    client, _ = repo_client
    created = await _save_footer(client, editor_headers)
    assert created.status_code == 200
    footer_id = created.json()["id"]

    updated = await _save_footer(
        client, editor_headers, {"left_column": {"subtitle": {"en": "Open daily"}}, "is_active": True}
    )
    assert updated.status_code == 200
    payload = updated.json()
    assert payload["id"] == footer_id
    assert payload["left_column"]["title"] == {"en": "Visit", "es": "Visita"}
    assert payload["left_column"]["subtitle"] == {"en": "Open daily"}
    assert len(payload["social_icons"]) == 2
    assert payload["metadata"]["last_updated"] is not None


@pytest.mark.asyncio
async def test_visitor_footer_is_localized_and_ordered(repo_client, editor_headers):
    client, _ = repo_client
    await _save_footer(client, editor_headers)

    response = await client.get("/footer", params={"lang": "es"})
    assert response.status_code == 200
    body = response.json()
    assert body["language"] == "es"
    footer = body["footer"]
    assert footer["left_column"]["title"] == "Visita"
    assert footer["left_column"]["description"] == "Seoul"
    assert footer["center_column"]["subtitle"] == ""
    assert footer["copyright_text"] == "© 2026 Site"
    assert [icon["platform"] for icon in footer["social_icons"]] == ["instagram", "youtube"]

    korean = (await client.get("/footer", params={"lang": "ko"})).json()["footer"]
    assert korean["copyright_text"] == "© 2026 사이트"


@pytest.mark.asyncio
async def test_social_icon_add_update_delete(repo_client, editor_headers):
    client, _ = repo_client
    await _save_footer(client, editor_headers)

    added = await client.post("/footer/social-icon", json=NEW_ICON, headers=editor_headers)
    assert added.status_code == 201
    icons = added.json()["social_icons"]
    assert icons[-1]["platform"] == "tiktok"
    assert icons[-1]["order"] == 2
    assert icons[-1]["is_active"] is True

    updated = await client.put(
        "/footer/social-icon/2", json={"is_active": False}, headers=editor_headers
    )
    assert updated.status_code == 200
    assert updated.json()["social_icons"][2]["is_active"] is False
    assert updated.json()["social_icons"][2]["url"] == NEW_ICON["url"]

    visible = (await client.get("/footer")).json()["footer"]["social_icons"]
    assert "tiktok" not in [icon["platform"] for icon in visible]

    deleted = await client.delete("/footer/social-icon/0", headers=editor_headers)
    assert deleted.status_code == 200
    assert [icon["platform"] for icon in deleted.json()["social_icons"]] == ["instagram", "tiktok"]


@pytest.mark.asyncio
@pytest.mark.parametrize("index", [-1, 2, 99])
async def test_social_icon_out_of_range_leaves_footer_untouched(repo_client, editor_headers, index):
    client, _ = repo_client
    await _save_footer(client, editor_headers)
    before = (await client.get("/footer/admin", headers=editor_headers)).json()

    edit = await client.put(f"/footer/social-icon/{index}", json={"platform": "x"}, headers=editor_headers)
    assert edit.status_code == 422
    assert edit.json()["error"]["field"] == "index"

    remove = await client.delete(f"/footer/social-icon/{index}", headers=editor_headers)
    assert remove.status_code == 422

    after = (await client.get("/footer/admin", headers=editor_headers)).json()
    assert after["social_icons"] == before["social_icons"]


@pytest.mark.asyncio
async def test_social_icon_requires_platform_and_urls(repo_client, editor_headers):
    client, _ = repo_client
    await _save_footer(client, editor_headers)
    response = await client.post(
        "/footer/social-icon", json={"platform": "x", "url": "https://x.com/site"}, headers=editor_headers
    )
    assert response.status_code == 422


@pytest.mark.asyncio
async def test_footer_editing_requires_system_config(repo_client, viewer_headers):
    client, _ = repo_client
    response = await client.post("/footer", json=FOOTER, headers=viewer_headers)
    assert response.status_code == 403


@pytest.mark.asyncio
async def test_first_logo_requires_a_file(repo_client, fake_storage, editor_headers):
    client, _ = repo_client
    response = await client.post("/logo", data={"alt_text": "Brand"}, headers=editor_headers)
    assert response.status_code == 422
    assert response.json()["error"]["field"] == "logo"
    assert fake_storage.calls == 0
    assert (await client.get("/logo")).status_code == 404


@pytest.mark.asyncio
async def test_logo_upload_goes_through_media_ledger(repo_client, fake_storage, editor_headers):
    client, _ = repo_client
    response = await client.post(
        "/logo",
        files={"logo": ("brand.svg", b"<svg></svg>", "image/svg+xml")},
        data={"alt_text": '{"en": "Brand", "ja": "ブランド"}', "width": "160"},
        headers=editor_headers,
    )
    assert response.status_code == 200
    logo = response.json()
    assert logo["width"] == 160
    assert logo["height"] == 40
    assert logo["alt_text"] == {"en": "Brand", "ja": "ブランド"}
    assert fake_storage.pushed[0][1] == "logo"

    asset = (await client.get(f"/upload/files/{logo['media_asset_id']}", headers=editor_headers)).json()
    assert asset["category"] == "logo"
    assert asset["secure_url"] == logo["logo_url"]

    visitor = (await client.get("/logo", params={"lang": "ja"})).json()
    assert visitor == {"logo_url": logo["logo_url"], "alt_text": "ブランド", "width": 160, "height": 40}

    resized = await client.post("/logo", data={"height": "48"}, headers=editor_headers)
    assert resized.status_code == 200
    assert resized.json()["id"] == logo["id"]
    assert resized.json()["height"] == 48
    assert resized.json()["logo_url"] == logo["logo_url"]
    assert len(fake_storage.pushed) == 1


@pytest.mark.asyncio
async def test_logo_rejects_oversized_and_non_image_files(repo_client, fake_storage, editor_headers):
    client, _ = repo_client
    too_big = await client.post(
        "/logo",
        files={"logo": ("brand.png", b"x" * (5 * 1024 * 1024 + 1), "image/png")},
        headers=editor_headers,
    )
    assert too_big.status_code == 422

    video = await client.post(
        "/logo", files={"logo": ("brand.mp4", b"mp4", "video/mp4")}, headers=editor_headers
    )
    assert video.status_code == 422
    assert fake_storage.calls == 0
