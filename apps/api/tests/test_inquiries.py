from unittest.mock import patch

import pytest

from config import settings
from services.notifications import render_inquiry_email


INQUIRY = {
    "name": "Mina Park",
    "age": 27,
    "email": "Mina@Example.com",
    "phone": "+82 10 1234 5678",
    "message": "I would love to join the next audition.",
}


def test_render_inquiry_email_escapes_markup():
    rendered = render_inquiry_email({**INQUIRY, "name": "<b>Mina</b>", "message": "line one\nline two"})
    assert "&lt;b&gt;Mina&lt;/b&gt;" in rendered["html"]
    assert "line one<br>line two" in rendered["html"]
    assert rendered["subject"] == "New Contact Form Submission from <b>Mina</b>"
    assert "Reply to: Mina@Example.com" in rendered["text"]


@pytest.mark.asyncio
async def test_submit_inquiry_returns_created(repo_client, editor_headers):
    client, _ = repo_client
    response = await client.post("/inquiries", json=INQUIRY)
    assert response.status_code == 201
    created = response.json()["inquiry"]
    assert set(created) == {"id", "created_at"}

    stored = (await client.get(f"/inquiries/{created['id']}", headers=editor_headers)).json()
    assert stored["email"] == "mina@example.com"
    assert stored["status"] == "new"


@pytest.mark.asyncio
async def test_notification_failure_does_not_fail_submission(repo_client):
    client, _ = repo_client
    with patch.object(settings, "RESEND_API_KEY", "re_test"), patch.object(
        settings, "INQUIRY_NOTIFY_TO", "owner@example.com"
    ), patch(
        "services.notifications.send_inquiry_email", side_effect=RuntimeError("resend down")
    ) as send:
        response = await client.post("/inquiries", json=INQUIRY)
    assert response.status_code == 201
    send.assert_called_once()
    assert send.call_args.args[0]["name"] == "Mina Park"


@pytest.mark.asyncio
async def test_notification_skipped_when_unconfigured(repo_client):
    client, _ = repo_client
    with patch.object(settings, "RESEND_API_KEY", ""), patch(
        "services.notifications.send_inquiry_email"
    ) as send:
        response = await client.post("/inquiries", json=INQUIRY)
    assert response.status_code == 201
    send.assert_not_called()


@pytest.mark.asyncio
@pytest.mark.parametrize(
    "overrides,field",
    [
        ({"name": "  "}, "name"),
        ({"name": "x" * 101}, "name"),
        ({"age": None}, "age"),
        ({"age": 0}, "age"),
        ({"age": 121}, "age"),
        ({"email": "not-an-email"}, "email"),
        ({"phone": "1" * 21}, "phone"),
        ({"message": "too short"}, "message"),
        ({"message": "x" * 2001}, "message"),
    ],
)
async def test_submit_inquiry_validation(repo_client, editor_headers, overrides, field):
    client, _ = repo_client
    response = await client.post("/inquiries", json={**INQUIRY, **overrides})
    assert response.status_code == 422
    assert response.json()["error"]["field"] == field

    listing = (await client.get("/inquiries", headers=editor_headers)).json()
    assert listing["count"] == 0


@pytest.mark.asyncio
async def test_inquiry_status_list_and_delete(repo_client, editor_headers):
    client, _ = repo_client
    first = (await client.post("/inquiries", json=INQUIRY)).json()["inquiry"]
    await client.post("/inquiries", json={**INQUIRY, "name": "Joon"})

    read = await client.patch(
        f"/inquiries/{first['id']}/status", json={"status": "read"}, headers=editor_headers
    )
    assert read.status_code == 200
    assert read.json()["status"] == "read"

    invalid = await client.patch(
        f"/inquiries/{first['id']}/status", json={"status": "archived"}, headers=editor_headers
    )
    assert invalid.status_code == 422

    only_read = (await client.get("/inquiries", params={"status": "read"}, headers=editor_headers)).json()
    assert [entry["id"] for entry in only_read["inquiries"]] == [first["id"]]

    deleted = await client.delete(f"/inquiries/{first['id']}", headers=editor_headers)
    assert deleted.status_code == 200
    assert (await client.get(f"/inquiries/{first['id']}", headers=editor_headers)).status_code == 404
    assert (await client.get("/inquiries", headers=editor_headers)).json()["count"] == 1


@pytest.mark.asyncio
async def test_inquiry_management_requires_auth(repo_client):
    client, _ = repo_client
    assert (await client.get("/inquiries")).status_code == 401
