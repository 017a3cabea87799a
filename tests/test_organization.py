# tests/test_organization.py

from __future__ import annotations

import pytest

from kanban_client.api.errors import ApiError
from kanban_client.board.organization import invite_member, load_organization


@pytest.mark.asyncio
async def test_load_organization_with_users(api, notifier) -> None:
    api.org_users = [
        {"_id": "u1", "name": "Ada", "email": "ada@example.com", "role": "owner"},
        {"_id": "u2", "email": "bob@example.com"},
    ]

    org = await load_organization(api, notifier)

    assert org is not None
    assert (org.id, org.name) == ("o1", "Acme")
    assert [u.id for u in org.users] == ["u1", "u2"]
    assert org.users[0].is_privileged
    assert org.users[1].display_name == "bob@example.com"


@pytest.mark.asyncio
async def test_load_organization_failure_notifies(api, notifier) -> None:
    api.fail_load = ApiError("Server error", status_code=500)

    assert await load_organization(api, notifier) is None
    assert notifier.errors == ["Failed to load organization"]


@pytest.mark.asyncio
async def test_invite_rejects_address_without_at(api, notifier) -> None:
    assert await invite_member(api, notifier, "bob.example.com") is None

    assert api.invites == []
    assert notifier.errors == ["Please enter a valid email address"]


@pytest.mark.asyncio
async def test_invite_mailed(api, notifier) -> None:
    result = await invite_member(api, notifier, " bob@example.com ")

    assert result is not None and result.email_sent
    assert api.invites == ["bob@example.com"]
    assert notifier.successes == ["Invitation email sent successfully to bob@example.com"]


@pytest.mark.asyncio
async def test_invite_not_mailed_returns_link(api, notifier) -> None:
    api.invite_reply = {
        "emailSent": False,
        "emailError": "SMTP down",
        "invitation": {"invitationLink": "http://app.test/join/abc"},
    }

    result = await invite_member(api, notifier, "bob@example.com")

    assert result is not None
    assert not result.email_sent
    assert result.link == "http://app.test/join/abc"
    assert notifier.successes == ["Invitation created! Email failed to send."]


@pytest.mark.asyncio
async def test_invite_failure_shows_backend_message(api, notifier) -> None:
    api.fail_write = ApiError("Conflict", status_code=409, server_message="User already in organization")

    assert await invite_member(api, notifier, "bob@example.com") is None
    assert notifier.errors == ["User already in organization"]
