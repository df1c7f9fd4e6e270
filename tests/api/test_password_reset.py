"""Password reset endpoint tests."""

from unittest.mock import patch

import pytest
from httpx import AsyncClient

from together.models import Member
from together.services.members import MemberDirectory
from together.services.reset_tokens import ResetTokenStore
from tests.conftest import RecordingDelivery, password_matches

PHONE = "01012345678"
NEW_PASSWORD = "newpass456!"
INVALID_REQUEST = "유효하지 않은 요청입니다"


async def obtain_token(client: AsyncClient, delivery: RecordingDelivery) -> str:
    await client.post("/api/password-reset/request", json={"login_id": "hong1234", "target": PHONE})
    response = await client.post(
        "/api/password-reset/confirm",
        json={"login_id": "hong1234", "target": PHONE, "code": delivery.last_code(PHONE)},
    )
    assert response.status_code == 200
    return response.json()["reset_token"]


@pytest.mark.asyncio
async def test_reset_flow(
    client: AsyncClient,
    members: MemberDirectory,
    reset_tokens: ResetTokenStore,
    member: Member,
):
    with patch("together.services.verification.generate_code", return_value="4821"):
        response = await client.post(
            "/api/password-reset/request",
            json={"login_id": "hong1234", "target": PHONE},
        )
    assert response.status_code == 202

    response = await client.post(
        "/api/password-reset/confirm",
        json={"login_id": "hong1234", "target": PHONE, "code": "4821"},
    )
    assert response.status_code == 200
    data = response.json()
    assert data["ok"] is True
    token = data["reset_token"]
    assert len(token) == 64
    assert await reset_tokens.resolve(token) == member.id

    response = await client.post(
        "/api/password-reset/redeem",
        json={"token": token, "new_password": NEW_PASSWORD, "new_password_confirm": NEW_PASSWORD},
    )
    assert response.status_code == 200
    assert response.json() == {"ok": True}

    updated = await members.get_by_login_id(member.login_id)
    assert password_matches(NEW_PASSWORD, updated.password_hash)

    # The token is single use
    response = await client.post(
        "/api/password-reset/redeem",
        json={"token": token, "new_password": NEW_PASSWORD, "new_password_confirm": NEW_PASSWORD},
    )
    assert response.status_code == 400
    assert response.json() == {"detail": INVALID_REQUEST}


@pytest.mark.asyncio
async def test_request_for_unknown_account_is_accepted(
    client: AsyncClient, delivery: RecordingDelivery, member: Member
):
    response = await client.post(
        "/api/password-reset/request",
        json={"login_id": "nobody99", "target": PHONE},
    )
    assert response.status_code == 202
    assert delivery.sent == []


@pytest.mark.asyncio
async def test_confirm_with_wrong_code(client: AsyncClient, member: Member):
    with patch("together.services.verification.generate_code", return_value="4821"):
        await client.post(
            "/api/password-reset/request",
            json={"login_id": "hong1234", "target": PHONE},
        )

    response = await client.post(
        "/api/password-reset/confirm",
        json={"login_id": "hong1234", "target": PHONE, "code": "1284"},
    )
    assert response.status_code == 400
    assert response.json() == {"detail": "코드가 올바르지 않거나 만료되었습니다"}


@pytest.mark.asyncio
async def test_redeem_password_mismatch(
    client: AsyncClient, delivery: RecordingDelivery, reset_tokens: ResetTokenStore, member: Member
):
    token = await obtain_token(client, delivery)

    response = await client.post(
        "/api/password-reset/redeem",
        json={"token": token, "new_password": NEW_PASSWORD, "new_password_confirm": "other456!"},
    )
    assert response.status_code == 422
    assert await reset_tokens.resolve(token) == member.id


@pytest.mark.asyncio
async def test_redeem_weak_password(
    client: AsyncClient, delivery: RecordingDelivery, member: Member
):
    token = await obtain_token(client, delivery)

    response = await client.post(
        "/api/password-reset/redeem",
        json={"token": token, "new_password": "password", "new_password_confirm": "password"},
    )
    assert response.status_code == 422


@pytest.mark.asyncio
async def test_redeem_unknown_token(client: AsyncClient):
    response = await client.post(
        "/api/password-reset/redeem",
        json={"token": "f" * 64, "new_password": NEW_PASSWORD, "new_password_confirm": NEW_PASSWORD},
    )
    assert response.status_code == 400
    assert response.json() == {"detail": INVALID_REQUEST}
