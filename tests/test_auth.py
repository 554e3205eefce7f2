import json
from datetime import datetime, timedelta, timezone
from urllib.parse import parse_qs, urlparse

import pytest
from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from app.exceptions import BadRequestError, ConflictError, InvalidCredentialsError, InvalidTokenError
from app.models.refresh_token import RefreshToken
from app.models.user import User
from app.services import auth_service

TEST_PASSWORD = "Str0ng!Pass"

REGISTER_PAYLOAD = {
    "first_name": "Ada",
    "last_name": "Lovelace",
    "email": "ada@example.com",
    "phone_number": "08011112222",
    "password": "Engine#1843",
}


# --- Service level ---


@pytest.mark.asyncio
async def test_register_user_creates_account(db_session: AsyncSession):
    tokens = await auth_service.register_user(
        db=db_session,
        first_name="Ada",
        last_name="Lovelace",
        email="ada@example.com",
        password="Engine#1843",
    )
    assert tokens["access_token"]
    assert tokens["refresh_token"]
    assert tokens["user"].email == "ada@example.com"
    assert tokens["user"].password_hash != "Engine#1843"


@pytest.mark.asyncio
async def test_register_duplicate_email(db_session: AsyncSession, test_user: User):
    with pytest.raises(ConflictError):
        await auth_service.register_user(
            db=db_session,
            first_name="Other",
            last_name="Person",
            email=test_user.email,
            password="Engine#1843",
        )


@pytest.mark.asyncio
async def test_login_wrong_password(db_session: AsyncSession, test_user: User):
    with pytest.raises(InvalidCredentialsError):
        await auth_service.login(db_session, test_user.email, "Wrong#Pass1")


@pytest.mark.asyncio
async def test_login_unknown_email(db_session: AsyncSession):
    with pytest.raises(InvalidCredentialsError):
        await auth_service.login(db_session, "nobody@example.com", TEST_PASSWORD)


@pytest.mark.asyncio
async def test_login_without_password_hash(db_session: AsyncSession, test_user: User):
    test_user.password_hash = None
    await db_session.commit()

    with pytest.raises(InvalidCredentialsError):
        await auth_service.login(db_session, test_user.email, TEST_PASSWORD)


@pytest.mark.asyncio
async def test_login_revokes_earlier_refresh_tokens(db_session: AsyncSession, test_user: User):
    first = await auth_service.login(db_session, test_user.email, TEST_PASSWORD)
    second = await auth_service.login(db_session, test_user.email, TEST_PASSWORD)
    await db_session.commit()

    count = await db_session.execute(
        select(func.count(RefreshToken.id)).where(RefreshToken.user_id == test_user.id)
    )
    assert count.scalar_one() == 1

    with pytest.raises(InvalidTokenError):
        await auth_service.refresh(db_session, first["refresh_token"])
    rotated = await auth_service.refresh(db_session, second["refresh_token"])
    assert rotated["refresh_token"] != second["refresh_token"]


@pytest.mark.asyncio
async def test_refresh_rejects_expired_token(db_session: AsyncSession, test_user: User):
    db_session.add(RefreshToken(
        user_id=test_user.id,
        token="expired-token",
        expires_at=datetime.now(timezone.utc) - timedelta(minutes=1),
    ))
    await db_session.commit()

    with pytest.raises(InvalidTokenError):
        await auth_service.refresh(db_session, "expired-token")


@pytest.mark.asyncio
async def test_validate_otp_wrong_code(fake_redis):
    await fake_redis.set(
        "forgotten-password-abc",
        json.dumps({"otp": "123456", "email": "a@example.com"}),
        ex=300,
    )
    with pytest.raises(BadRequestError):
        await auth_service.validate_password_reset_otp(fake_redis, "abc", "654321")


def test_generate_otp_is_six_digits():
    for _ in range(50):
        otp = auth_service.generate_otp()
        assert len(otp) == 6
        assert otp.isdigit()


def test_linkedin_authorization_url():
    url = auth_service.linkedin_authorization_url("state-123")
    parsed = urlparse(url)
    params = parse_qs(parsed.query)

    assert parsed.netloc == "www.linkedin.com"
    assert params["response_type"] == ["code"]
    assert params["state"] == ["state-123"]
    assert params["scope"] == ["r_liteprofile r_emailaddress"]


# --- HTTP ---


@pytest.mark.asyncio
async def test_register_endpoint(client):
    response = await client.post("/api/v1/auth/register", json=REGISTER_PAYLOAD)
    assert response.status_code == 201
    body = response.json()
    assert body["success"] is True
    assert body["error"] is None
    data = body["data"]
    assert data["token_type"] == "bearer"
    assert data["expires_in"] == 900
    assert data["user"]["email"] == "ada@example.com"
    assert "password_hash" not in data["user"]


@pytest.mark.asyncio
async def test_register_duplicate_endpoint(client):
    await client.post("/api/v1/auth/register", json=REGISTER_PAYLOAD)
    response = await client.post("/api/v1/auth/register", json=REGISTER_PAYLOAD)
    assert response.status_code == 409
    assert response.json()["success"] is False
    assert response.json()["error"] == "email already exists"


@pytest.mark.asyncio
async def test_register_weak_password(client):
    payload = {**REGISTER_PAYLOAD, "password": "engine#1843"}
    response = await client.post("/api/v1/auth/register", json=payload)
    assert response.status_code == 400
    assert response.json()["error"] == "password must contain at least one uppercase letter"


@pytest.mark.asyncio
async def test_login_endpoint(client, test_user):
    response = await client.post("/api/v1/auth/login", json={
        "email": test_user.email,
        "password": TEST_PASSWORD,
    })
    assert response.status_code == 200
    data = response.json()["data"]
    assert data["access_token"]
    assert data["user"]["id"] == str(test_user.id)


@pytest.mark.asyncio
async def test_login_endpoint_bad_credentials(client, test_user):
    response = await client.post("/api/v1/auth/login", json={
        "email": test_user.email,
        "password": "Wrong#Pass1",
    })
    assert response.status_code == 401
    assert response.json()["error"] == "invalid credentials"


@pytest.mark.asyncio
async def test_refresh_and_logout_endpoints(client, test_user):
    login = await client.post("/api/v1/auth/login", json={
        "email": test_user.email,
        "password": TEST_PASSWORD,
    })
    old_refresh = login.json()["data"]["refresh_token"]

    response = await client.post("/api/v1/auth/refresh", json={"refresh_token": old_refresh})
    assert response.status_code == 200
    new_refresh = response.json()["data"]["refresh_token"]
    assert new_refresh != old_refresh

    # Consumed token cannot be reused
    response = await client.post("/api/v1/auth/refresh", json={"refresh_token": old_refresh})
    assert response.status_code == 401

    response = await client.post("/api/v1/auth/logout", json={"refresh_token": new_refresh})
    assert response.status_code == 200
    assert response.json()["message"] == "logout successful"

    response = await client.post("/api/v1/auth/refresh", json={"refresh_token": new_refresh})
    assert response.status_code == 401


@pytest.mark.asyncio
async def test_logout_unknown_token_is_ok(client):
    response = await client.post("/api/v1/auth/logout", json={"refresh_token": "unknown"})
    assert response.status_code == 200


@pytest.mark.asyncio
async def test_linkedin_login_redirects_with_state_cookie(client):
    response = await client.get("/api/v1/auth/linkedin/login")
    assert response.status_code == 302
    assert response.headers["location"].startswith("https://www.linkedin.com/oauth/v2/authorization?")

    cookie = response.headers["set-cookie"]
    assert "oauth_state=" in cookie
    assert "HttpOnly" in cookie
    assert "Max-Age=300" in cookie

    state = parse_qs(urlparse(response.headers["location"]).query)["state"][0]
    assert f"oauth_state={state}" in cookie


# --- Password reset flow ---


@pytest.mark.asyncio
async def test_password_reset_flow(client, test_user, fake_redis):
    response = await client.post("/api/v1/auth/forgot-password", json={"email": test_user.email})
    assert response.status_code == 200
    data = response.json()["data"]
    session_id, otp = data["session_id"], data["otp"]

    key = f"forgotten-password-{session_id}"
    stored = json.loads(fake_redis._store[key])
    assert stored["otp"] == otp
    assert stored["email"] == test_user.email
    assert fake_redis._ttls[key] == 300

    response = await client.post("/api/v1/auth/forgot-password/validate", json={
        "session_id": session_id,
        "otp": otp,
    })
    assert response.status_code == 200
    assert response.json()["data"]["is_valid"] is True
    assert json.loads(fake_redis._store[key])["is_valid"] is True

    response = await client.post("/api/v1/auth/reset-password", json={
        "session_id": session_id,
        "new_password": "Brand#New99",
    })
    assert response.status_code == 200
    assert key not in fake_redis._store

    response = await client.post("/api/v1/auth/login", json={
        "email": test_user.email,
        "password": "Brand#New99",
    })
    assert response.status_code == 200

    # Single use
    response = await client.post("/api/v1/auth/reset-password", json={
        "session_id": session_id,
        "new_password": "Another#Pass1",
    })
    assert response.status_code == 400
    assert response.json()["error"] == "invalid operation step"


@pytest.mark.asyncio
async def test_forgot_password_unknown_email(client, fake_redis):
    response = await client.post("/api/v1/auth/forgot-password", json={"email": "ghost@example.com"})
    assert response.status_code == 200
    data = response.json()["data"]
    assert data["session_id"]
    assert data["otp"] is None
    assert fake_redis._store == {}


@pytest.mark.asyncio
async def test_validate_otp_wrong_code_endpoint(client, test_user):
    response = await client.post("/api/v1/auth/forgot-password", json={"email": test_user.email})
    data = response.json()["data"]
    wrong = "000000" if data["otp"] != "000000" else "111111"

    response = await client.post("/api/v1/auth/forgot-password/validate", json={
        "session_id": data["session_id"],
        "otp": wrong,
    })
    assert response.status_code == 400
    assert response.json()["error"] == "invalid OTP token"


@pytest.mark.asyncio
async def test_reset_password_requires_validation(client, test_user):
    response = await client.post("/api/v1/auth/forgot-password", json={"email": test_user.email})
    session_id = response.json()["data"]["session_id"]

    response = await client.post("/api/v1/auth/reset-password", json={
        "session_id": session_id,
        "new_password": "Brand#New99",
    })
    assert response.status_code == 401
    assert response.json()["error"] == "unauthorized request access"


@pytest.mark.asyncio
async def test_reset_password_enforces_policy(client, test_user):
    response = await client.post("/api/v1/auth/forgot-password", json={"email": test_user.email})
    data = response.json()["data"]
    await client.post("/api/v1/auth/forgot-password/validate", json={
        "session_id": data["session_id"],
        "otp": data["otp"],
    })

    response = await client.post("/api/v1/auth/reset-password", json={
        "session_id": data["session_id"],
        "new_password": "nouppercase1!",
    })
    assert response.status_code == 400


# --- Long passwords ---


@pytest.mark.asyncio
async def test_register_rejects_password_over_72_bytes(client):
    payload = {**REGISTER_PAYLOAD, "password": "Aa1!" + "é" * 40}
    response = await client.post("/api/v1/auth/register", json=payload)
    assert response.status_code == 400
    assert response.json()["error"] == "password must be at most 72 bytes long"

    payload = {**REGISTER_PAYLOAD, "password": "Aa1!" + "x" * 76}
    response = await client.post("/api/v1/auth/register", json=payload)
    assert response.status_code == 400
    assert "truncate" not in response.json()["error"]


@pytest.mark.asyncio
async def test_login_with_overlong_password_is_invalid_credentials(client, test_user):
    response = await client.post("/api/v1/auth/login", json={
        "email": test_user.email,
        "password": "Aa1!" + "x" * 76,
    })
    assert response.status_code == 401
    assert response.json()["error"] == "invalid credentials"


# --- Refresh token consumption ---


@pytest.mark.asyncio
async def test_refresh_consumes_token_in_store(db_session: AsyncSession, test_user: User):
    tokens = await auth_service.login(db_session, test_user.email, TEST_PASSWORD)
    await db_session.commit()

    await auth_service.refresh(db_session, tokens["refresh_token"])
    await db_session.commit()

    remaining = await db_session.execute(
        select(func.count(RefreshToken.id)).where(RefreshToken.token == tokens["refresh_token"])
    )
    assert remaining.scalar_one() == 0

    with pytest.raises(InvalidTokenError):
        await auth_service.refresh(db_session, tokens["refresh_token"])


@pytest.mark.asyncio
async def test_refresh_same_token_twice_endpoint(client, test_user):
    login = await client.post("/api/v1/auth/login", json={
        "email": test_user.email,
        "password": TEST_PASSWORD,
    })
    token = login.json()["data"]["refresh_token"]

    first = await client.post("/api/v1/auth/refresh", json={"refresh_token": token})
    second = await client.post("/api/v1/auth/refresh", json={"refresh_token": token})
    assert first.status_code == 200
    assert second.status_code == 401
    assert second.json()["error"] == "invalid token"
