from datetime import timedelta

import pytest

from src.codeprep.crud.crud_password_reset import generate_otp, password_reset as crud_password_reset
from src.codeprep.models import PasswordReset
from src.codeprep.models.base import utcnow

NEW_PASSWORD = "fresh-password-456"


@pytest.fixture
def issue_code(session_factory):
    async def _issue_code(user, **kwargs) -> PasswordReset:
        async with session_factory() as session:
            return await crud_password_reset.issue(session, user=user, **kwargs)

    return _issue_code


def test_codes_are_six_digits():
    otp = generate_otp()

    assert len(otp) == 6
    assert otp.isdigit()


async def test_verify_valid_code(client, user_a, issue_code):
    reset = await issue_code(user_a)

    response = await client.post("/api/v1/auth/verify-otp", json={"email": user_a.email, "otp": reset.otp})

    assert response.status_code == 200
    assert response.json() == {"success": True, "message": "OTP verified successfully"}


async def test_verify_matches_email_case_insensitively(client, user_a, issue_code):
    reset = await issue_code(user_a)

    response = await client.post("/api/v1/auth/verify-otp", json={"email": "ALICE@example.com", "otp": reset.otp})

    assert response.status_code == 200


async def test_verify_rejects_wrong_code(client, user_a, user_b, issue_code):
    reset = await issue_code(user_a)

    wrong_otp = await client.post(
        "/api/v1/auth/verify-otp", json={"email": user_a.email, "otp": "x" + reset.otp}
    )
    other_email = await client.post("/api/v1/auth/verify-otp", json={"email": user_b.email, "otp": reset.otp})

    assert wrong_otp.status_code == 400
    assert wrong_otp.json() == {"success": False, "message": "Invalid or expired OTP"}
    assert other_email.status_code == 400


async def test_verify_rejects_expired_code(client, user_a, issue_code):
    reset = await issue_code(user_a, now=utcnow() - timedelta(hours=1))

    response = await client.post("/api/v1/auth/verify-otp", json={"email": user_a.email, "otp": reset.otp})

    assert response.status_code == 400


async def test_verify_requires_email_and_code(client):
    response = await client.post("/api/v1/auth/verify-otp", json={"email": "alice@example.com"})

    assert response.status_code == 400


async def test_reset_password_spends_code(client, user_a, issue_code):
    reset = await issue_code(user_a)
    payload = {"email": user_a.email, "otp": reset.otp, "newPassword": NEW_PASSWORD}

    response = await client.post("/api/v1/auth/reset-password", json=payload)

    assert response.status_code == 200
    login = await client.post("/api/v1/auth/login", data={"username": user_a.email, "password": NEW_PASSWORD})
    assert login.status_code == 200

    again = await client.post("/api/v1/auth/reset-password", json=payload)
    assert again.status_code == 400
    verify = await client.post("/api/v1/auth/verify-otp", json={"email": user_a.email, "otp": reset.otp})
    assert verify.status_code == 400


async def test_reset_password_refuses_oauth_accounts(client, make_user, issue_code):
    oauth_user = await make_user("gina", password="", auth_provider="google")
    reset = await issue_code(oauth_user)

    response = await client.post(
        "/api/v1/auth/reset-password",
        json={"email": oauth_user.email, "otp": reset.otp, "newPassword": NEW_PASSWORD},
    )

    assert response.status_code == 400
