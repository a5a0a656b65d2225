# /tests/test_users.py

from datetime import timedelta

import pytest

from app.core.security import create_access_token
from app.services import mailer


def student_payload(**overrides):
    payload = {
        "name": "Asha",
        "email": "asha@example.com",
        "password": "secret123",
        "role": "student",
        "branch": "CSE",
        "year": 3,
        "roll_number": "CSE-001",
    }
    payload.update(overrides)
    return payload


def teacher_payload(**overrides):
    payload = {
        "name": "Prof. Rao",
        "email": "rao@example.com",
        "password": "secret123",
        "role": "teacher",
        "branch": "CSE",
        "branches_handled": ["CSE", "IT"],
    }
    payload.update(overrides)
    return payload


def test_register_student_returns_user_and_token(client):
    response = client.post("/api/users/register", json=student_payload())
    assert response.status_code == 201
    body = response.json()
    assert body["email"] == "asha@example.com"
    assert body["role"] == "student"
    assert body["branch"] == "CSE"
    assert body["token"]
    assert "token" in response.cookies


def test_register_normalizes_email_case(client):
    response = client.post("/api/users/register", json=student_payload(email="Asha@Example.COM"))
    assert response.status_code == 201
    assert response.json()["email"] == "asha@example.com"


def test_duplicate_email_is_rejected_and_nothing_is_created(client):
    assert client.post("/api/users/register", json=student_payload()).status_code == 201
    response = client.post("/api/users/register", json=student_payload(roll_number="CSE-002"))
    assert response.status_code == 400
    assert response.json()["detail"] == "User already exists"

    # The original credentials still work and no second account shadows them
    login = client.post("/api/users/login", json={"email": "asha@example.com", "password": "secret123"})
    assert login.status_code == 200


def test_duplicate_roll_number_is_rejected(client):
    assert client.post("/api/users/register", json=student_payload()).status_code == 201
    response = client.post("/api/users/register", json=student_payload(email="other@example.com"))
    assert response.status_code == 400
    assert response.json()["detail"] == "Roll number already exists"

    login = client.post("/api/users/login", json={"email": "other@example.com", "password": "secret123"})
    assert login.status_code == 400


def test_student_requires_roll_number(client):
    response = client.post("/api/users/register", json=student_payload(roll_number=None))
    assert response.status_code == 400
    assert response.json()["detail"] == "Roll number is required for students"


def test_teacher_requires_branches_handled(client):
    response = client.post("/api/users/register", json=teacher_payload(branches_handled=[]))
    assert response.status_code == 400
    assert response.json()["detail"] == "Branches handled are required for teachers"


def test_invalid_role_or_branch_is_a_validation_error(client):
    assert client.post("/api/users/register", json=student_payload(role="admin")).status_code == 422
    assert client.post("/api/users/register", json=student_payload(branch="MECH")).status_code == 422


def test_blank_name_is_a_validation_error(client):
    response = client.post("/api/users/register", json=student_payload(name="   "))
    assert response.status_code == 422

    # Nothing was stored under that email
    retry = client.post("/api/users/register", json=student_payload())
    assert retry.status_code == 201


def test_update_profile_rejects_blank_name(client):
    token = client.post("/api/users/register", json=student_payload()).json()["token"]
    client.cookies.clear()
    headers = {"Authorization": f"Bearer {token}"}

    assert client.put("/api/users/profile", json={"name": "   "}, headers=headers).status_code == 422
    assert client.get("/api/users/profile", headers=headers).json()["name"] == "Asha"

    padded = client.put("/api/users/profile", json={"name": "  Asha K  "}, headers=headers)
    assert padded.json()["name"] == "Asha K"


def test_login_and_invalid_credentials(client):
    client.post("/api/users/register", json=teacher_payload())
    ok = client.post("/api/users/login", json={"email": "rao@example.com", "password": "secret123"})
    assert ok.status_code == 200
    assert ok.json()["role"] == "teacher"

    bad = client.post("/api/users/login", json={"email": "rao@example.com", "password": "wrong-pass"})
    assert bad.status_code == 400
    assert bad.json()["detail"] == "Invalid credentials"

    unknown = client.post("/api/users/login", json={"email": "nobody@example.com", "password": "secret123"})
    assert unknown.status_code == 400


def test_profile_requires_authentication(client):
    response = client.get("/api/users/profile")
    assert response.status_code == 401


def test_profile_with_bearer_header(client):
    token = client.post("/api/users/register", json=teacher_payload()).json()["token"]
    client.cookies.clear()
    response = client.get("/api/users/profile", headers={"Authorization": f"Bearer {token}"})
    assert response.status_code == 200
    assert response.json()["branches_handled"] == ["CSE", "IT"]
    assert "hashed_password" not in response.json()


def test_profile_with_cookie(client):
    client.post("/api/users/register", json=student_payload())
    # cookie set by registration is still in the jar
    response = client.get("/api/users/profile")
    assert response.status_code == 200
    assert response.json()["roll_number"] == "CSE-001"


def test_invalid_and_expired_tokens_are_rejected(client):
    user_id = client.post("/api/users/register", json=student_payload()).json()["id"]
    client.cookies.clear()

    garbage = client.get("/api/users/profile", headers={"Authorization": "Bearer not-a-token"})
    assert garbage.status_code == 401

    expired = create_access_token({"sub": str(user_id)}, expires_delta=timedelta(seconds=-10))
    response = client.get("/api/users/profile", headers={"Authorization": f"Bearer {expired}"})
    assert response.status_code == 401

    ghost = create_access_token({"sub": "99999"})
    assert client.get("/api/users/profile", headers={"Authorization": f"Bearer {ghost}"}).status_code == 401


def test_update_profile_name(client):
    token = client.post("/api/users/register", json=student_payload()).json()["token"]
    client.cookies.clear()
    response = client.put(
        "/api/users/profile",
        json={"name": "Asha K"},
        headers={"Authorization": f"Bearer {token}"},
    )
    assert response.status_code == 200
    assert response.json()["name"] == "Asha K"
    assert response.json()["role"] == "student"


def test_logout_clears_cookie(client):
    client.post("/api/users/register", json=student_payload())
    response = client.post("/api/users/logout")
    assert response.status_code == 200
    assert response.headers["set-cookie"].startswith("token=")
    assert "Max-Age=0" in response.headers["set-cookie"]


# --- Password reset ---

@pytest.fixture
def sent_otps(monkeypatch):
    sent = []

    async def fake_send(to_addr, name, otp):
        sent.append({"to": to_addr, "name": name, "otp": otp})
        return True

    monkeypatch.setattr(mailer, "send_password_reset_otp", fake_send)
    return sent


def test_forgot_password_unknown_email_is_generic_and_sends_nothing(client, sent_otps):
    response = client.post("/api/users/forgot-password", json={"email": "ghost@example.com"})
    assert response.status_code == 200
    assert "If an account exists" in response.json()["message"]
    assert sent_otps == []


def test_forgot_password_known_email_gives_same_message(client, sent_otps):
    client.post("/api/users/register", json=student_payload())
    response = client.post("/api/users/forgot-password", json={"email": "asha@example.com"})
    assert response.status_code == 200
    assert "If an account exists" in response.json()["message"]
    assert len(sent_otps) == 1
    otp = sent_otps[0]["otp"]
    assert len(otp) == 6 and otp.isdigit()


def test_forgot_password_hides_mail_failures(client, monkeypatch):
    import smtplib

    async def broken_send(to_addr, name, otp):
        raise smtplib.SMTPException("relay refused")

    monkeypatch.setattr(mailer, "send_password_reset_otp", broken_send)
    client.post("/api/users/register", json=student_payload())
    response = client.post("/api/users/forgot-password", json={"email": "asha@example.com"})
    assert response.status_code == 200


def test_reset_password_with_otp(client, sent_otps):
    client.post("/api/users/register", json=student_payload())
    client.post("/api/users/forgot-password", json={"email": "asha@example.com"})
    otp = sent_otps[0]["otp"]

    response = client.post(
        "/api/users/reset-password",
        json={"email": "asha@example.com", "otp": otp, "password": "brand-new-pass"},
    )
    assert response.status_code == 200

    old = client.post("/api/users/login", json={"email": "asha@example.com", "password": "secret123"})
    assert old.status_code == 400
    new = client.post("/api/users/login", json={"email": "asha@example.com", "password": "brand-new-pass"})
    assert new.status_code == 200

    # OTPs are single use
    again = client.post(
        "/api/users/reset-password",
        json={"email": "asha@example.com", "otp": otp, "password": "another-pass"},
    )
    assert again.status_code == 400


def test_reset_password_rejects_wrong_otp(client, sent_otps):
    client.post("/api/users/register", json=student_payload())
    client.post("/api/users/forgot-password", json={"email": "asha@example.com"})
    wrong = "000000" if sent_otps[0]["otp"] != "000000" else "111111"

    response = client.post(
        "/api/users/reset-password",
        json={"email": "asha@example.com", "otp": wrong, "password": "brand-new-pass"},
    )
    assert response.status_code == 400
    assert response.json()["detail"] == "Invalid or expired OTP"


def test_reset_password_rejects_expired_otp(client, sent_otps, monkeypatch):
    from app.routers import user as user_router
    from app.utils.dates import utcnow

    # Issue an OTP that is already past its window
    monkeypatch.setattr(user_router, "otp_expiry", lambda: utcnow() - timedelta(minutes=1))
    client.post("/api/users/register", json=student_payload())
    client.post("/api/users/forgot-password", json={"email": "asha@example.com"})
    otp = sent_otps[0]["otp"]

    response = client.post(
        "/api/users/reset-password",
        json={"email": "asha@example.com", "otp": otp, "password": "brand-new-pass"},
    )
    assert response.status_code == 400
