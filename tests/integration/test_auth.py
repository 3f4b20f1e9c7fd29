from __future__ import annotations

import pytest
from httpx import AsyncClient
from sqlalchemy import select
from sqlalchemy.orm import Session

from academy_api.features.participants.models import Participant
from academy_api.features.users.models import User
from academy_api.settings import Settings
from tests.conftest import SUPER_ADMIN_EMAIL, SUPER_ADMIN_PASSWORD
from tests.fakes import FakeIdentityProvider, FakeSmsSender
from tests.utils import DEFAULT_PASSWORD, auth_headers, create_user, next_mobile

pytestmark = pytest.mark.asyncio

USER_AUTH = "/api/v1/user/auth"
ACADEMY_AUTH = "/api/v1/academy/auth"
ADMIN_AUTH = "/api/v1/admin/auth"


async def send_otp(client: AsyncClient, base: str, mobile: str, mode: str) -> str:
    response = await client.post(f"{base}/send-otp", json={"mobile": mobile, "mode": mode})
    assert response.status_code == 200, response.text
    return response.json()["data"]["otp"]


async def test_user_registers_with_otp(
    async_client: AsyncClient, db_session: Session, sms_sender: FakeSmsSender
) -> None:
    mobile = next_mobile()
    code = await send_otp(async_client, USER_AUTH, mobile, "register")

    assert sms_sender.messages[-1][0] == mobile
    assert code in sms_sender.messages[-1][1]

    verified = await async_client.post(
        f"{USER_AUTH}/verify-otp", json={"mobile": mobile, "otp": code, "mode": "register"}
    )
    assert verified.status_code == 200
    verification = verified.json()["data"]
    assert verification["is_registered"] is False
    assert verification["registration_token"]

    registered = await async_client.post(
        f"{USER_AUTH}/register",
        json={
            "registration_token": verification["registration_token"],
            "first_name": "Meera",
            "last_name": "Iyer",
            "email": "meera@example.com",
            "password": DEFAULT_PASSWORD,
        },
    )

    assert registered.status_code == 201, registered.text
    data = registered.json()["data"]
    assert data["user"]["mobile"] == mobile
    assert data["user"]["roles"] == ["user"]
    assert data["tokens"]["token_type"] == "Bearer"

    user = db_session.execute(select(User).where(User.mobile == mobile)).scalar_one()
    participants = db_session.execute(
        select(Participant).where(Participant.user_id == user.id)
    ).scalars().all()
    assert [participant.is_self for participant in participants] == [True]


async def test_register_rejects_taken_mobile(
    async_client: AsyncClient, db_session: Session
) -> None:
    user = create_user(db_session)
    db_session.commit()

    response = await async_client.post(
        f"{USER_AUTH}/send-otp", json={"mobile": user.mobile, "mode": "register"}
    )

    assert response.status_code == 409


async def test_otp_login_returns_tokens(async_client: AsyncClient, db_session: Session) -> None:
    user = create_user(db_session)
    db_session.commit()

    code = await send_otp(async_client, USER_AUTH, user.mobile, "login")
    response = await async_client.post(
        f"{USER_AUTH}/verify-otp", json={"mobile": user.mobile, "otp": code}
    )

    assert response.status_code == 200
    data = response.json()["data"]
    assert data["is_registered"] is True
    assert data["user"]["id"] == str(user.id)
    assert data["tokens"]["access_token"]


async def test_wrong_otp_is_counted_and_eventually_consumed(
    async_client: AsyncClient, db_session: Session, settings: Settings
) -> None:
    user = create_user(db_session)
    db_session.commit()
    code = await send_otp(async_client, USER_AUTH, user.mobile, "login")
    wrong = f"{(int(code) + 1) % 10 ** len(code):0{len(code)}d}"

    for _ in range(settings.otp_max_attempts):
        response = await async_client.post(
            f"{USER_AUTH}/verify-otp", json={"mobile": user.mobile, "otp": wrong}
        )
        assert response.status_code == 400
        assert response.json()["message"] == "Invalid OTP"

    blocked = await async_client.post(
        f"{USER_AUTH}/verify-otp", json={"mobile": user.mobile, "otp": code}
    )
    assert blocked.status_code == 400
    assert blocked.json()["message"].startswith("Too many invalid attempts")

    gone = await async_client.post(
        f"{USER_AUTH}/verify-otp", json={"mobile": user.mobile, "otp": code}
    )
    assert gone.json()["message"] == "OTP not found or already used"


async def test_sms_failure_returns_bad_gateway(
    async_client: AsyncClient, sms_sender: FakeSmsSender
) -> None:
    sms_sender.fail = True

    response = await async_client.post(
        f"{USER_AUTH}/send-otp", json={"mobile": next_mobile(), "mode": "register"}
    )

    assert response.status_code == 502


async def test_password_login_and_me(async_client: AsyncClient, db_session: Session) -> None:
    user = create_user(db_session, email="login@example.com")
    db_session.commit()

    response = await async_client.post(
        f"{USER_AUTH}/login", json={"email": "login@example.com", "password": DEFAULT_PASSWORD}
    )
    assert response.status_code == 200
    token = response.json()["data"]["tokens"]["access_token"]

    me = await async_client.get(f"{USER_AUTH}/me", headers={"Authorization": f"Bearer {token}"})
    assert me.status_code == 200
    assert me.json()["data"]["id"] == str(user.id)


async def test_password_login_rejects_bad_password(
    async_client: AsyncClient, db_session: Session
) -> None:
    user = create_user(db_session)
    db_session.commit()

    response = await async_client.post(
        f"{USER_AUTH}/login", json={"mobile": user.mobile, "password": "Wrong@1234"}
    )

    assert response.status_code == 401
    assert response.json() == {"success": False, "message": "Invalid credentials"}


async def test_login_requires_an_identifier(async_client: AsyncClient) -> None:
    response = await async_client.post(f"{USER_AUTH}/login", json={"password": "x"})

    assert response.status_code == 400
    assert response.json()["message"] == "Validation failed"


async def test_academy_surface_rejects_student_password_login(
    async_client: AsyncClient, db_session: Session
) -> None:
    user = create_user(db_session)
    db_session.commit()

    response = await async_client.post(
        f"{ACADEMY_AUTH}/login", json={"mobile": user.mobile, "password": DEFAULT_PASSWORD}
    )

    assert response.status_code == 403


async def test_deactivated_account_cannot_login(
    async_client: AsyncClient, db_session: Session
) -> None:
    user = create_user(db_session, is_active=False)
    db_session.commit()

    response = await async_client.post(
        f"{USER_AUTH}/login", json={"mobile": user.mobile, "password": DEFAULT_PASSWORD}
    )

    assert response.status_code == 403
    assert response.json()["message"] == "Your account has been deactivated"


async def test_refresh_rotates_and_revokes_old_token(
    async_client: AsyncClient, db_session: Session
) -> None:
    user = create_user(db_session)
    db_session.commit()
    login = await async_client.post(
        f"{USER_AUTH}/login",
        json={
            "mobile": user.mobile,
            "password": DEFAULT_PASSWORD,
            "device": {"device_type": "android", "device_id": "pixel-7"},
        },
    )
    refresh_token = login.json()["data"]["tokens"]["refresh_token"]

    rotated = await async_client.post(
        f"{USER_AUTH}/refresh", json={"refresh_token": refresh_token, "device_id": "pixel-7"}
    )
    assert rotated.status_code == 200
    assert rotated.json()["data"]["refresh_token"] != refresh_token

    replay = await async_client.post(f"{USER_AUTH}/refresh", json={"refresh_token": refresh_token})
    assert replay.status_code == 401
    assert replay.json()["message"] == "Refresh token has been revoked"


async def test_refresh_is_bound_to_device(async_client: AsyncClient, db_session: Session) -> None:
    user = create_user(db_session)
    db_session.commit()
    login = await async_client.post(
        f"{USER_AUTH}/login",
        json={
            "mobile": user.mobile,
            "password": DEFAULT_PASSWORD,
            "device": {"device_type": "ios", "device_id": "iphone"},
        },
    )
    refresh_token = login.json()["data"]["tokens"]["refresh_token"]

    response = await async_client.post(
        f"{USER_AUTH}/refresh", json={"refresh_token": refresh_token, "device_id": "tablet"}
    )

    assert response.status_code == 401


async def test_logout_revokes_access_token(async_client: AsyncClient, db_session: Session) -> None:
    user = create_user(db_session)
    db_session.commit()
    login = await async_client.post(
        f"{USER_AUTH}/login", json={"mobile": user.mobile, "password": DEFAULT_PASSWORD}
    )
    tokens = login.json()["data"]["tokens"]
    headers = {"Authorization": f"Bearer {tokens['access_token']}"}

    logout = await async_client.post(
        f"{USER_AUTH}/logout", json={"refresh_token": tokens["refresh_token"]}, headers=headers
    )
    assert logout.status_code == 200

    me = await async_client.get(f"{USER_AUTH}/me", headers=headers)
    assert me.status_code == 401
    refresh = await async_client.post(
        f"{USER_AUTH}/refresh", json={"refresh_token": tokens["refresh_token"]}
    )
    assert refresh.status_code == 401


async def test_missing_token_is_unauthorized(async_client: AsyncClient) -> None:
    response = await async_client.get(f"{USER_AUTH}/me")

    assert response.status_code == 401
    assert response.headers.get("WWW-Authenticate") == "Bearer"


async def test_forgot_password_by_mobile(async_client: AsyncClient, db_session: Session) -> None:
    user = create_user(db_session)
    db_session.commit()

    requested = await async_client.post(
        f"{USER_AUTH}/forgot-password/request", json={"mode": "mobile", "mobile": user.mobile}
    )
    assert requested.status_code == 200
    code = requested.json()["data"]["otp"]

    reset = await async_client.post(
        f"{USER_AUTH}/forgot-password/verify",
        json={"mode": "mobile", "mobile": user.mobile, "otp": code, "new_password": "N3w@Pass99"},
    )
    assert reset.status_code == 200

    old = await async_client.post(
        f"{USER_AUTH}/login", json={"mobile": user.mobile, "password": DEFAULT_PASSWORD}
    )
    new = await async_client.post(
        f"{USER_AUTH}/login", json={"mobile": user.mobile, "password": "N3w@Pass99"}
    )
    assert old.status_code == 401
    assert new.status_code == 200


async def test_change_password_checks_current(
    async_client: AsyncClient, db_session: Session, settings: Settings
) -> None:
    user = create_user(db_session)
    db_session.commit()
    headers = auth_headers(user, settings)

    wrong = await async_client.post(
        f"{USER_AUTH}/me/change-password",
        json={"current_password": "Nope@1234", "new_password": "N3w@Pass99"},
        headers=headers,
    )
    assert wrong.status_code == 400

    changed = await async_client.post(
        f"{USER_AUTH}/me/change-password",
        json={"current_password": DEFAULT_PASSWORD, "new_password": "N3w@Pass99"},
        headers=headers,
    )
    assert changed.status_code == 200


async def test_social_login_creates_then_links(
    async_client: AsyncClient, identity_provider: FakeIdentityProvider, db_session: Session
) -> None:
    identity_provider.register("google-token", uid="g-1", email="social@example.com", name="Ravi K")

    first = await async_client.post(
        f"{USER_AUTH}/social-login", json={"provider": "google", "id_token": "google-token"}
    )
    second = await async_client.post(
        f"{USER_AUTH}/social-login", json={"provider": "google", "id_token": "google-token"}
    )

    assert first.status_code == 200, first.text
    assert first.json()["data"]["user"]["first_name"] == "Ravi"
    assert first.json()["data"]["user"]["registration_method"] == "google"
    assert second.json()["data"]["user"]["id"] == first.json()["data"]["user"]["id"]
    count = db_session.execute(
        select(User).where(User.email == "social@example.com")
    ).scalars().all()
    assert len(count) == 1


async def test_social_login_rejects_unknown_token(async_client: AsyncClient) -> None:
    response = await async_client.post(
        f"{USER_AUTH}/social-login", json={"provider": "google", "id_token": "forged"}
    )
    assert response.status_code == 401


async def test_social_login_cannot_reach_staff_accounts(
    async_client: AsyncClient, identity_provider: FakeIdentityProvider, db_session: Session
) -> None:
    boss = create_user(db_session, roles=("super_admin",), email="boss@example.com")
    db_session.commit()
    identity_provider.register("boss-token", uid="g-boss", email="boss@example.com")

    response = await async_client.post(
        f"{USER_AUTH}/social-login", json={"provider": "google", "id_token": "boss-token"}
    )

    assert response.status_code == 403
    assert response.json()["message"] == "This account cannot sign in here"
    db_session.expire_all()
    assert db_session.get(User, boss.id).social_uid is None


async def test_social_login_refuses_unverified_email_for_existing_account(
    async_client: AsyncClient, identity_provider: FakeIdentityProvider, db_session: Session
) -> None:
    parent = create_user(db_session, email="parent@example.com")
    db_session.commit()
    identity_provider.register(
        "unverified-token", uid="g-2", email="parent@example.com", email_verified=False
    )

    response = await async_client.post(
        f"{USER_AUTH}/social-login", json={"provider": "google", "id_token": "unverified-token"}
    )

    assert response.status_code == 403
    assert response.json()["message"] == "Verify your email with the provider before signing in"
    db_session.expire_all()
    assert db_session.get(User, parent.id).social_uid is None


async def test_social_login_drops_unverified_email_on_signup(
    async_client: AsyncClient, identity_provider: FakeIdentityProvider
) -> None:
    identity_provider.register(
        "fresh-token", uid="g-3", email="fresh@example.com", name="Asha", email_verified=False
    )

    response = await async_client.post(
        f"{USER_AUTH}/social-login", json={"provider": "google", "id_token": "fresh-token"}
    )

    assert response.status_code == 200, response.text
    assert response.json()["data"]["user"].get("email") is None


async def test_academy_registration_promotes_student(
    async_client: AsyncClient, db_session: Session
) -> None:
    student = create_user(db_session, email="parent@example.com")
    db_session.commit()

    code = await send_otp(async_client, ACADEMY_AUTH, student.mobile, "register")
    response = await async_client.post(
        f"{ACADEMY_AUTH}/register",
        json={
            "mobile": student.mobile,
            "otp": code,
            "first_name": "Parent",
            "email": "parent@example.com",
            "password": "Ac@demy123",
            "academy_name": "Sunrise Cricket",
        },
    )

    assert response.status_code == 201, response.text
    assert sorted(response.json()["data"]["user"]["roles"]) == ["academy", "user"]
    assert response.json()["data"]["user"]["id"] == str(student.id)


async def test_admin_login_and_permissions(async_client: AsyncClient) -> None:
    login = await async_client.post(
        f"{ADMIN_AUTH}/login",
        json={"email": SUPER_ADMIN_EMAIL, "password": SUPER_ADMIN_PASSWORD},
    )
    assert login.status_code == 200, login.text
    token = login.json()["data"]["tokens"]["access_token"]

    me = await async_client.get(f"{ADMIN_AUTH}/me", headers={"Authorization": f"Bearer {token}"})

    assert me.status_code == 200
    profile = me.json()["data"]
    assert "super_admin" in profile["roles"]
    assert profile["permissions"]


async def test_admin_surface_rejects_students(
    async_client: AsyncClient, db_session: Session
) -> None:
    user = create_user(db_session, email="student@example.com")
    db_session.commit()

    response = await async_client.post(
        f"{ADMIN_AUTH}/login", json={"email": user.email, "password": DEFAULT_PASSWORD}
    )

    assert response.status_code == 403
