from __future__ import annotations

from uuid import uuid4

import pytest
from httpx import AsyncClient
from sqlalchemy.orm import Session

from academy_api.features.users.models import User
from academy_api.settings import Settings
from tests.fakes import FakeEmailSender, FakeSmsSender
from tests.utils import auth_headers, create_user

pytestmark = pytest.mark.asyncio

ADMIN = "/api/v1/admin/notifications"
INBOX = "/api/v1/user/notifications"


@pytest.fixture()
def admin_headers(db_session: Session, settings: Settings) -> dict[str, str]:
    admin = create_user(db_session, roles=("admin",))
    db_session.commit()
    return auth_headers(admin, settings)


@pytest.fixture()
def student(db_session: Session) -> User:
    user = create_user(db_session)
    db_session.commit()
    return user


async def notify(
    client: AsyncClient, headers: dict[str, str], recipient: User, **fields: object
) -> dict:
    payload = {
        "recipient_type": "user",
        "recipient_id": str(recipient.id),
        "title": "Batch moved",
        "body": "Saturday practice starts at 7am.",
        **fields,
    }
    response = await client.post(ADMIN, json=payload, headers=headers)
    assert response.status_code == 201, response.text
    return response.json()["data"]


async def test_send_delivers_over_sms_and_email(
    async_client: AsyncClient,
    admin_headers: dict[str, str],
    student: User,
    sms_sender: FakeSmsSender,
    email_sender: FakeEmailSender,
) -> None:
    result = await notify(
        async_client,
        admin_headers,
        student,
        channels=["sms", "email", "whatsapp", "sms"],
        priority="high",
    )

    assert result == {"created": 1, "sent": 1, "failed": 0}
    assert sms_sender.messages == [
        (student.mobile, "Batch moved\nSaturday practice starts at 7am.")
    ]
    assert email_sender.messages == [
        (student.email, "Batch moved", "Saturday practice starts at 7am.")
    ]

    listing = await async_client.get(
        ADMIN, params={"recipient_id": str(student.id)}, headers=admin_headers
    )
    stored = listing.json()["data"]["items"][0]
    assert stored["channels"] == ["sms", "email", "whatsapp"]
    assert stored["priority"] == "high"
    assert stored["sent"] is True
    assert stored["error"] == "whatsapp: no provider configured"


async def test_broadcast_reaches_every_account_of_the_type(
    async_client: AsyncClient, db_session: Session, admin_headers: dict[str, str], student: User
) -> None:
    create_user(db_session, roles=("academy",))
    create_user(db_session, roles=("academy",))
    create_user(db_session, roles=("academy",), is_active=False)
    db_session.commit()

    response = await async_client.post(
        ADMIN,
        json={"recipient_type": "academy", "title": "Payouts", "body": "Payouts run Friday."},
        headers=admin_headers,
    )

    assert response.status_code == 201, response.text
    assert response.json()["data"] == {"created": 2, "sent": 2, "failed": 0}
    academy = await async_client.get(
        ADMIN, params={"recipient_type": "academy"}, headers=admin_headers
    )
    assert academy.json()["data"]["total"] == 2


async def test_provider_failures_are_recorded(
    async_client: AsyncClient,
    admin_headers: dict[str, str],
    student: User,
    sms_sender: FakeSmsSender,
) -> None:
    sms_sender.fail = True

    result = await notify(async_client, admin_headers, student, channels=["sms"])

    assert result == {"created": 1, "sent": 0, "failed": 1}
    unsent = await async_client.get(ADMIN, params={"sent": False}, headers=admin_headers)
    items = unsent.json()["data"]["items"]
    assert [item["error"] for item in items] == ["sms: SMS provider unavailable"]


async def test_disabled_channels_are_skipped(
    async_client: AsyncClient,
    admin_headers: dict[str, str],
    student: User,
    sms_sender: FakeSmsSender,
) -> None:
    toggled = await async_client.patch(
        "/api/v1/admin/settings", json={"notifications": {"sms": False}}, headers=admin_headers
    )
    assert toggled.status_code == 200, toggled.text

    result = await notify(async_client, admin_headers, student, channels=["sms", "email"])

    assert result["sent"] == 1
    assert sms_sender.messages == []
    listing = await async_client.get(ADMIN, headers=admin_headers)
    assert listing.json()["data"]["items"][0]["error"] == "sms: disabled"


async def test_unknown_recipient_is_not_found(
    async_client: AsyncClient, admin_headers: dict[str, str]
) -> None:
    response = await async_client.post(
        ADMIN,
        json={
            "recipient_type": "user",
            "recipient_id": str(uuid4()),
            "title": "Hello",
            "body": "Anyone there?",
        },
        headers=admin_headers,
    )

    assert response.status_code == 404
    assert response.json()["message"] == "Recipient not found"


async def test_employees_cannot_send(
    async_client: AsyncClient, db_session: Session, settings: Settings, student: User
) -> None:
    employee = create_user(db_session, roles=("employee",))
    db_session.commit()

    response = await async_client.post(
        ADMIN,
        json={"recipient_type": "user", "title": "Hi", "body": "Hello"},
        headers=auth_headers(employee, settings),
    )

    assert response.status_code == 403


async def test_inbox_tracks_read_state(
    async_client: AsyncClient,
    admin_headers: dict[str, str],
    settings: Settings,
    student: User,
) -> None:
    await notify(async_client, admin_headers, student, title="First")
    await notify(async_client, admin_headers, student, title="Second")
    await notify(async_client, admin_headers, student, title="Third")
    headers = auth_headers(student, settings)

    inbox = await async_client.get(INBOX, headers=headers)
    items = inbox.json()["data"]["items"]
    assert inbox.json()["data"]["total"] == 3
    assert all(item["sent"] for item in items)

    marked = await async_client.patch(f"{INBOX}/{items[0]['id']}/read", headers=headers)
    assert marked.status_code == 200, marked.text
    assert marked.json()["data"]["is_read"] is True
    assert marked.json()["data"]["read_at"]

    count = await async_client.get(f"{INBOX}/unread-count", headers=headers)
    assert count.json()["data"] == {"unread": 2}
    read = await async_client.get(INBOX, params={"is_read": True}, headers=headers)
    assert [item["id"] for item in read.json()["data"]["items"]] == [items[0]["id"]]

    cleared = await async_client.post(f"{INBOX}/read-all", headers=headers)
    assert cleared.json()["data"] == {"updated": 2}
    count = await async_client.get(f"{INBOX}/unread-count", headers=headers)
    assert count.json()["data"] == {"unread": 0}


async def test_inbox_is_private(
    async_client: AsyncClient,
    db_session: Session,
    admin_headers: dict[str, str],
    settings: Settings,
    student: User,
) -> None:
    await notify(async_client, admin_headers, student)
    other = create_user(db_session)
    db_session.commit()
    mine = await async_client.get(INBOX, headers=auth_headers(student, settings))
    notification_id = mine.json()["data"]["items"][0]["id"]
    other_headers = auth_headers(other, settings)

    theirs = await async_client.get(INBOX, headers=other_headers)
    steal = await async_client.patch(f"{INBOX}/{notification_id}/read", headers=other_headers)
    academy_inbox = await async_client.get(
        "/api/v1/academy/notifications", headers=other_headers
    )

    assert theirs.json()["data"]["total"] == 0
    assert steal.status_code == 404
    assert steal.json()["message"] == "Notification not found"
    assert academy_inbox.status_code == 403
