from __future__ import annotations

import pytest
from httpx import AsyncClient
from sqlalchemy.orm import Session

from academy_api.settings import Settings
from tests.utils import auth_headers, create_user

pytestmark = pytest.mark.asyncio

ADMIN = "/api/v1/admin/cms-pages"
PUBLIC = "/api/v1/cms"


@pytest.fixture()
def admin_headers(db_session: Session, settings: Settings) -> dict[str, str]:
    admin = create_user(db_session, roles=("admin",))
    db_session.commit()
    return auth_headers(admin, settings)


async def create_page(client: AsyncClient, headers: dict[str, str], **fields: object) -> dict:
    payload = {"slug": "terms", "title": "Terms of use", "content": "v1", **fields}
    response = await client.post(ADMIN, json=payload, headers=headers)
    assert response.status_code == 201, response.text
    return response.json()["data"]


async def test_create_page_normalises_slug(
    async_client: AsyncClient, admin_headers: dict[str, str]
) -> None:
    page = await create_page(async_client, admin_headers, slug="  Privacy-Policy ")

    assert page["slug"] == "privacy-policy"
    assert page["platform"] == "both"
    assert page["version"] == 1
    assert page["updated_by_id"]


async def test_invalid_slug_is_rejected(
    async_client: AsyncClient, admin_headers: dict[str, str]
) -> None:
    response = await async_client.post(
        ADMIN, json={"slug": "terms & conditions", "title": "Terms"}, headers=admin_headers
    )

    assert response.status_code == 400
    errors = response.json()["errors"]
    assert errors == [
        {
            "field": "slug",
            "message": "Slug can only contain lowercase letters, numbers, and hyphens",
        }
    ]


async def test_duplicate_slug_conflicts(
    async_client: AsyncClient, admin_headers: dict[str, str]
) -> None:
    await create_page(async_client, admin_headers)

    response = await async_client.post(
        ADMIN, json={"slug": "terms", "title": "Again"}, headers=admin_headers
    )

    assert response.status_code == 409


async def test_content_changes_bump_version(
    async_client: AsyncClient, admin_headers: dict[str, str]
) -> None:
    page = await create_page(async_client, admin_headers)
    url = f"{ADMIN}/{page['id']}"

    retitled = await async_client.patch(url, json={"title": "Terms"}, headers=admin_headers)
    same_content = await async_client.patch(url, json={"content": "v1"}, headers=admin_headers)
    new_content = await async_client.patch(url, json={"content": "v2"}, headers=admin_headers)

    assert retitled.json()["data"]["version"] == 1
    assert same_content.json()["data"]["version"] == 1
    assert new_content.json()["data"]["version"] == 2
    assert new_content.json()["data"]["content"] == "v2"


async def test_public_page_respects_platform_and_state(
    async_client: AsyncClient, admin_headers: dict[str, str]
) -> None:
    page = await create_page(async_client, admin_headers, platform="app")

    app_view = await async_client.get(f"{PUBLIC}/terms", params={"platform": "app"})
    web_view = await async_client.get(f"{PUBLIC}/terms", params={"platform": "web"})
    any_view = await async_client.get(f"{PUBLIC}/TERMS")

    assert app_view.status_code == 200
    assert app_view.json()["data"]["title"] == "Terms of use"
    assert "id" not in app_view.json()["data"]
    assert web_view.status_code == 404
    assert any_view.status_code == 200

    await async_client.patch(
        f"{ADMIN}/{page['id']}", json={"is_active": False}, headers=admin_headers
    )
    hidden = await async_client.get(f"{PUBLIC}/terms")
    assert hidden.status_code == 404
    assert hidden.json()["message"] == "CMS page not found"


async def test_deleted_slug_can_be_reused(
    async_client: AsyncClient, admin_headers: dict[str, str]
) -> None:
    page = await create_page(async_client, admin_headers)

    removed = await async_client.delete(f"{ADMIN}/{page['id']}", headers=admin_headers)
    assert removed.status_code == 200
    lookup = await async_client.get(f"{ADMIN}/{page['id']}", headers=admin_headers)
    assert lookup.status_code == 404

    again = await create_page(async_client, admin_headers, title="Terms, revised", content="v9")

    assert again["id"] == page["id"]
    assert again["version"] == 2
    assert again["is_active"] is True


async def test_admin_listing_filters(
    async_client: AsyncClient, admin_headers: dict[str, str]
) -> None:
    await create_page(async_client, admin_headers, slug="about", title="About us")
    await create_page(async_client, admin_headers, slug="faq", title="FAQ", platform="web")

    web = await async_client.get(ADMIN, params={"platform": "web"}, headers=admin_headers)
    searched = await async_client.get(ADMIN, params={"search": "abou"}, headers=admin_headers)

    assert [item["slug"] for item in web.json()["data"]["items"]] == ["faq"]
    assert [item["slug"] for item in searched.json()["data"]["items"]] == ["about"]


async def test_students_cannot_manage_pages(
    async_client: AsyncClient, db_session: Session, settings: Settings
) -> None:
    student = create_user(db_session)
    db_session.commit()

    response = await async_client.post(
        ADMIN, json={"slug": "x", "title": "X"}, headers=auth_headers(student, settings)
    )

    assert response.status_code == 403
