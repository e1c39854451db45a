"""Tests for GET /user/status and PATCH /user/onboarding."""

import uuid

from fastapi import FastAPI
from httpx import AsyncClient

from rizon.models import User


class TestUserStatus:
    async def test_new_user_not_onboarded(self, client: AsyncClient) -> None:
        resp = await client.get("/user/status")

        assert resp.status_code == 200
        assert resp.json() == {"data": {"onboarding_completed": False}}

    async def test_requires_credential(
        self, unauthenticated_client: AsyncClient
    ) -> None:
        resp = await unauthenticated_client.get("/user/status")

        assert resp.status_code == 401

    async def test_deleted_user_is_404(
        self, app: FastAPI, unauthenticated_client: AsyncClient
    ) -> None:
        ghost = User(id=uuid.uuid4(), email="ghost@ex.com")
        issued = app.state.services.session_issuer.issue_session(ghost)

        resp = await unauthenticated_client.get(
            "/user/status", headers={"Authorization": f"Bearer {issued.token}"}
        )

        assert resp.status_code == 404
        assert resp.json()["error"]["code"] == "NOT_FOUND"


class TestCompleteOnboarding:
    async def test_marks_completed(self, client: AsyncClient) -> None:
        resp = await client.patch("/user/onboarding")

        assert resp.status_code == 200
        assert resp.json()["data"]["message"] == "Onboarding marked as completed"
        status = await client.get("/user/status")
        assert status.json()["data"]["onboarding_completed"] is True

    async def test_is_idempotent(self, client: AsyncClient) -> None:
        await client.patch("/user/onboarding")
        resp = await client.patch("/user/onboarding")

        assert resp.status_code == 200
        status = await client.get("/user/status")
        assert status.json()["data"]["onboarding_completed"] is True

    async def test_requires_credential(
        self, unauthenticated_client: AsyncClient
    ) -> None:
        resp = await unauthenticated_client.patch("/user/onboarding")

        assert resp.status_code == 401

    async def test_deleted_user_is_404(
        self, app: FastAPI, unauthenticated_client: AsyncClient
    ) -> None:
        ghost = User(id=uuid.uuid4(), email="ghost@ex.com")
        issued = app.state.services.session_issuer.issue_session(ghost)

        resp = await unauthenticated_client.patch(
            "/user/onboarding", headers={"Authorization": f"Bearer {issued.token}"}
        )

        assert resp.status_code == 404
