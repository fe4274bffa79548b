"""Integration tests for the audit log API."""

from typing import Any

import pytest
from httpx import AsyncClient

API = "/api/v1"


@pytest.fixture
async def admin(make_user):
    return await make_user("admin@agency.test", "Ada Admin")


@pytest.fixture
async def dev(make_user):
    return await make_user("dev@agency.test", "Dev Eloper")


@pytest.fixture
def admin_client(client_for, admin) -> AsyncClient:
    return client_for(admin)


@pytest.fixture
async def workspace(admin_client: AsyncClient, dev) -> dict[str, Any]:
    response = await admin_client.post(f"{API}/workspaces", json={"name": "Acme Agency"})
    data = response.json()["data"]
    await admin_client.post(
        f"{API}/workspaces/{data['id']}/members",
        json={"user_id": str(dev.id), "role": "DEVELOPER"},
    )
    return data


class TestWorkspaceAuditLogs:
    @pytest.mark.asyncio
    async def test_admin_reads_trail(
        self, admin_client: AsyncClient, workspace: dict, admin
    ) -> None:
        response = await admin_client.get(f"{API}/workspaces/{workspace['id']}/audit-logs")

        assert response.status_code == 200
        entries = response.json()["data"]
        assert [e["action"] for e in entries] == ["CREATE", "CREATE"]
        added, created = entries
        assert added["entity_type"] == "USER"
        assert created["entity_type"] == "WORKSPACE"
        assert created["entity_id"] == workspace["id"]
        assert created["actor_id"] == str(admin.id)
        assert created["actor_email"] == "admin@agency.test"
        assert created["actor_role"] == "ADMIN"
        assert response.json()["meta"] == {"total": 2, "limit": 50, "offset": 0}

    @pytest.mark.asyncio
    async def test_filter_and_paginate(self, admin_client: AsyncClient, workspace: dict) -> None:
        response = await admin_client.get(
            f"{API}/workspaces/{workspace['id']}/audit-logs",
            params={"entity_type": "WORKSPACE", "limit": 1},
        )

        assert len(response.json()["data"]) == 1
        assert response.json()["meta"]["total"] == 1

    @pytest.mark.asyncio
    async def test_developer_is_denied(self, client_for, dev, workspace: dict) -> None:
        response = await client_for(dev).get(f"{API}/workspaces/{workspace['id']}/audit-logs")

        assert response.status_code == 403
        assert response.json()["error_code"] == "INSUFFICIENT_PERMISSIONS"

    @pytest.mark.asyncio
    async def test_current_workspace_trail(
        self, admin_client: AsyncClient, workspace: dict
    ) -> None:
        response = await admin_client.get(f"{API}/workspace/audit-logs")

        assert response.status_code == 200
        assert {e["workspace_id"] for e in response.json()["data"]} == {workspace["id"]}

    @pytest.mark.asyncio
    async def test_current_workspace_trail_denied_for_developer(
        self, client_for, dev, workspace: dict
    ) -> None:
        response = await client_for(dev).get(f"{API}/workspace/audit-logs")

        assert response.status_code == 403
        assert "audit_logs.read" in response.json()["message"]


class TestEntityHistory:
    @pytest.mark.asyncio
    async def test_member_history(
        self, admin_client: AsyncClient, workspace: dict, dev
    ) -> None:
        await admin_client.patch(
            f"{API}/workspaces/{workspace['id']}/members/{dev.id}", json={"role": "DESIGNER"}
        )

        response = await admin_client.get(
            f"{API}/workspaces/{workspace['id']}/audit-logs/USER/{dev.id}"
        )

        assert response.status_code == 200
        entries = response.json()["data"]
        assert [e["action"] for e in entries] == ["ROLE_CHANGE", "CREATE"]
        assert entries[0]["metadata"] == {"old_role": "DEVELOPER", "new_role": "DESIGNER"}

    @pytest.mark.asyncio
    async def test_unknown_workspace(self, admin_client: AsyncClient) -> None:
        response = await admin_client.get(
            f"{API}/workspaces/00000000-0000-0000-0000-000000000001/audit-logs/USER/x"
        )

        assert response.status_code == 404
