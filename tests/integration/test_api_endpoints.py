"""API endpoint integration tests."""

from uuid import uuid4

import pytest
from httpx import AsyncClient

from kudos_engine.models.enums import EmployeeRole

pytestmark = pytest.mark.asyncio

API = "/api/v1"


def as_employee(employee) -> dict[str, str]:
    return {"X-Employee-ID": str(employee.employee_id)}


class TestHealthEndpoints:
    async def test_health_check(self, client: AsyncClient):
        """Health endpoint reports the database and version."""
        response = await client.get(f"{API}/health")
        assert response.status_code == 200

        data = response.json()
        assert data["status"] == "healthy"
        assert data["database"] == "healthy"
        assert "version" in data

    async def test_readiness_and_liveness(self, client: AsyncClient):
        assert (await client.get(f"{API}/ready")).json()["status"] == "ready"
        assert (await client.get(f"{API}/live")).json()["status"] == "alive"


class TestIdentity:
    async def test_missing_header(self, client: AsyncClient, seeded):
        response = await client.post(
            f"{API}/points/give",
            json={"to_employee_id": str(seeded["recipient"].employee_id), "amount": 5},
        )
        assert response.status_code == 400

    async def test_malformed_header(self, client: AsyncClient, seeded):
        response = await client.post(
            f"{API}/points/give",
            headers={"X-Employee-ID": "not-a-uuid"},
            json={"to_employee_id": str(seeded["recipient"].employee_id), "amount": 5},
        )
        assert response.status_code == 400

    async def test_unknown_actor(self, client: AsyncClient, seeded):
        response = await client.get(
            f"{API}/audit-logs", headers={"X-Employee-ID": str(uuid4())}
        )
        assert response.status_code == 404
        assert response.json()["code"] == "EMPLOYEE_NOT_FOUND"

    async def test_admin_only_endpoint(self, client: AsyncClient, seeded):
        response = await client.get(f"{API}/audit-logs", headers=as_employee(seeded["giver"]))
        assert response.status_code == 403
        assert response.json() == {
            "detail": "Administrator role required",
            "code": "PERMISSION_DENIED",
        }


class TestEmployees:
    async def test_create_and_lookup(self, client: AsyncClient, seeded):
        admin = as_employee(seeded["admin"])
        response = await client.post(
            f"{API}/employees",
            headers=admin,
            json={"employee_code": "E777", "fullname": "New Hire", "department": "Ops"},
        )
        assert response.status_code == 201, response.text
        created = response.json()
        assert created["role"] == "Staff"
        assert created["quota_remaining"] == 500

        response = await client.get(f"{API}/employees/lookup", params={"code": "e777"})
        assert response.status_code == 200
        assert response.json()["employee_id"] == created["employee_id"]

    async def test_duplicate_code(self, client: AsyncClient, seeded):
        response = await client.post(
            f"{API}/employees",
            headers=as_employee(seeded["admin"]),
            json={"employee_code": "A", "fullname": "Clash"},
        )
        assert response.status_code == 409
        assert response.json()["code"] == "DUPLICATE"

    async def test_list_and_level(self, client: AsyncClient, seeded):
        response = await client.get(f"{API}/employees", params={"department": "Ops"})
        assert response.status_code == 200
        assert response.json()["total"] == 2

        response = await client.get(
            f"{API}/employees/{seeded['recipient'].employee_id}/level"
        )
        assert response.status_code == 200
        assert response.json()["level"] == "RISING_STAR"

    async def test_group_preview(self, client: AsyncClient, seeded, factory, session):
        """Executives and the caller are left out of a group give."""
        await factory.employee("X", department="Ops", role=EmployeeRole.EXECUTIVE)
        await session.commit()

        response = await client.get(
            f"{API}/employees/group",
            headers=as_employee(seeded["giver"]),
            params={"group_type": "department", "group_value": "Ops"},
        )
        assert response.status_code == 200, response.text
        assert [e["employee_code"] for e in response.json()] == ["B"]

        response = await client.get(
            f"{API}/employees/group",
            headers=as_employee(seeded["giver"]),
            params={"group_type": "team", "group_value": "Ops"},
        )
        assert response.status_code == 422

    async def test_delete_with_history_refused(self, client: AsyncClient, seeded):
        await client.post(
            f"{API}/points/give",
            headers=as_employee(seeded["giver"]),
            json={"to_employee_id": str(seeded["recipient"].employee_id), "amount": 5},
        )
        response = await client.delete(
            f"{API}/employees/{seeded['recipient'].employee_id}",
            headers=as_employee(seeded["admin"]),
        )
        assert response.status_code == 409
        assert response.json()["code"] == "ENTITY_IN_USE"


class TestPoints:
    async def test_give(self, client: AsyncClient, seeded):
        """A gives 30 to B: A's quota drops to 70 and B's balance rises to 80."""
        response = await client.post(
            f"{API}/points/give",
            headers=as_employee(seeded["giver"]),
            json={
                "to_employee_id": str(seeded["recipient"].employee_id),
                "amount": 30,
                "message": "Thanks!",
            },
        )
        assert response.status_code == 201, response.text
        tx = response.json()
        assert tx["type"] == "GIVE"
        assert tx["allocations"] == [
            {"employee_id": str(seeded["recipient"].employee_id), "amount": 30}
        ]

        giver = (await client.get(f"{API}/employees/{seeded['giver'].employee_id}")).json()
        recipient = (
            await client.get(f"{API}/employees/{seeded['recipient'].employee_id}")
        ).json()
        assert giver["quota_remaining"] == 70
        assert recipient["points_balance"] == 80

    async def test_give_over_quota(self, client: AsyncClient, seeded):
        response = await client.post(
            f"{API}/points/give",
            headers=as_employee(seeded["giver"]),
            json={"to_employee_id": str(seeded["recipient"].employee_id), "amount": 101},
        )
        assert response.status_code == 400
        assert response.json()["code"] == "INSUFFICIENT_QUOTA"

    async def test_give_to_self(self, client: AsyncClient, seeded):
        response = await client.post(
            f"{API}/points/give",
            headers=as_employee(seeded["giver"]),
            json={"to_employee_id": str(seeded["giver"].employee_id), "amount": 1},
        )
        assert response.status_code == 422
        assert response.json()["code"] == "VALIDATION_ERROR"

    async def test_group_give_by_department(self, client: AsyncClient, seeded):
        response = await client.post(
            f"{API}/points/give/group",
            headers=as_employee(seeded["giver"]),
            json={"group_type": "department", "group_value": "Ops", "points_per_member": 10},
        )
        assert response.status_code == 201, response.text
        tx = response.json()
        assert tx["source"] == "group"
        assert tx["amount"] == 10
        assert tx["to_employee_id"] is None

    async def test_group_give_needs_recipients(self, client: AsyncClient, seeded):
        response = await client.post(
            f"{API}/points/give/group",
            headers=as_employee(seeded["giver"]),
            json={"message": "nobody"},
        )
        assert response.status_code == 422

    async def test_adjust_requires_admin(self, client: AsyncClient, seeded):
        payload = {
            "employee_id": str(seeded["recipient"].employee_id),
            "amount": -20,
            "reason": "Correction",
        }
        response = await client.post(
            f"{API}/points/adjust", headers=as_employee(seeded["giver"]), json=payload
        )
        assert response.status_code == 403

        response = await client.post(
            f"{API}/points/adjust", headers=as_employee(seeded["admin"]), json=payload
        )
        assert response.status_code == 201
        assert response.json()["type"] == "ADJUSTMENT"

    async def test_history(self, client: AsyncClient, seeded):
        await client.post(
            f"{API}/points/give",
            headers=as_employee(seeded["giver"]),
            json={"to_employee_id": str(seeded["recipient"].employee_id), "amount": 7},
        )
        response = await client.get(f"{API}/transactions/history")
        assert response.status_code == 200
        rows = response.json()
        assert [(r["from_name"], r["to_name"], r["amount"]) for r in rows] == [
            ("Alice", "Bob", 7)
        ]

        response = await client.get(f"{API}/transactions", params={"type": "GIVE"})
        assert response.json()["total"] == 1


class TestRedemptions:
    async def redeem(self, client, employee, reward):
        return await client.post(
            f"{API}/redemptions",
            headers=as_employee(employee),
            json={"reward_id": str(reward.reward_id)},
        )

    async def test_last_unit_then_out_of_stock(self, client: AsyncClient, seeded, factory, session):
        """B takes the only unit; D's attempt fails with OUT_OF_STOCK."""
        d = await factory.employee("D", balance=100)
        await session.commit()

        first = await self.redeem(client, seeded["recipient"], seeded["reward"])
        assert first.status_code == 201, first.text
        assert first.json()["status"] == "PENDING"

        second = await self.redeem(client, d, seeded["reward"])
        assert second.status_code == 409
        assert second.json()["code"] == "OUT_OF_STOCK"

        balance = (await client.get(f"{API}/employees/{d.employee_id}")).json()["points_balance"]
        assert balance == 100

    async def test_reject_refunds(self, client: AsyncClient, seeded):
        request = (await self.redeem(client, seeded["recipient"], seeded["reward"])).json()

        response = await client.post(
            f"{API}/redemptions/{request['request_id']}/reject",
            headers=as_employee(seeded["admin"]),
            json={"reason": "Out of season"},
        )
        assert response.status_code == 200, response.text
        assert response.json()["status"] == "REJECTED"
        assert response.json()["reversal_transaction_id"] is not None

        recipient = (
            await client.get(f"{API}/employees/{seeded['recipient'].employee_id}")
        ).json()
        reward = (await client.get(f"{API}/rewards/{seeded['reward'].reward_id}")).json()
        assert recipient["points_balance"] == 50
        assert reward["stock"] == 1

    async def test_approve_then_reject_conflicts(self, client: AsyncClient, seeded):
        request = (await self.redeem(client, seeded["recipient"], seeded["reward"])).json()
        admin = as_employee(seeded["admin"])

        response = await client.post(
            f"{API}/redemptions/{request['request_id']}/approve", headers=admin
        )
        assert response.status_code == 200
        assert response.json()["shipping_status"] == "PENDING"

        response = await client.post(
            f"{API}/redemptions/{request['request_id']}/reject", headers=admin
        )
        assert response.status_code == 409
        assert response.json()["code"] == "INVALID_STATE_TRANSITION"

    async def test_pickup_fulfilment(self, client: AsyncClient, seeded):
        request = (await self.redeem(client, seeded["recipient"], seeded["reward"])).json()
        admin = as_employee(seeded["admin"])
        base = f"{API}/redemptions/{request['request_id']}"

        await client.post(f"{base}/approve", headers=admin)
        response = await client.post(f"{base}/ready-for-pickup", headers=admin)
        assert response.json()["shipping_status"] == "SHIPPED"

        response = await client.post(
            f"{base}/confirm-delivery", headers=as_employee(seeded["recipient"])
        )
        assert response.status_code == 200
        assert response.json()["shipping_status"] == "DELIVERED"

    async def test_cancel_by_other_employee(self, client: AsyncClient, seeded):
        request = (await self.redeem(client, seeded["recipient"], seeded["reward"])).json()
        response = await client.post(
            f"{API}/redemptions/{request['request_id']}/cancel",
            headers=as_employee(seeded["giver"]),
        )
        assert response.status_code == 403

    async def test_reads_scoped_to_owner(self, client: AsyncClient, seeded):
        request = (await self.redeem(client, seeded["recipient"], seeded["reward"])).json()
        url = f"{API}/redemptions/{request['request_id']}"

        assert (await client.get(url)).status_code == 400
        assert (await client.get(url, headers=as_employee(seeded["giver"]))).status_code == 403
        assert (await client.get(url, headers=as_employee(seeded["recipient"]))).status_code == 200
        assert (await client.get(url, headers=as_employee(seeded["admin"]))).status_code == 200

        response = await client.get(f"{API}/redemptions", headers=as_employee(seeded["giver"]))
        assert response.json()["total"] == 0
        response = await client.get(
            f"{API}/redemptions",
            headers=as_employee(seeded["giver"]),
            params={"employee_id": str(seeded["recipient"].employee_id)},
        )
        assert response.status_code == 403
        response = await client.get(f"{API}/redemptions", headers=as_employee(seeded["admin"]))
        assert response.json()["total"] == 1


class TestQuotasAndReports:
    async def test_distribute_and_logs(self, client: AsyncClient, seeded):
        admin = as_employee(seeded["admin"])
        response = await client.post(
            f"{API}/quotas/distribute",
            headers=admin,
            json={"role": "Staff", "amount": -150},
        )
        assert response.status_code == 201, response.text
        distribution = response.json()
        assert distribution["affected_count"] == 2

        response = await client.get(
            f"{API}/quotas/distributions/{distribution['distribution_id']}/logs",
            headers=admin,
        )
        logs = {log["employee_code"]: log for log in response.json()}
        assert logs["A"]["actual_change"] == -100
        assert logs["A"]["quota_after"] == 0
        assert logs["B"]["actual_change"] == 0

    async def test_leaderboard_is_public(self, client: AsyncClient, seeded):
        await client.post(
            f"{API}/points/give",
            headers=as_employee(seeded["giver"]),
            json={"to_employee_id": str(seeded["recipient"].employee_id), "amount": 12},
        )
        response = await client.get(f"{API}/reports/leaderboard")
        assert response.status_code == 200
        assert response.json()[0]["employee_code"] == "B"

    async def test_dashboard_requires_admin(self, client: AsyncClient, seeded):
        response = await client.get(
            f"{API}/reports/dashboard", headers=as_employee(seeded["giver"])
        )
        assert response.status_code == 403

        response = await client.get(
            f"{API}/reports/dashboard", headers=as_employee(seeded["admin"])
        )
        assert response.status_code == 200
        assert response.json()["pending_requests"] == 0


class TestNews:
    async def test_draft_hidden_until_published(self, client: AsyncClient, seeded):
        admin = as_employee(seeded["admin"])
        response = await client.post(
            f"{API}/news", headers=admin, json={"title": "Winners", "content": "Well done"}
        )
        assert response.status_code == 201
        news_id = response.json()["news_id"]

        assert (await client.get(f"{API}/news")).json()["total"] == 0
        await client.post(f"{API}/news/{news_id}/publish", headers=admin)
        assert (await client.get(f"{API}/news")).json()["total"] == 1

        response = await client.post(f"{API}/news/{news_id}/publish", headers=admin)
        assert response.status_code == 409
