"""
API Tests for settings, expenses, cash flow, notifications, payments,
monthly reset and health checks
"""
import asyncio

from httpx import AsyncClient

from hostelpay.api.endpoints.notifications import close_relay


class TestHealth:

    async def test_health(self, client: AsyncClient):
        response = await client.get("/api/health")

        assert response.status_code == 200
        assert response.json()["status"] == "healthy"
        assert "X-Request-ID" in response.headers

    async def test_ready(self, client: AsyncClient):
        response = await client.get("/api/health/ready")

        assert response.status_code == 200
        body = response.json()
        assert body["status"] == "ready"
        assert body["checks"]["remote_store"]["status"] == "healthy"


class TestSettings:

    async def test_public_read(self, client: AsyncClient):
        response = await client.get("/api/settings")

        assert response.status_code == 200
        assert response.json()["upiId"] == "hostel@paytm"

    async def test_update(self, client: AsyncClient, auth_headers):
        response = await client.put("/api/settings", json={"monthlyFee": 5500}, headers=auth_headers)

        assert response.status_code == 200
        assert response.json()["monthlyFee"] == 5500
        assert (await client.get("/api/settings")).json()["monthlyFee"] == 5500

    async def test_fee_below_minimum(self, client: AsyncClient, auth_headers):
        response = await client.put("/api/settings", json={"monthlyFee": 50}, headers=auth_headers)

        assert response.status_code == 422

    async def test_update_requires_admin(self, client: AsyncClient):
        response = await client.put("/api/settings", json={"monthlyFee": 5500})

        assert response.status_code == 401


class TestExpenses:

    async def test_create_and_list(self, client: AsyncClient, auth_headers, new_expense):
        response = await client.post("/api/expenses", json=new_expense(amount=450), headers=auth_headers)
        assert response.status_code == 201
        assert response.json()["createdBy"] == "admin"

        response = await client.get("/api/expenses", headers=auth_headers)
        assert [e["amount"] for e in response.json()] == [450]

    async def test_filters(self, client: AsyncClient, auth_headers, new_expense):
        await client.post("/api/expenses", json=new_expense(category="wifi", date="2025-08-02"), headers=auth_headers)
        await client.post("/api/expenses", json=new_expense(category="rent", date="2025-07-02"), headers=auth_headers)

        response = await client.get("/api/expenses", params={"category": "wifi"}, headers=auth_headers)
        assert [e["category"] for e in response.json()] == ["wifi"]

        response = await client.get("/api/expenses", params={"start": "2025-07-01", "end": "2025-07-31"}, headers=auth_headers)
        assert [e["category"] for e in response.json()] == ["rent"]

        response = await client.get("/api/expenses", params={"start": "2025-08-01", "end": "2025-07-01"}, headers=auth_headers)
        assert response.status_code == 400

    async def test_invalid_category(self, client: AsyncClient, auth_headers, new_expense):
        response = await client.post("/api/expenses", json=new_expense(category="party"), headers=auth_headers)

        assert response.status_code == 422

    async def test_update_delete_and_clear(self, client: AsyncClient, auth_headers, new_expense):
        expense = (await client.post("/api/expenses", json=new_expense(), headers=auth_headers)).json()
        await client.post("/api/expenses", json=new_expense(), headers=auth_headers)

        response = await client.patch(f"/api/expenses/{expense['id']}", json={"amount": 99.5}, headers=auth_headers)
        assert response.json()["amount"] == 99.5

        response = await client.delete(f"/api/expenses/{expense['id']}", headers=auth_headers)
        assert response.status_code == 200
        response = await client.delete(f"/api/expenses/{expense['id']}", headers=auth_headers)
        assert response.status_code == 404

        response = await client.delete("/api/expenses", headers=auth_headers)
        assert response.json()["deleted"] == 1


class TestCashFlow:

    async def test_summary(self, client: AsyncClient, auth_headers, new_expense):
        await client.post("/api/expenses", json=new_expense(amount=2000, date="2025-08-05"), headers=auth_headers)

        response = await client.get("/api/cash-flow", params={"year": 2025, "month": 8}, headers=auth_headers)

        assert response.status_code == 200
        body = response.json()
        assert body["totalIncome"] == 5000
        assert body["totalExpenses"] == 2000
        assert body["netCashFlow"] == 3000
        assert body["paidStudents"] == 1
        assert body["totalStudents"] == 5


class TestNotifications:

    async def test_list_and_mark_read(self, client: AsyncClient, auth_headers, services):
        note = await services.data.notifications.system_alert("Water tank", "Cleaning on Sunday")

        response = await client.get("/api/notifications/unread-count", headers=auth_headers)
        assert response.json()["count"] == 1

        response = await client.post(f"/api/notifications/{note.id}/read", headers=auth_headers)
        assert response.json()["isRead"] is True

        response = await client.get("/api/notifications", params={"unread": True}, headers=auth_headers)
        assert response.json() == []

    async def test_mark_missing(self, client: AsyncClient, auth_headers):
        response = await client.post("/api/notifications/999/read", headers=auth_headers)

        assert response.status_code == 404

    async def test_read_all(self, client: AsyncClient, auth_headers, services):
        await services.data.notifications.system_alert("One", "first")
        await services.data.notifications.system_alert("Two", "second")

        response = await client.post("/api/notifications/read-all", headers=auth_headers)

        assert response.status_code == 200
        assert services.data.notifications.unread_count() == 0


class TestPayments:

    async def test_upi_flow_marks_student_paid(self, client: AsyncClient, auth_headers, services):
        student = await services.data.get_student_by_mobile("9876543210")

        response = await client.post("/api/payments", json={"studentId": student.id})
        assert response.status_code == 201
        payment = response.json()
        assert payment["amount"] == 5000

        response = await client.post(f"/api/payments/{payment['id']}/verify")
        assert response.status_code == 202

        for _ in range(100):
            status = (await client.get(f"/api/payments/{payment['id']}")).json()["status"]
            if status == "completed":
                break
            await asyncio.sleep(0.01)
        assert status == "completed"
        assert (await services.data.get_student(student.id)).payment_mode == "upi"

        response = await client.get("/api/payments", params={"studentId": student.id}, headers=auth_headers)
        assert len(response.json()) == 1

    async def test_unknown_payment(self, client: AsyncClient):
        response = await client.get("/api/payments/pay_missing")

        assert response.status_code == 404


class TestMonthlyResetEndpoints:

    async def test_reset_then_noop(self, client: AsyncClient, auth_headers):
        response = await client.get("/api/admin/check-monthly-reset", headers=auth_headers)
        assert response.json()["resetNeeded"] is True

        response = await client.post("/api/admin/monthly-reset", headers=auth_headers)
        body = response.json()
        assert body["success"] is True
        assert body["studentsReset"] == 5

        response = await client.post("/api/admin/monthly-reset", headers=auth_headers)
        assert response.json()["studentsReset"] == 0

        students = (await client.get("/api/students", params={"status": "paid"}, headers=auth_headers)).json()
        assert students == []

    async def test_requires_admin(self, client: AsyncClient):
        response = await client.post("/api/admin/monthly-reset")

        assert response.status_code == 401


class TestNotificationRelay:

    async def test_failed_relay_is_collected(self):
        async def broken_send():
            raise RuntimeError("websocket already closed")

        sender = asyncio.create_task(broken_send())
        await asyncio.sleep(0)

        await close_relay(sender)

        assert sender.done()
        assert isinstance(sender.exception(), RuntimeError)

    async def test_running_relay_is_cancelled(self):
        sender = asyncio.create_task(asyncio.sleep(60))

        await close_relay(sender)

        assert sender.cancelled()
