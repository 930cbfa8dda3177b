"""
API Tests for the student roster and the student portal
"""
from httpx import AsyncClient


class TestStudentRoster:

    async def test_list_seeded_students(self, client: AsyncClient, auth_headers):
        response = await client.get("/api/students", headers=auth_headers)

        assert response.status_code == 200
        assert len(response.json()) == 5

    async def test_requires_admin(self, client: AsyncClient):
        response = await client.get("/api/students")

        assert response.status_code == 401

    async def test_filter_by_status(self, client: AsyncClient, auth_headers):
        response = await client.get("/api/students", params={"status": "paid"}, headers=auth_headers)

        assert response.status_code == 200
        assert [s["name"] for s in response.json()] == ["Sneha Reddy"]

    async def test_create_student(self, client: AsyncClient, auth_headers, new_student):
        payload = new_student(name="Arjun Rao", paymentMode="upi")

        response = await client.post("/api/students", json=payload, headers=auth_headers)

        assert response.status_code == 201
        body = response.json()
        assert body["name"] == "Arjun Rao"
        assert body["feeStatus"] == "pending"
        assert "paymentMode" not in body or body["paymentMode"] is None
        assert body["id"]

    async def test_create_duplicate_mobile(self, client: AsyncClient, auth_headers, new_student):
        response = await client.post("/api/students", json=new_student(mobile="9876543210"), headers=auth_headers)

        assert response.status_code == 400
        assert response.json()["error"]["code"] == "DUPLICATE_MOBILE"

    async def test_create_invalid_mobile(self, client: AsyncClient, auth_headers, new_student):
        response = await client.post("/api/students", json=new_student(mobile="12345"), headers=auth_headers)

        assert response.status_code == 422

    async def test_update_and_delete(self, client: AsyncClient, auth_headers, new_student):
        created = (await client.post("/api/students", json=new_student(), headers=auth_headers)).json()

        response = await client.patch(f"/api/students/{created['id']}", json={"room": "Z9"}, headers=auth_headers)
        assert response.status_code == 200
        assert response.json()["room"] == "Z9"

        response = await client.delete(f"/api/students/{created['id']}", headers=auth_headers)
        assert response.status_code == 200

        response = await client.delete(f"/api/students/{created['id']}", headers=auth_headers)
        assert response.status_code == 404

    async def test_get_missing_student(self, client: AsyncClient, auth_headers):
        response = await client.get("/api/students/ghost", headers=auth_headers)

        assert response.status_code == 404
        assert response.json()["error"]["code"] == "STUDENT_NOT_FOUND"

    async def test_admin_marks_paid(self, client: AsyncClient, auth_headers, services):
        student = (await services.data.filter_students("pending"))[0]

        response = await client.post(
            f"/api/students/{student.id}/fee-status",
            json={"feeStatus": "paid", "paymentMode": "cash"},
            headers=auth_headers,
        )

        assert response.status_code == 200
        assert response.json()["paymentMode"] == "cash"
        assert response.json()["updatedBy"] == "admin"
        assert services.data.notifications.list()[0].title == "Payment Confirmed"


class TestStudentPortal:

    async def test_verify_known_mobile(self, client: AsyncClient):
        response = await client.post("/api/portal/verify", json={"mobile": "9876543210"})

        assert response.status_code == 200
        body = response.json()
        assert body["found"] is True
        assert body["student"]["name"] == "Rahul Sharma"

    async def test_verify_unknown_mobile(self, client: AsyncClient):
        response = await client.post("/api/portal/verify", json={"mobile": "9000000000"})

        assert response.json() == {"found": False, "student": None}

    async def test_claim_payment(self, client: AsyncClient, services):
        student = await services.data.get_student_by_mobile("9876543210")

        response = await client.post(
            f"/api/portal/students/{student.id}/claim-payment", json={"paymentMode": "upi"}
        )

        assert response.status_code == 200
        assert response.json()["feeStatus"] == "paid"
        assert response.json()["updatedBy"] == "student"
        [claim] = services.data.notifications.unread()
        assert claim.title == "Student Payment Claim"
        assert claim.priority == "high"
        assert claim.amount == 5000
