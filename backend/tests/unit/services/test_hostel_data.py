"""
Unit Tests for HostelDataService
Tests for: students, fee status, settings, expenses, notifications
"""
from datetime import date

import pytest

from hostelpay.core.exceptions import (
    DuplicateMobileError,
    ExpenseNotFoundError,
    NotificationNotFoundError,
    StudentNotFoundError,
)


class TestStudents:

    async def test_add_student_defaults(self, data, new_student):
        student = await data.add_student(new_student())

        assert student.fee_status == "pending"
        assert student.payment_mode is None
        assert student.updated_by == "admin"
        assert student.last_updated is not None

    async def test_pending_student_drops_payment_mode(self, data, new_student):
        student = await data.add_student(new_student(feeStatus="pending", paymentMode="upi"))

        assert student.payment_mode is None

    async def test_duplicate_mobile_rejected(self, data, new_student):
        await data.add_student(new_student(mobile="9000000001"))

        with pytest.raises(DuplicateMobileError):
            await data.add_student(new_student(mobile="9000000001"))

    async def test_update_to_taken_mobile_rejected(self, data, new_student):
        await data.add_student(new_student(mobile="9000000001"))
        other = await data.add_student(new_student(mobile="9000000002"))

        with pytest.raises(DuplicateMobileError):
            await data.update_student(other.id, {"mobile": "9000000001"})

    async def test_get_missing_student(self, data):
        with pytest.raises(StudentNotFoundError):
            await data.get_student("nope")

    async def test_lookup_by_mobile(self, data, new_student):
        student = await data.add_student(new_student(mobile="9000000003"))

        assert (await data.get_student_by_mobile("9000000003")).id == student.id
        assert await data.get_student_by_mobile("9999999999") is None

    async def test_filter_by_status(self, data, new_student):
        await data.add_student(new_student())
        paid = await data.add_student(new_student(feeStatus="paid", paymentMode="cash"))

        assert [s.id for s in await data.filter_students("paid")] == [paid.id]
        assert len(await data.filter_students()) == 2


class TestFeeStatus:

    async def test_admin_marks_paid(self, data, new_student):
        student = await data.add_student(new_student())

        updated = await data.update_fee_status(student.id, "paid", "cash", "admin")

        assert updated.fee_status == "paid"
        assert updated.payment_mode == "cash"
        notes = data.notifications.list()
        assert notes[0].title == "Payment Confirmed"
        assert notes[0].priority == "medium"

    async def test_back_to_pending_clears_mode(self, data, new_student):
        student = await data.add_student(new_student(feeStatus="paid", paymentMode="upi"))

        updated = await data.update_fee_status(student.id, "pending")

        assert updated.fee_status == "pending"
        assert updated.payment_mode is None
        assert data.notifications.list() == []

    async def test_student_claim_raises_high_priority_notification(self, data, new_student):
        await data.update_settings({"monthlyFee": 6000})
        student = await data.add_student(new_student(name="Rahul Sharma"))

        await data.update_fee_status(student.id, "paid", "upi", "student")

        [claim] = data.notifications.unread()
        assert claim.type == "payment_claimed"
        assert claim.title == "Student Payment Claim"
        assert claim.priority == "high"
        assert claim.student_name == "Rahul Sharma"
        assert claim.amount == 6000
        assert "Rahul Sharma claims to have paid" in claim.message

    async def test_claim_without_mode(self, data, new_student):
        student = await data.add_student(new_student())

        await data.update_fee_status(student.id, "paid", None, "student")

        [claim] = data.notifications.list()
        assert "method not specified" in claim.message

    async def test_student_claim_on_paid_student_is_silent(self, data, new_student):
        student = await data.add_student(new_student(feeStatus="paid", paymentMode="cash"))

        await data.update_fee_status(student.id, "paid", "upi", "student")

        assert data.notifications.list() == []

    async def test_announce_false_skips_notifications(self, data, new_student):
        student = await data.add_student(new_student())

        await data.update_fee_status(student.id, "paid", "upi", "admin", announce=False)

        assert data.notifications.list() == []

    async def test_missing_student(self, data):
        with pytest.raises(StudentNotFoundError):
            await data.update_fee_status("nope", "paid", "cash")


class TestSettings:

    async def test_default_when_absent(self, data):
        settings = await data.get_settings()

        assert settings.monthly_fee == 5000
        assert settings.hostel_name == "Sunrise Hostel"
        assert await data.settings.list() == []

    async def test_update_creates_singleton(self, data):
        settings = await data.update_settings({"monthlyFee": 5500})

        assert settings.monthly_fee == 5500
        assert settings.upi_id == "hostel@paytm"
        assert len(await data.settings.list()) == 1

        again = await data.update_settings({"hostelName": "Moonrise"})
        assert again.id == settings.id
        assert again.monthly_fee == 5500
        assert len(await data.settings.list()) == 1


class TestExpenses:

    async def test_ids_are_sequential(self, data, new_expense):
        first = await data.add_expense(new_expense())
        second = await data.add_expense(new_expense())

        assert (first.id, second.id) == ("1", "2")
        assert first.created_by == "admin"

    async def test_newest_date_first(self, data, new_expense):
        await data.add_expense(new_expense(date="2025-08-01"))
        await data.add_expense(new_expense(date="2025-08-20"))

        assert [e.date.day for e in await data.list_expenses()] == [20, 1]

    async def test_filters(self, data, new_expense):
        await data.add_expense(new_expense(category="wifi", date="2025-07-30"))
        await data.add_expense(new_expense(category="grocery", date="2025-08-02"))

        assert len(await data.expenses_by_category("wifi")) == 1
        in_august = await data.expenses_by_date_range(date(2025, 8, 1), date(2025, 8, 31))
        assert [e.category for e in in_august] == ["grocery"]

    async def test_update_and_delete(self, data, new_expense):
        expense = await data.add_expense(new_expense(amount=100))

        updated = await data.update_expense(expense.id, {"amount": 150.0})
        assert updated.amount == 150.0
        assert updated.updated_at is not None

        assert await data.delete_expense(expense.id) is True
        with pytest.raises(ExpenseNotFoundError):
            data.get_expense(expense.id)
        with pytest.raises(ExpenseNotFoundError):
            await data.update_expense(expense.id, {"amount": 1.0})

    async def test_clear_keeps_counter(self, data, new_expense):
        await data.add_expense(new_expense())
        await data.add_expense(new_expense())

        assert await data.clear_all_expenses() == 2
        assert await data.list_expenses() == []
        assert (await data.add_expense(new_expense())).id == "3"

    async def test_totals(self, data, new_expense):
        await data.add_expense(new_expense(category="wifi", amount=800, date="2025-08-03"))
        await data.add_expense(new_expense(category="wifi", amount=200, date="2025-08-10"))
        await data.add_expense(new_expense(category="rent", amount=20000, date="2025-07-01"))

        totals = data.totals_by_category()
        assert totals["wifi"] == 1000
        assert totals["rent"] == 20000
        assert totals["salary"] == 0
        assert data.monthly_expense_total(2025, 8) == 1000


class TestNotifications:

    async def test_newest_first_and_read_state(self, data):
        first = await data.notifications.system_alert("One", "first")
        second = await data.notifications.system_alert("Two", "second")

        assert [n.id for n in data.notifications.list()] == [second.id, first.id]
        assert data.notifications.unread_count() == 2

        await data.notifications.mark_as_read(first.id)
        assert data.notifications.unread_count() == 1

        assert await data.notifications.mark_all_as_read() == 1
        assert data.notifications.unread_count() == 0

    async def test_mark_missing_notification(self, data):
        with pytest.raises(NotificationNotFoundError):
            await data.notifications.mark_as_read("404")

    async def test_listeners_called_before_data_change(self, data):
        order = []
        data.notifications.subscribe(lambda n: order.append(("notification", n.title)))
        data.subscribe(lambda c: order.append(("change", c.collection)))

        await data.notifications.system_alert("Ping", "hello")

        assert order == [("notification", "Ping"), ("change", "notifications")]

    async def test_notifications_stay_local(self, remote_data, remote_stores, new_student):
        student = await remote_data.add_student(new_student())
        await remote_data.update_fee_status(student.id, "paid", "cash", "admin")

        assert "notifications" not in remote_stores
        assert len(remote_data.notifications.list()) == 1
