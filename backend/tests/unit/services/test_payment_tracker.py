"""
Unit Tests for the UPI payment tracker
"""
import pytest

from hostelpay.core.exceptions import (
    InvalidPaymentTransitionError,
    PaymentNotFoundError,
    StudentNotFoundError,
)
from hostelpay.services.payment_tracker import PaymentTracker


@pytest.fixture
def tracker(data):
    return PaymentTracker(data, processing_delay=0, completion_delay=0)


@pytest.fixture
async def student(data, new_student):
    return await data.add_student(new_student(name="Priya Patel"))


class TestInitiate:

    async def test_initiate_uses_monthly_fee(self, tracker, student):
        payment = await tracker.initiate(student.id)

        assert payment.status == "pending"
        assert payment.amount == 5000
        assert payment.upi_ref.startswith("HP")
        assert payment.metadata["studentName"] == "Priya Patel"

        [note] = tracker.data.notifications.list()
        assert note.title == "Payment Processing"
        assert "UPI" in note.message

    async def test_unknown_student(self, tracker):
        with pytest.raises(StudentNotFoundError):
            await tracker.initiate("ghost")

    async def test_history_filters_by_student(self, tracker, student, data, new_student):
        other = await data.add_student(new_student())
        await tracker.initiate(student.id, 100)
        await tracker.initiate(other.id, 200)

        assert [p.amount for p in tracker.history(student.id)] == [100]
        assert len(tracker.history()) == 2


class TestTransitions:

    async def test_complete_marks_student_paid(self, tracker, student, data):
        payment = await tracker.initiate(student.id)
        tracker.mark_processing(payment.id)

        done = await tracker.complete(payment.id, "UPI123")

        assert done.status == "completed"
        assert done.transaction_id == "UPI123"
        paid = data.students.get(student.id)
        assert paid.fee_status == "paid"
        assert paid.payment_mode == "upi"
        assert [n.title for n in data.notifications.list()] == ["Payment Verified", "Payment Processing"]

    async def test_cannot_complete_pending(self, tracker, student):
        payment = await tracker.initiate(student.id)

        with pytest.raises(InvalidPaymentTransitionError):
            await tracker.complete(payment.id)

    async def test_failed_is_final(self, tracker, student):
        payment = await tracker.initiate(student.id)
        failed = tracker.fail(payment.id, "user cancelled")

        assert failed.failure_reason == "user cancelled"
        with pytest.raises(InvalidPaymentTransitionError):
            tracker.mark_processing(payment.id)

    def test_unknown_payment(self, tracker):
        with pytest.raises(PaymentNotFoundError):
            tracker.get("pay_missing")


class TestSimulation:

    async def test_simulated_verification_completes(self, tracker, student, data):
        payment = await tracker.initiate(student.id)

        await tracker.simulate_upi_verification(payment.id)

        assert tracker.get(payment.id).status == "completed"
        assert data.students.get(student.id).fee_status == "paid"

    async def test_student_deleted_mid_flight_fails_payment(self, tracker, student, data):
        payment = await tracker.initiate(student.id)
        await data.delete_student(student.id)

        await tracker.simulate_upi_verification(payment.id)

        assert tracker.get(payment.id).status == "failed"

    async def test_close_cancels_running(self, data, student):
        tracker = PaymentTracker(data, processing_delay=60, completion_delay=60)
        payment = await tracker.initiate(student.id)
        tracker.simulate_upi_verification(payment.id)

        await tracker.close()

        assert tracker.get(payment.id).status == "pending"
