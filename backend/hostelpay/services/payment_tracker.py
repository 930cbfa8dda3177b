"""
UPI Payment Tracker

Process-local record of payment attempts made from the student portal.
No gateway is called: verification is simulated with two delays, after
which the student is marked paid via UPI.

Status moves pending -> processing -> completed, or to failed from either
non-terminal state. completed and failed are final.
"""

import asyncio
import time
import uuid
from typing import Dict, List, Optional

from hostelpay.core.clock import utcnow
from hostelpay.core.exceptions import InvalidPaymentTransitionError, PaymentNotFoundError
from hostelpay.core.logging_config import logger
from hostelpay.schemas.payment import PaymentTracking
from hostelpay.services.hostel_data import HostelDataService

ALLOWED_TRANSITIONS = {
    "pending": {"processing", "failed"},
    "processing": {"completed", "failed"},
    "completed": set(),
    "failed": set(),
}


class PaymentTracker:

    def __init__(
        self,
        data: HostelDataService,
        processing_delay: float = 2.0,
        completion_delay: float = 3.0,
    ):
        self.data = data
        self.processing_delay = processing_delay
        self.completion_delay = completion_delay
        self._payments: Dict[str, PaymentTracking] = {}
        self._tasks: Dict[str, asyncio.Task] = {}

    def get(self, payment_id: str) -> PaymentTracking:
        payment = self._payments.get(payment_id)
        if payment is None:
            raise PaymentNotFoundError(payment_id)
        return payment.model_copy(deep=True)

    def history(self, student_id: Optional[str] = None) -> List[PaymentTracking]:
        payments = [
            p.model_copy(deep=True) for p in self._payments.values()
            if student_id is None or p.student_id == student_id
        ]
        return sorted(payments, key=lambda p: p.initiated_at, reverse=True)

    def _check(self, payment_id: str, target: str) -> PaymentTracking:
        payment = self._payments.get(payment_id)
        if payment is None:
            raise PaymentNotFoundError(payment_id)
        if target not in ALLOWED_TRANSITIONS[payment.status]:
            raise InvalidPaymentTransitionError(payment_id, payment.status, target)
        return payment

    def _transition(self, payment_id: str, target: str) -> PaymentTracking:
        payment = self._check(payment_id, target)
        payment.status = target
        return payment

    async def initiate(
        self, student_id: str, amount: Optional[float] = None, method: str = "upi"
    ) -> PaymentTracking:
        student = await self.data.get_student(student_id)
        if amount is None:
            amount = self.data.current_settings().monthly_fee

        payment = PaymentTracking(
            id=f"pay_{uuid.uuid4().hex[:12]}",
            student_id=student.id,
            amount=amount,
            payment_method=method,
            initiated_at=utcnow(),
            upi_ref=f"HP{int(time.time() * 1000)}",
            metadata={"studentName": student.name, "room": student.room},
        )
        self._payments[payment.id] = payment
        logger.info(f"[Payments] Initiated {payment.id} for {student.name}: {amount} via {method}")

        await self.data.notifications.payment_initiated(student, amount, method)
        return payment.model_copy(deep=True)

    def mark_processing(self, payment_id: str) -> PaymentTracking:
        payment = self._transition(payment_id, "processing")
        logger.info(f"[Payments] {payment_id} processing")
        return payment.model_copy(deep=True)

    async def complete(self, payment_id: str, transaction_id: Optional[str] = None) -> PaymentTracking:
        payment = self._check(payment_id, "completed")
        # Student first: a payment whose student is gone must not end up completed
        student = await self.data.update_fee_status(
            payment.student_id, "paid", "upi", "admin", announce=False
        )
        payment.status = "completed"
        payment.completed_at = utcnow()
        payment.transaction_id = transaction_id or f"UPI{int(time.time() * 1000)}"
        await self.data.notifications.payment_verified(student, payment.amount)
        logger.info(f"[Payments] {payment_id} completed, transaction {payment.transaction_id}")
        return payment.model_copy(deep=True)

    def fail(self, payment_id: str, reason: str = "Payment failed") -> PaymentTracking:
        payment = self._transition(payment_id, "failed")
        payment.completed_at = utcnow()
        payment.failure_reason = reason
        logger.warning(f"[Payments] {payment_id} failed: {reason}")
        return payment.model_copy(deep=True)

    def simulate_upi_verification(self, payment_id: str) -> asyncio.Task:
        """Start the simulated verification: processing, then completed"""
        payment = self.get(payment_id)
        if payment.status != "pending":
            raise InvalidPaymentTransitionError(payment_id, payment.status, "processing")
        if payment_id in self._tasks:
            return self._tasks[payment_id]

        task = asyncio.create_task(self._simulate(payment_id))
        self._tasks[payment_id] = task
        task.add_done_callback(lambda _: self._tasks.pop(payment_id, None))
        return task

    async def _simulate(self, payment_id: str) -> None:
        try:
            await asyncio.sleep(self.processing_delay)
            self.mark_processing(payment_id)
            await asyncio.sleep(self.completion_delay)
            await self.complete(payment_id)
        except asyncio.CancelledError:
            raise
        except Exception as e:
            logger.error(f"[Payments] Verification of {payment_id} failed: {e}", exc_info=True)
            payment = self._payments.get(payment_id)
            if payment is not None and payment.status in ("pending", "processing"):
                self.fail(payment_id, str(e))

    async def close(self) -> None:
        tasks = list(self._tasks.values())
        for task in tasks:
            task.cancel()
        for task in tasks:
            try:
                await task
            except asyncio.CancelledError:
                pass
        self._tasks.clear()
