"""
Notification Emitter

Turns fee-status transitions into Notification records for the admin
dashboard. Notifications live in the local cache only, newest first, with
ids from the `current-notification-id` counter.

Trigger rules:
- pending -> paid by the student: "Student Payment Claim" (high)
- * -> paid by an admin: "Payment Confirmed" (medium)
- UPI flow: "Payment Processing" at initiation (medium) and
  "Payment Verified" at automatic completion (high)

Notification listeners are called synchronously for every emission,
before the generic data-change listeners.
"""

from typing import Callable, List, Optional

from hostelpay.core.exceptions import NotificationNotFoundError
from hostelpay.core.logging_config import logger
from hostelpay.schemas.notification import Notification
from hostelpay.schemas.student import Student
from hostelpay.services.sync_coordinator import SyncedCollection

NotificationListener = Callable[[Notification], None]


class NotificationEmitter:

    def __init__(self, collection: SyncedCollection[Notification]):
        self.collection = collection
        self._listeners: List[NotificationListener] = []

    def subscribe(self, listener: NotificationListener) -> Callable[[], None]:
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    def clear_listeners(self) -> None:
        self._listeners.clear()

    async def emit(
        self,
        type: str,
        title: str,
        message: str,
        priority: str = "medium",
        student: Optional[Student] = None,
        amount: Optional[float] = None,
        payment_method: Optional[str] = None,
    ) -> Notification:
        notification = await self.collection.create(
            {
                "type": type,
                "title": title,
                "message": message,
                "studentId": student.id if student else None,
                "studentName": student.name if student else None,
                "amount": amount,
                "paymentMethod": payment_method,
                "isRead": False,
                "priority": priority,
            },
            announce=False,
        )
        logger.info(f"[Notifications] {notification.type} #{notification.id}: {notification.title}")

        for listener in list(self._listeners):
            try:
                listener(notification.model_copy(deep=True))
            except Exception as e:
                logger.error(f"[Notifications] Listener failed: {e}", exc_info=True)

        self.collection.announce("create", notification.id)
        return notification

    # ---------- trigger rules ----------

    async def on_fee_status_change(
        self, before: Student, after: Student, monthly_fee: Optional[float] = None
    ) -> Optional[Notification]:
        if after.fee_status != "paid":
            return None

        if after.updated_by == "student" and before.fee_status == "pending":
            mode = after.payment_mode or "method not specified"
            return await self.emit(
                "payment_claimed",
                "Student Payment Claim",
                f"{after.name} claims to have paid their monthly fee ({mode})",
                priority="high",
                student=after,
                amount=monthly_fee,
                payment_method=after.payment_mode,
            )

        if after.updated_by == "admin":
            mode = after.payment_mode or "not specified"
            return await self.emit(
                "payment_received",
                "Payment Confirmed",
                f"Payment confirmed for {after.name} via {mode}",
                priority="medium",
                student=after,
                amount=monthly_fee,
                payment_method=after.payment_mode,
            )

        return None

    async def payment_initiated(self, student: Student, amount: float, method: str) -> Notification:
        return await self.emit(
            "payment_received",
            "Payment Processing",
            f"Payment initiated for {student.name} - {method.upper()}",
            priority="medium",
            student=student,
            amount=amount,
            payment_method=method,
        )

    async def payment_verified(self, student: Student, amount: float) -> Notification:
        return await self.emit(
            "payment_received",
            "Payment Verified",
            f"UPI payment automatically verified for {student.name}",
            priority="high",
            student=student,
            amount=amount,
            payment_method="upi",
        )

    async def system_alert(self, title: str, message: str, priority: str = "low") -> Notification:
        return await self.emit("system_alert", title, message, priority=priority)

    # ---------- reads ----------

    def list(self) -> List[Notification]:
        return self.collection.snapshot()

    def unread(self) -> List[Notification]:
        return [n for n in self.list() if not n.is_read]

    def unread_count(self) -> int:
        return len(self.unread())

    # ---------- read state ----------

    async def mark_as_read(self, notification_id: str) -> Notification:
        current = self.collection.get(notification_id)
        if current is None:
            raise NotificationNotFoundError(notification_id)
        if current.is_read:
            return current
        return await self.collection.update(notification_id, {"isRead": True})

    async def mark_all_as_read(self) -> int:
        count = 0
        for notification in self.unread():
            await self.collection.update(notification.id, {"isRead": True})
            count += 1
        return count
