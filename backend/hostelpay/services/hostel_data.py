"""
Hostel Data Service

The one writer of hostel state. Owns a SyncedCollection per entity
(students, expenses, settings, admins, sessions) plus the notification
log, and exposes the domain operations used by the API, the monthly
reset and the payment tracker.

Construct it explicitly, `await init()` before use and `dispose()` on
shutdown. Every record handed out is a copy.
"""

import uuid
from datetime import date
from typing import Any, Callable, Dict, List, Optional

from hostelpay.core.clock import time_based_id
from hostelpay.core.exceptions import (
    DuplicateMobileError,
    ExpenseNotFoundError,
    RecordNotFound,
    StudentNotFoundError,
)
from hostelpay.core.logging_config import logger
from hostelpay.db.seed_data import default_settings, sample_settings, sample_students
from hostelpay.schemas.admin import Admin, AdminSession
from hostelpay.schemas.expense import EXPENSE_CATEGORIES, Expense
from hostelpay.schemas.notification import Notification
from hostelpay.schemas.settings import HostelSettings
from hostelpay.schemas.student import Student
from hostelpay.services import local_cache as keys
from hostelpay.services.local_cache import LocalCache
from hostelpay.services.notification_emitter import NotificationEmitter
from hostelpay.services.record_store import InMemoryRecordStore, RecordStore
from hostelpay.services.sync_coordinator import (
    ChangeNotifier,
    DataChange,
    StoreStrategy,
    SyncedCollection,
)

REMOTE_COLLECTIONS = ("students", "expenses", "settings", "admins", "sessions")


def _uuid_id(_items) -> str:
    return uuid.uuid4().hex


class HostelDataService:

    def __init__(
        self,
        cache: LocalCache,
        remote: Optional[Dict[str, RecordStore]] = None,
        timeout: float = 15.0,
        seed_samples: bool = True,
    ):
        self.cache = cache
        self.remote = remote or {}
        self.notifier = ChangeNotifier()

        def strategy(name: Optional[str]) -> StoreStrategy:
            return StoreStrategy(self.remote.get(name) if name else None, cache, timeout)

        self.students: SyncedCollection[Student] = SyncedCollection(
            "students", Student, strategy("students"), self.notifier,
            cache_key=keys.STUDENTS_KEY,
            id_factory=lambda items: time_based_id(),
            created_fields=("lastUpdated",),
            touched_fields=("lastUpdated",),
            seed=sample_students if seed_samples else None,
        )
        self.expenses: SyncedCollection[Expense] = SyncedCollection(
            "expenses", Expense, strategy("expenses"), self.notifier,
            cache_key=keys.EXPENSES_KEY,
            id_factory=lambda items: cache.next_id(keys.EXPENSE_COUNTER_KEY, [e.id for e in items]),
            order_by="date",
            descending=True,
            sort_key=lambda e: (e.date, e.created_at),
            created_fields=("createdAt",),
            touched_fields=("updatedAt",),
        )
        self.settings: SyncedCollection[HostelSettings] = SyncedCollection(
            "settings", HostelSettings, strategy("settings"), self.notifier,
            cache_key=keys.SETTINGS_KEY,
            id_factory=lambda items: "1",
            created_fields=("updatedAt",),
            touched_fields=("updatedAt",),
            seed=sample_settings if seed_samples else None,
        )
        self.admins: SyncedCollection[Admin] = SyncedCollection(
            "admins", Admin, strategy("admins"), self.notifier,
            cache_key=keys.ADMINS_KEY,
            id_factory=_uuid_id,
            created_fields=("createdAt", "updatedAt"),
            touched_fields=("updatedAt",),
        )
        self.sessions: SyncedCollection[AdminSession] = SyncedCollection(
            "sessions", AdminSession, strategy("sessions"), self.notifier,
            cache_key=keys.SESSIONS_KEY,
            id_factory=_uuid_id,
            created_fields=("createdAt",),
        )
        # Notifications never leave this process
        notifications: SyncedCollection[Notification] = SyncedCollection(
            "notifications", Notification, strategy(None), self.notifier,
            cache_key=keys.NOTIFICATIONS_KEY,
            id_factory=lambda items: cache.next_id(keys.NOTIFICATION_COUNTER_KEY, [n.id for n in items]),
            descending=True,
            sort_key=lambda n: (n.timestamp, int(n.id) if n.id.isdigit() else 0),
            created_fields=("timestamp",),
        )
        self.notifications = NotificationEmitter(notifications)
        self._initialized = False

    @property
    def collections(self) -> List[SyncedCollection]:
        return [
            self.students,
            self.expenses,
            self.settings,
            self.admins,
            self.sessions,
            self.notifications.collection,
        ]

    # ==================== Lifecycle ====================

    async def init(self) -> None:
        """Prime every collection from the local cache, then load and follow the remote"""
        for collection in self.collections:
            collection.prime()

        for collection in self.collections:
            if collection.strategy.remote_available:
                await collection.list()
                collection.attach_remote_feed()

        self._initialized = True
        logger.info(
            f"[HostelData] Initialized ({'remote + local cache' if self.remote else 'local cache only'}), "
            f"{len(self.students.snapshot())} students"
        )

    def restore_memory_remote(self) -> int:
        """
        Fill empty in-process remote stores from the local cache.

        An in-process store starts empty on every run; without this the
        first remote list would overwrite the cached records.
        """
        restored = 0
        for collection in self.collections:
            store = collection.strategy.primary
            if not isinstance(store, InMemoryRecordStore) or not store.is_empty:
                continue
            records = collection.prime()
            restored += store.restore([collection._dump(r) for r in records])
        if restored:
            logger.info(f"[HostelData] Restored {restored} records from the local cache into the in-process store")
        return restored

    def dispose(self) -> None:
        for collection in self.collections:
            collection.detach()
        self.notifier.clear()
        self.notifications.clear_listeners()
        self._initialized = False

    def subscribe(self, listener: Callable[[DataChange], None]) -> Callable[[], None]:
        return self.notifier.subscribe(listener)

    # ==================== Students ====================

    async def list_students(self) -> List[Student]:
        return await self.students.list()

    async def filter_students(self, status: Optional[str] = None) -> List[Student]:
        students = await self.list_students()
        if status is None:
            return students
        return [s for s in students if s.fee_status == status]

    async def get_student(self, student_id: str) -> Student:
        student = self.students.get(student_id)
        if student is None:
            await self.students.list()
            student = self.students.get(student_id)
        if student is None:
            raise StudentNotFoundError(student_id)
        return student

    async def get_student_by_mobile(self, mobile: str) -> Optional[Student]:
        return await self.students.find_by("mobile", mobile)

    def _ensure_unique_mobile(self, mobile: str, exclude_id: Optional[str] = None) -> None:
        for student in self.students.snapshot():
            if student.mobile == mobile and student.id != exclude_id:
                raise DuplicateMobileError(mobile)

    async def add_student(self, data: Dict[str, Any]) -> Student:
        self._ensure_unique_mobile(data["mobile"])
        existing = await self.get_student_by_mobile(data["mobile"])
        if existing is not None:
            raise DuplicateMobileError(data["mobile"])

        payload = dict(data)
        payload.setdefault("feeStatus", "pending")
        if payload["feeStatus"] == "pending":
            payload.pop("paymentMode", None)
        payload["updatedBy"] = "admin"
        student = await self.students.create(payload)
        logger.info(f"[HostelData] Student added: {student.name} ({student.id})")
        return student

    async def update_student(self, student_id: str, changes: Dict[str, Any]) -> Student:
        if changes.get("mobile"):
            self._ensure_unique_mobile(changes["mobile"], exclude_id=student_id)
        try:
            return await self.students.update(student_id, changes)
        except RecordNotFound:
            raise StudentNotFoundError(student_id)

    async def update_fee_status(
        self,
        student_id: str,
        status: str,
        payment_mode: Optional[str] = None,
        updated_by: Optional[str] = None,
        announce: bool = True,
    ) -> Student:
        """
        Set a student's fee status.

        Moving to pending always clears paymentMode. With announce=True the
        notification rules run on the transition.
        """
        before = await self.get_student(student_id)
        changes: Dict[str, Any] = {
            "feeStatus": status,
            "paymentMode": payment_mode if status == "paid" else None,
            "updatedBy": updated_by or "admin",
        }
        try:
            after = await self.students.update(student_id, changes)
        except RecordNotFound:
            raise StudentNotFoundError(student_id)

        logger.info(
            f"[HostelData] Fee status {before.fee_status} -> {after.fee_status} "
            f"for {after.name} by {after.updated_by}"
        )
        if announce:
            await self.notifications.on_fee_status_change(
                before, after, monthly_fee=self.current_settings().monthly_fee
            )
        return after

    async def reset_student_fee(self, student_id: str, period: str) -> Student:
        """Monthly reset of one student, stamped with the reset period"""
        try:
            return await self.students.update(
                student_id,
                {
                    "feeStatus": "pending",
                    "paymentMode": None,
                    "updatedBy": "admin",
                    "resetPeriod": period,
                },
            )
        except RecordNotFound:
            raise StudentNotFoundError(student_id)

    async def delete_student(self, student_id: str) -> bool:
        deleted = await self.students.delete(student_id)
        if deleted:
            logger.info(f"[HostelData] Student deleted: {student_id}")
        return deleted

    # ==================== Settings ====================

    def current_settings(self) -> HostelSettings:
        """Settings from the local mirror, or the built-in default"""
        records = self.settings.snapshot()
        if records:
            return records[0]
        return HostelSettings.model_validate(default_settings())

    async def get_settings(self) -> HostelSettings:
        records = await self.settings.list()
        if records:
            return records[0]
        return HostelSettings.model_validate(default_settings())

    async def update_settings(self, changes: Dict[str, Any]) -> HostelSettings:
        records = await self.settings.list()
        if records:
            return await self.settings.update(records[0].id, changes)

        # Singleton does not exist yet
        payload = {k: v for k, v in default_settings().items() if k != "id"}
        payload.update(changes)
        logger.info("[HostelData] Creating hostel settings")
        return await self.settings.create(payload)

    # ==================== Expenses ====================

    async def list_expenses(self) -> List[Expense]:
        return await self.expenses.list()

    async def expenses_by_category(self, category: str) -> List[Expense]:
        return [e for e in await self.list_expenses() if e.category == category]

    async def expenses_by_date_range(self, start: Optional[date], end: Optional[date]) -> List[Expense]:
        expenses = await self.list_expenses()
        return [
            e for e in expenses
            if (start is None or e.date >= start) and (end is None or e.date <= end)
        ]

    def get_expense(self, expense_id: str) -> Expense:
        expense = self.expenses.get(expense_id)
        if expense is None:
            raise ExpenseNotFoundError(expense_id)
        return expense

    async def add_expense(self, data: Dict[str, Any], created_by: str = "admin") -> Expense:
        expense = await self.expenses.create({**data, "createdBy": created_by})
        logger.info(f"[HostelData] Expense added: {expense.category} {expense.amount} ({expense.id})")
        return expense

    async def update_expense(self, expense_id: str, changes: Dict[str, Any]) -> Expense:
        try:
            return await self.expenses.update(expense_id, changes)
        except RecordNotFound:
            raise ExpenseNotFoundError(expense_id)

    async def delete_expense(self, expense_id: str) -> bool:
        return await self.expenses.delete(expense_id)

    async def clear_all_expenses(self) -> int:
        count = await self.expenses.clear()
        logger.info(f"[HostelData] Cleared {count} expenses")
        return count

    def totals_by_category(self, expenses: Optional[List[Expense]] = None) -> Dict[str, float]:
        if expenses is None:
            expenses = self.expenses.snapshot()
        totals = {category: 0.0 for category in EXPENSE_CATEGORIES}
        for expense in expenses:
            totals[expense.category] += expense.amount
        return totals

    def monthly_expense_total(self, year: int, month: int, expenses: Optional[List[Expense]] = None) -> float:
        if expenses is None:
            expenses = self.expenses.snapshot()
        return sum(e.amount for e in expenses if e.date.year == year and e.date.month == month)
