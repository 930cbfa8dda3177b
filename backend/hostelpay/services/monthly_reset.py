"""
Monthly Fee Reset

Once per calendar month every student goes back to `pending` with no
payment mode. The fee-collection window is the 1st to
FEE_COLLECTION_LAST_DAY of the month; it is informational only.

A pass for period P ("YYYY-MM") stamps each student it resets with
resetPeriod=P and skips students already stamped with P. lastMonthlyReset
on the hostel settings is written only once every student made it, so an
interrupted pass is finished by the next run instead of waiting for the
following month.

Runs at startup, from MonthlyResetService every
MONTHLY_RESET_INTERVAL_MINUTES, from the admin endpoint, and from the
`hostelpay-monthly-reset` console script.
"""

import asyncio
from datetime import datetime, timedelta, timezone
from typing import Callable, Optional
from zoneinfo import ZoneInfo

from hostelpay.core.clock import utcnow, isoformat
from hostelpay.core.exceptions import HostelError
from hostelpay.core.logging_config import logger
from hostelpay.schemas.reset import ResetResult, ResetStatus
from hostelpay.services.hostel_data import HostelDataService


class MonthlyResetScheduler:

    def __init__(
        self,
        data: HostelDataService,
        clock: Callable[[], datetime] = utcnow,
        tz: str = "UTC",
        collection_last_day: int = 10,
    ):
        self.data = data
        self.clock = clock
        self.tz = ZoneInfo(tz)
        self.collection_last_day = collection_last_day
        self._lock = asyncio.Lock()

    def _local(self, value: datetime) -> datetime:
        if value.tzinfo is None:
            value = value.replace(tzinfo=timezone.utc)
        return value.astimezone(self.tz)

    def period_of(self, value: datetime) -> str:
        local = self._local(value)
        return f"{local.year:04d}-{local.month:02d}"

    def collection_window_open(self, now: Optional[datetime] = None) -> bool:
        return self._local(now or self.clock()).day <= self.collection_last_day

    async def is_reset_needed(self, now: Optional[datetime] = None) -> bool:
        now = now or self.clock()
        settings = await self.data.get_settings()
        if settings.last_monthly_reset is None:
            return True
        return self.period_of(settings.last_monthly_reset) != self.period_of(now)

    async def status(self, now: Optional[datetime] = None) -> ResetStatus:
        now = now or self.clock()
        settings = await self.data.get_settings()
        last = settings.last_monthly_reset
        return ResetStatus(
            reset_needed=last is None or self.period_of(last) != self.period_of(now),
            last_reset=last,
            current_date=now,
            current_period=self.period_of(now),
            collection_window_open=self.collection_window_open(now),
        )

    async def check_and_reset(self, now: Optional[datetime] = None) -> ResetResult:
        """Reset every student for the current month unless that already happened"""
        now = now or self.clock()
        period = self.period_of(now)

        async with self._lock:
            if not await self.is_reset_needed(now):
                logger.debug(f"[MonthlyReset] Already done for {period}")
                return ResetResult(
                    success=True,
                    message=f"Monthly reset already completed for {period}",
                    students_reset=0,
                    period=period,
                )

            students = await self.data.list_students()
            reset = 0
            failed = 0
            for student in students:
                if student.reset_period == period:
                    continue
                try:
                    await self.data.reset_student_fee(student.id, period)
                    reset += 1
                except HostelError as e:
                    failed += 1
                    logger.error(f"[MonthlyReset] Could not reset {student.name} ({student.id}): {e.message}")

            logger.log_reset_event(period, reset, failed)

            if failed:
                return ResetResult(
                    success=False,
                    message=(
                        f"Monthly reset incomplete: {reset} students reset, {failed} failed. "
                        f"It will be retried."
                    ),
                    students_reset=reset,
                    failed=failed,
                    period=period,
                )

            await self.data.update_settings({"lastMonthlyReset": isoformat(now)})

        if reset:
            await self.data.notifications.system_alert(
                "Monthly Reset",
                f"Fee status reset to pending for {reset} students ({period})",
            )
        return ResetResult(
            success=True,
            message=f"Monthly reset completed. {reset} students reset to pending.",
            students_reset=reset,
            period=period,
        )


class MonthlyResetService:
    """Background loop running the reset check on an interval"""

    def __init__(self, scheduler: MonthlyResetScheduler, interval_minutes: int = 60):
        self.scheduler = scheduler
        self.interval = timedelta(minutes=interval_minutes)
        self.running = False
        self._task: Optional[asyncio.Task] = None
        self.stats = {
            "runs": 0,
            "last_run": None,
            "last_result": None,
        }

    async def start(self):
        """Start the background reset loop"""
        if self.running:
            logger.warning("[MonthlyReset] Service already running")
            return

        self.running = True
        self._task = asyncio.create_task(self._reset_loop())
        logger.info(f"[MonthlyReset] Started - Interval: {self.interval}")

    async def stop(self):
        """Stop the reset loop"""
        self.running = False
        if self._task:
            self._task.cancel()
            try:
                await self._task
            except asyncio.CancelledError:
                pass
            self._task = None
        logger.info("[MonthlyReset] Stopped")

    async def run_once(self) -> ResetResult:
        result = await self.scheduler.check_and_reset()
        self.stats["runs"] += 1
        self.stats["last_run"] = isoformat(utcnow())
        self.stats["last_result"] = result.message
        return result

    async def _reset_loop(self):
        """Main reset loop"""
        while self.running:
            try:
                await self.run_once()
            except Exception as e:
                logger.error(f"[MonthlyReset] Error in reset loop: {e}", exc_info=True)

            await asyncio.sleep(self.interval.total_seconds())
