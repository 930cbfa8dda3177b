"""
Service wiring.

build_services() turns Settings into the object graph the app and the
console script use. start()/stop() bracket its lifetime.
"""

from dataclasses import dataclass, field
from typing import Dict, Optional, Tuple

from redis.asyncio import Redis

from hostelpay.core.config import Settings
from hostelpay.core.logging_config import logger
from hostelpay.services.auth_service import AuthService
from hostelpay.services.hostel_data import REMOTE_COLLECTIONS, HostelDataService
from hostelpay.services.local_cache import LocalCache
from hostelpay.services.monthly_reset import MonthlyResetScheduler, MonthlyResetService
from hostelpay.services.payment_tracker import PaymentTracker
from hostelpay.services.record_store import InMemoryRecordStore, RecordStore
from hostelpay.services.redis_record_store import RedisRecordStore, create_redis_client


def build_remote_stores(config: Settings) -> Tuple[Dict[str, RecordStore], Optional[Redis]]:
    backend = config.remote_backend()
    if backend is None:
        return {}, None
    if backend == "memory":
        return {name: InMemoryRecordStore(name) for name in REMOTE_COLLECTIONS}, None

    client = create_redis_client(config.REMOTE_STORE_URL)
    stores = {
        name: RedisRecordStore(client, config.REMOTE_STORE_NAMESPACE, name)
        for name in REMOTE_COLLECTIONS
    }
    return stores, client


@dataclass
class HostelServices:
    config: Settings
    data: HostelDataService
    auth: AuthService
    scheduler: MonthlyResetScheduler
    reset_service: MonthlyResetService
    payments: PaymentTracker
    remote_stores: Dict[str, RecordStore] = field(default_factory=dict)
    redis: Optional[Redis] = None
    started: bool = False

    async def start(self, run_background: bool = True) -> None:
        if self.started:
            return

        if self.config.remote_backend() == "memory":
            # Cached records (or the sample hostel on a first run) become the remote state
            self.data.restore_memory_remote()

        await self.data.init()
        await self.auth.ensure_default_admin(
            self.config.DEFAULT_ADMIN_USERNAME,
            self.config.DEFAULT_ADMIN_PASSWORD,
            self.config.DEFAULT_ADMIN_EMAIL,
        )

        if self.config.MONTHLY_RESET_ENABLED and run_background:
            # First check runs inside the loop right away
            await self.reset_service.start()

        self.started = True

    async def stop(self) -> None:
        await self.reset_service.stop()
        await self.payments.close()
        self.data.dispose()
        for store in self.remote_stores.values():
            await store.close()
        if self.redis is not None:
            await self.redis.aclose()
        self.started = False
        logger.info("[Services] Stopped")


def build_services(config: Settings) -> HostelServices:
    remote_stores, redis_client = build_remote_stores(config)
    cache = LocalCache(config.LOCAL_CACHE_PATH, config.LOCAL_CACHE_PREFIX)
    data = HostelDataService(
        cache,
        remote=remote_stores,
        timeout=config.REMOTE_TIMEOUT_SECONDS,
        seed_samples=config.SEED_SAMPLE_DATA,
    )
    scheduler = MonthlyResetScheduler(
        data,
        tz=config.HOSTEL_TIMEZONE,
        collection_last_day=config.FEE_COLLECTION_LAST_DAY,
    )
    return HostelServices(
        config=config,
        data=data,
        auth=AuthService(data, token_ttl_minutes=config.ACCESS_TOKEN_EXPIRE_MINUTES),
        scheduler=scheduler,
        reset_service=MonthlyResetService(scheduler, config.MONTHLY_RESET_INTERVAL_MINUTES),
        payments=PaymentTracker(
            data,
            processing_delay=config.UPI_PROCESSING_DELAY_SECONDS,
            completion_delay=config.UPI_COMPLETION_DELAY_SECONDS,
        ),
        remote_stores=remote_stores,
        redis=redis_client,
    )
