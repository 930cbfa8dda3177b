"""
HostelPay - Test Configuration and Fixtures
"""
import os
import tempfile
from typing import AsyncGenerator, Dict
from unittest.mock import AsyncMock, MagicMock

import pytest
from httpx import AsyncClient, ASGITransport
from faker import Faker

# Set testing environment
os.environ['ENVIRONMENT'] = 'testing'
os.environ['JWT_SECRET_KEY'] = 'test-jwt-secret-key-for-testing'
os.environ['BCRYPT_ROUNDS'] = '4'
os.environ['RATE_LIMIT_ENABLED'] = 'false'
os.environ['MONTHLY_RESET_ENABLED'] = 'false'
os.environ['REMOTE_STORE_URL'] = ''
os.environ['LOCAL_CACHE_DIR'] = tempfile.mkdtemp(prefix='hostelpay-test-')

from hostelpay.main import app
from hostelpay.core.config import settings
from hostelpay.services.container import HostelServices, build_services
from hostelpay.services.hostel_data import REMOTE_COLLECTIONS, HostelDataService
from hostelpay.services.local_cache import LocalCache
from hostelpay.services.record_store import InMemoryRecordStore, RecordStore

fake = Faker()


def make_student(**overrides) -> Dict:
    """Student payload as the admin form sends it"""
    data = {
        'name': fake.name(),
        'mobile': fake.unique.numerify('9#########'),
        'room': fake.bothify('?###', letters='ABCD'),
        'joiningDate': fake.date_between(start_date='-2y', end_date='today').isoformat(),
    }
    data.update(overrides)
    return data


def make_expense(**overrides) -> Dict:
    data = {
        'category': 'grocery',
        'description': 'Vegetables and rice',
        'amount': 1200.0,
        'date': '2025-08-05',
        'paymentMethod': 'cash',
        'recipientName': fake.name(),
    }
    data.update(overrides)
    return data


def failing_store(collection: str, error: Exception = None) -> MagicMock:
    """Remote store whose every call fails"""
    error = error or ConnectionError('remote store unreachable')
    store = MagicMock(spec=RecordStore)
    store.collection = collection
    for method in ('list', 'get_by_id', 'get_by_field', 'create', 'update', 'delete', 'delete_all', 'ping'):
        setattr(store, method, AsyncMock(side_effect=error))
    store.subscribe = MagicMock(side_effect=error)
    return store


@pytest.fixture
def cache(tmp_path) -> LocalCache:
    return LocalCache(tmp_path / 'cache')


@pytest.fixture
def remote_stores() -> Dict[str, InMemoryRecordStore]:
    return {name: InMemoryRecordStore(name) for name in REMOTE_COLLECTIONS}


@pytest.fixture
async def data(cache: LocalCache) -> AsyncGenerator[HostelDataService, None]:
    """Local-only data service with no sample data"""
    service = HostelDataService(cache, seed_samples=False)
    await service.init()
    yield service
    service.dispose()


@pytest.fixture
async def remote_data(cache: LocalCache, remote_stores) -> AsyncGenerator[HostelDataService, None]:
    """Data service backed by an in-memory remote store"""
    service = HostelDataService(cache, remote=remote_stores, timeout=1.0, seed_samples=False)
    await service.init()
    yield service
    service.dispose()


@pytest.fixture
async def services(tmp_path) -> AsyncGenerator[HostelServices, None]:
    """Full service graph on an in-memory remote seeded with the sample hostel"""
    config = settings.model_copy(update={
        'LOCAL_CACHE_DIR': str(tmp_path / 'service-cache'),
        'REMOTE_STORE_URL': 'memory://',
        'SEED_SAMPLE_DATA': True,
        'UPI_PROCESSING_DELAY_SECONDS': 0.0,
        'UPI_COMPLETION_DELAY_SECONDS': 0.0,
    })
    container = build_services(config)
    await container.start(run_background=False)
    yield container
    await container.stop()


@pytest.fixture
async def client(services: HostelServices) -> AsyncGenerator[AsyncClient, None]:
    """Test client bound to the test service graph"""
    app.state.services = services

    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url='http://test') as ac:
        yield ac


@pytest.fixture
async def admin_token(client: AsyncClient) -> str:
    response = await client.post('/api/auth/login', json={
        'username': settings.DEFAULT_ADMIN_USERNAME,
        'password': settings.DEFAULT_ADMIN_PASSWORD,
    })
    assert response.status_code == 200, response.text
    return response.json()['token']


@pytest.fixture
def auth_headers(admin_token: str) -> dict:
    """Authentication headers for the default admin"""
    return {'Authorization': f'Bearer {admin_token}'}


@pytest.fixture
def new_student():
    return make_student


@pytest.fixture
def new_expense():
    return make_expense


@pytest.fixture
def broken_store():
    return failing_store
