import pytest

from app.services.lock_service import BookingLockManager
from tests.helpers import StubRedis, StubStore


@pytest.fixture
def store() -> StubStore:
    return StubStore()


@pytest.fixture
def redis() -> StubRedis:
    return StubRedis()


@pytest.fixture
def locks(redis) -> BookingLockManager:
    return BookingLockManager(redis, ttl_ms=10_000)
