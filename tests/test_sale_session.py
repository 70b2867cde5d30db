import pytest

from storefront.core.exceptions import NotFoundError
from storefront.services.sale_session import CommitState, SaleSessionStore


class FakeClock:
    def __init__(self):
        self.now = 1000.0

    def __call__(self):
        return self.now


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def store(clock):
    return SaleSessionStore(ttl=60, clock=clock)


def test_default_ttl_comes_from_settings(monkeypatch):
    from storefront.core.config import settings

    monkeypatch.setattr(settings, "SALE_SESSION_TTL", 120)

    assert SaleSessionStore().ttl == 120


def test_idle_session_expires(store, clock):
    session = store.open([])
    clock.now += 61

    with pytest.raises(NotFoundError):
        store.get(session.id)
    assert len(store) == 0


def test_get_keeps_session_alive(store, clock):
    session = store.open([])
    clock.now += 50
    assert store.get(session.id) is session

    clock.now += 50

    assert store.get(session.id) is session


def test_opening_a_session_evicts_idle_ones(store, clock):
    idle = store.open([])
    clock.now += 61

    fresh = store.open([])

    assert len(store) == 1
    assert store.get(fresh.id) is fresh
    with pytest.raises(NotFoundError):
        store.get(idle.id)


def test_session_mid_commit_is_not_evicted(store, clock):
    session = store.open([])
    session.state = CommitState.SUBMITTING
    clock.now += 3600

    assert store.get(session.id) is session
