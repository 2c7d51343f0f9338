from datetime import datetime, timedelta

import pytest

from car_rental import create_app
from car_rental.models.store import Store
from car_rental.services import UserService, VehicleService
from car_rental.services import common as common_mod

START = datetime(2030, 7, 1, 9, 0, 0)


class FrozenClock:
    """Replacement for common._now(); moves only when told to."""

    def __init__(self, now: datetime):
        self.now = now

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs) -> datetime:
        self.now = self.now + timedelta(**kwargs)
        return self.now


@pytest.fixture(autouse=True)
def store():
    """
    A fresh in-memory database for every test. Services that are called
    without a store fall back to this same singleton.
    """
    st = Store.configure("sqlite://")
    yield st
    st.engine.dispose()


@pytest.fixture
def clock(monkeypatch):
    c = FrozenClock(START)
    monkeypatch.setattr(common_mod, "_now", c, raising=True)
    return c


def make_account(store, login_id="alice", phone="010-1111-2222", password="Secret123"):
    return UserService.signup(login_id, password, login_id.title(), phone, store=store)


def make_vehicle(store, category="SEDAN", rate=None, name=None):
    return VehicleService.register_vehicle(category, rate=rate, name=name, store=store)


@pytest.fixture
def account(store):
    return make_account(store)


@pytest.fixture
def sedan(store):
    return make_vehicle(store, "SEDAN", name="Sonata")


@pytest.fixture
def app():
    app = create_app({
        "DATABASE_URL": "sqlite://",
        "TESTING": True,
        "SECRET_KEY": "test",
        "DEFAULT_SEASON": "BASE",
    })
    yield app


@pytest.fixture
def client(app):
    with app.test_client() as c:
        yield c
