"""
Vehicle catalogue service:
- registering falls back to the category rate and to the id as name
- availability filter
- deletion guards: only AVAILABLE vehicles without an active rental go
"""
from decimal import Decimal

import pytest

from car_rental.exceptions import UnknownCategoryError, VehicleNotFoundError, VehicleUnavailableError
from car_rental.services import RentalService, VehicleService
from car_rental.utils.constants import VehicleState

from conftest import make_vehicle


def test_register_with_explicit_rate(store):
    v = make_vehicle(store, "sedan", rate="85000", name="Avante")
    assert v.vehicle_id is not None
    assert v.daily_rate == Decimal("85000")
    assert VehicleService.find_by_id(v.vehicle_id, store=store).name == "Avante"


@pytest.mark.parametrize("rate", [None, "", "abc", "-1", "0"])
def test_register_invalid_rate_uses_category_rate(store, rate):
    v = make_vehicle(store, "BIKE", rate=rate, name="MT-07")
    stored = VehicleService.find_by_id(v.vehicle_id, store=store)
    assert stored.daily_rate == Decimal("230000")


def test_register_blank_name_uses_id(store):
    v = make_vehicle(store, "SUV", name="   ")
    stored = VehicleService.find_by_id(v.vehicle_id, store=store)
    assert stored.name == str(v.vehicle_id)


def test_register_unknown_category(store):
    with pytest.raises(UnknownCategoryError):
        make_vehicle(store, "TRUCK")
    assert store.list_vehicles() == []


def test_find_by_id_missing(store):
    with pytest.raises(VehicleNotFoundError):
        VehicleService.find_by_id(999, store=store)
    with pytest.raises(VehicleNotFoundError):
        VehicleService.find_by_id("not-a-number", store=store)


def test_find_available_filters(store):
    a = make_vehicle(store, "SEDAN")
    b = make_vehicle(store, "SUV")
    store.update_vehicle_state(b.vehicle_id, VehicleState.UNAVAILABLE)

    ids = [v.vehicle_id for v in VehicleService.find_available(store=store)]
    assert ids == [a.vehicle_id]
    assert len(VehicleService.find_all(store=store)) == 2


def test_update_persists_state(store, sedan):
    sedan.occupy()
    VehicleService.update(sedan, store=store)
    assert not VehicleService.find_by_id(sedan.vehicle_id, store=store).is_available


def test_create_vehicle_factory():
    v = VehicleService.create_vehicle("suv", vehicle_id=5, rate="150000")
    assert v.category.value == "SUV"
    assert v.daily_rate == Decimal("150000")


def test_delete_available_vehicle(store, sedan):
    VehicleService.delete_vehicle(sedan.vehicle_id, store=store)
    with pytest.raises(VehicleNotFoundError):
        VehicleService.find_by_id(sedan.vehicle_id, store=store)


def test_delete_blocked_while_rented(store, clock, account, sedan):
    RentalService.rent(account.account_id, sedan, 2, store=store)
    with pytest.raises(VehicleUnavailableError):
        VehicleService.delete_vehicle(sedan.vehicle_id, store=store)


def test_delete_allowed_after_return(store, clock, account, sedan):
    rec = RentalService.rent(account.account_id, sedan, 2, store=store)
    clock.advance(days=1)
    RentalService.return_car(rec.rental_id, store=store)

    VehicleService.delete_vehicle(sedan.vehicle_id, store=store)
    assert store.get_vehicle(sedan.vehicle_id) is None
