"""
Rental lifecycle:
- fees are fixed at rent time, discount and penalty at return time
- one active rental per vehicle, one settlement per rental
- every completed return moves the account one tier up (VIP stays VIP)
"""
from datetime import timedelta
from decimal import Decimal

import pytest

from car_rental.exceptions import (
    AccountNotFoundError,
    AlreadyRentedError,
    AlreadyReturnedError,
    InvalidArgumentError,
    RentalNotFoundError,
    VehicleNotFoundError,
    VehicleUnavailableError,
)
from car_rental.models.membership import MembershipTier
from car_rental.models.pricing import FeePolicy
from car_rental.services import RentalService, UserService, VehicleService
from car_rental.utils.constants import RentalStatus, VehicleState

from conftest import START, make_account, make_vehicle


# ---------------- end-to-end scenarios ----------------
def test_base_three_days_silver_on_time(store, clock, account, sedan):
    rec = RentalService.rent(account.account_id, sedan, 3, store=store)

    assert rec.base_fee == Decimal("270000")
    assert rec.option_fee == 0
    assert rec.total_fee == Decimal("270000")
    assert rec.start_at == START
    assert rec.end_at == START + timedelta(days=3)
    assert rec.membership_tier == "SILVER"

    clock.advance(days=3)
    done = RentalService.return_car(rec.rental_id, store=store)

    assert done.status == RentalStatus.RETURNED
    assert done.discount == Decimal("13500")
    assert done.penalty == 0
    assert done.total_fee == Decimal("256500")
    assert done.end_at == START + timedelta(days=3)
    assert UserService.get_account(account.account_id, store=store).tier is MembershipTier.GOLD


def test_peak_sunroof_two_days_gold(store, clock, account, sedan):
    UserService.upgrade_tier(account.account_id, store=store)

    rec = RentalService.rent(account.account_id, sedan, 2, ["Sunroof"], FeePolicy.PEAK, store=store)
    assert rec.base_fee == Decimal("216000")
    assert rec.option_fee == Decimal("30000")
    assert rec.rental_fee == Decimal("246000")
    assert rec.fee_policy == "PEAK"
    assert rec.options == ["Sunroof"]

    clock.advance(days=1, hours=20)
    done = RentalService.return_car(rec.rental_id, store=store)
    assert done.discount == Decimal("24600")
    assert done.total_fee == Decimal("221400")


def test_settlement_is_persisted(store, clock, account, sedan):
    rec = RentalService.rent(account.account_id, sedan, 3, store=store)
    clock.advance(days=2)
    RentalService.return_car(rec.rental_id, store=store)

    row = store.get_rental(rec.rental_id)
    assert row["status"] == RentalStatus.RETURNED
    assert row["total_fee"] == Decimal("256500")
    assert row["discount"] == Decimal("13500")
    assert row["base_fee"] == Decimal("270000")


# ---------------- admission control ----------------
@pytest.mark.parametrize("days", [0, -1, True, "3", 2.5, None])
def test_rent_rejects_bad_days(store, clock, account, sedan, days):
    with pytest.raises(InvalidArgumentError):
        RentalService.rent(account.account_id, sedan, days, store=store)
    assert store.list_rentals() == []


def test_rent_rejects_unknown_policy(store, clock, account, sedan):
    with pytest.raises(InvalidArgumentError):
        RentalService.rent(account.account_id, sedan, 1, fee_policy="HOLIDAY", store=store)


def test_rent_unknown_account(store, clock, sedan):
    with pytest.raises(AccountNotFoundError):
        RentalService.rent(404, sedan, 1, store=store)


def test_second_rent_of_same_vehicle(store, clock, account, sedan):
    RentalService.rent(account.account_id, sedan, 1, store=store)
    other = make_account(store, "bob", "010-3333-4444")
    fresh = VehicleService.find_by_id(sedan.vehicle_id, store=store)

    with pytest.raises(AlreadyRentedError):
        RentalService.rent(other.account_id, fresh, 1, store=store)
    assert len(store.list_rentals()) == 1


def test_rent_unavailable_vehicle(store, clock, account, sedan):
    store.update_vehicle_state(sedan.vehicle_id, VehicleState.UNAVAILABLE)
    fresh = VehicleService.find_by_id(sedan.vehicle_id, store=store)
    with pytest.raises(VehicleUnavailableError):
        RentalService.rent(account.account_id, fresh, 1, store=store)


def test_stale_vehicle_object_cannot_slip_through(store, clock, account, sedan):
    # the in-memory object still says AVAILABLE, the row does not
    store.update_vehicle_state(sedan.vehicle_id, VehicleState.UNAVAILABLE)
    with pytest.raises(VehicleUnavailableError):
        RentalService.rent(account.account_id, sedan, 1, store=store)
    assert store.list_rentals() == []


def test_rent_vehicle_deleted_meanwhile(store, clock, account, sedan):
    store.delete_vehicle(sedan.vehicle_id)
    with pytest.raises(VehicleNotFoundError):
        RentalService.rent(account.account_id, sedan, 1, store=store)
    assert store.list_rentals() == []


def test_rent_flips_vehicle_state(store, clock, account, sedan):
    RentalService.rent(account.account_id, sedan, 1, store=store)
    assert not sedan.is_available
    assert store.get_vehicle(sedan.vehicle_id)["state"] == VehicleState.UNAVAILABLE


def test_duplicate_and_unknown_options(store, clock, account, sedan):
    rec = RentalService.rent(
        account.account_id, sedan, 2, ["Blackbox", "blackbox", "Jetpack", "Navigation"], store=store)
    assert rec.options == ["Blackbox", "Navigation"]
    assert rec.option_fee == Decimal("24000")


# ---------------- return ----------------
def test_double_return(store, clock, account, sedan):
    rec = RentalService.rent(account.account_id, sedan, 1, store=store)
    RentalService.return_car(rec.rental_id, store=store)
    with pytest.raises(AlreadyReturnedError):
        RentalService.return_car(rec.rental_id, store=store)
    # only the first return upgraded the account
    assert UserService.get_account(account.account_id, store=store).tier is MembershipTier.GOLD


def test_concurrent_return_fails_closed(store, clock, account, sedan, monkeypatch):
    rec = RentalService.rent(account.account_id, sedan, 1, store=store)
    stale = store.get_rental(rec.rental_id)
    clock.advance(days=1, hours=2)
    RentalService.return_car(rec.rental_id, store=store)
    settled = store.list_rentals()[0]

    # the second caller read the row while it was still RENTED
    monkeypatch.setattr(store, "get_rental", lambda rental_id: dict(stale))
    clock.advance(days=3)
    with pytest.raises(AlreadyReturnedError):
        RentalService.return_car(rec.rental_id, store=store)

    assert store.list_rentals()[0] == settled
    assert settled["penalty"] == Decimal("27000")
    assert UserService.get_account(account.account_id, store=store).tier is MembershipTier.GOLD


def test_return_unknown_rental(store, clock):
    with pytest.raises(RentalNotFoundError):
        RentalService.return_car(12345, store=store)


def test_return_releases_vehicle(store, clock, account, sedan):
    rec = RentalService.rent(account.account_id, sedan, 1, store=store)
    RentalService.return_car(rec.rental_id, vehicle=sedan, store=store)
    assert sedan.is_available
    assert VehicleService.find_by_id(sedan.vehicle_id, store=store).is_available


def test_return_with_wrong_vehicle(store, clock, account, sedan):
    other = make_vehicle(store, "SUV")
    rec = RentalService.rent(account.account_id, sedan, 1, store=store)
    with pytest.raises(InvalidArgumentError):
        RentalService.return_car(rec.rental_id, vehicle=other, store=store)
    assert RentalService.get_rental(rec.rental_id, store=store).is_active


def test_late_return_penalty_is_not_discounted(store, clock, account, sedan):
    rec = RentalService.rent(account.account_id, sedan, 1, store=store)
    clock.advance(days=2, seconds=1)
    done = RentalService.return_car(rec.rental_id, store=store)

    assert done.penalty == Decimal("27000")
    assert done.discount == Decimal("4500")
    assert done.total_fee == Decimal("85500") + Decimal("27000")


def test_one_second_late(store, clock, account):
    suv = make_vehicle(store, "SUV")
    rec = RentalService.rent(account.account_id, suv, 2, store=store)
    clock.advance(days=2, seconds=1)
    done = RentalService.return_car(rec.rental_id, store=store)
    assert done.penalty == Decimal("42000")


def test_cached_record_receives_settlement(store, clock, account, sedan):
    rec = RentalService.rent(account.account_id, sedan, 3, store=store)
    clock.advance(days=3)
    RentalService.return_car(rec.rental_id, cached_record=rec, store=store)

    assert rec.status == RentalStatus.RETURNED
    assert rec.total_fee == Decimal("256500")


def test_discount_uses_tier_at_return(store, clock, account, sedan):
    rec = RentalService.rent(account.account_id, sedan, 3, store=store)
    UserService.upgrade_tier(account.account_id, store=store)  # now GOLD
    done = RentalService.return_car(rec.rental_id, store=store)
    assert done.discount == Decimal("27000")


def test_vip_return_still_succeeds(store, clock, account, sedan):
    store.update_account_tier(account.account_id, MembershipTier.VIP.value)
    rec = RentalService.rent(account.account_id, sedan, 1, store=store)
    done = RentalService.return_car(rec.rental_id, store=store)

    assert done.status == RentalStatus.RETURNED
    assert done.total_fee == Decimal("72000")
    assert UserService.get_account(account.account_id, store=store).tier is MembershipTier.VIP


def test_tier_climbs_once_per_return(store, clock, account):
    tiers = []
    for _ in range(4):
        v = make_vehicle(store, "BIKE")
        rec = RentalService.rent(account.account_id, v, 1, store=store)
        RentalService.return_car(rec.rental_id, store=store)
        tiers.append(UserService.get_account(account.account_id, store=store).tier)
    assert tiers == [MembershipTier.GOLD, MembershipTier.PLATINUM, MembershipTier.VIP, MembershipTier.VIP]


# ---------------- read side ----------------
def test_rentals_for_account(store, clock, account, sedan):
    suv = make_vehicle(store, "SUV")
    first = RentalService.rent(account.account_id, sedan, 1, store=store)
    second = RentalService.rent(account.account_id, suv, 1, store=store)
    RentalService.return_car(first.rental_id, store=store)

    all_ids = [r.rental_id for r in RentalService.rentals_for_account(account.account_id, store=store)]
    active_ids = [r.rental_id for r in RentalService.active_rentals_for(account.account_id, store=store)]
    assert all_ids == [second.rental_id, first.rental_id]
    assert active_ids == [second.rental_id]


def test_quote_does_not_persist(store, sedan):
    q = RentalService.quote(sedan, 2, ["Sunroof", "Sunroof"], "PEAK")
    assert q["base_fee"] == Decimal("216000")
    assert q["option_fee"] == Decimal("30000")
    assert q["subtotal"] == Decimal("246000")
    assert q["description"] == "Sedan + Sunroof"
    assert store.list_rentals() == []


def test_payment_breakdown_active(store, clock, account, sedan):
    rec = RentalService.rent(account.account_id, sedan, 1, ["Blackbox"], store=store)
    later = START + timedelta(days=2)

    p = RentalService.payment_breakdown(rec.rental_id, now=later, store=store)
    assert p["settled"] is False
    assert p["overdue_days"] == 1
    assert p["penalty"] == Decimal("27000")
    assert p["discount"] == Decimal("4750")
    assert p["total_fee"] == Decimal("95000") - Decimal("4750") + Decimal("27000")


def test_payment_breakdown_returned(store, clock, account, sedan):
    rec = RentalService.rent(account.account_id, sedan, 3, store=store)
    clock.advance(days=3)
    RentalService.return_car(rec.rental_id, store=store)

    p = RentalService.payment_breakdown(rec.rental_id, store=store)
    assert p["settled"] is True
    assert p["overdue_days"] == 0
    assert p["total_fee"] == Decimal("256500")
    assert p["fee_policy_label"] == "Base"


def test_payment_breakdown_survives_vehicle_deletion(store, clock, account, sedan):
    rec = RentalService.rent(account.account_id, sedan, 3, store=store)
    clock.advance(days=3)
    RentalService.return_car(rec.rental_id, store=store)
    VehicleService.delete_vehicle(sedan.vehicle_id, store=store)

    p = RentalService.payment_breakdown(rec.rental_id, store=store)
    assert p["vehicle"] == {"vehicle_id": sedan.vehicle_id}
    assert p["settled"] is True
    assert p["total_fee"] == Decimal("256500")


def test_payment_breakdown_returned_keeps_vehicle_name(store, clock, account, sedan):
    rec = RentalService.rent(account.account_id, sedan, 1, store=store)
    RentalService.return_car(rec.rental_id, store=store)

    p = RentalService.payment_breakdown(rec.rental_id, store=store)
    assert p["vehicle"]["name"] == "Sonata"
