"""Rental lifecycle: rent, return, quotes and payment breakdowns."""

from __future__ import annotations

import logging
from datetime import datetime, timedelta
from typing import Iterable, List, Optional, TYPE_CHECKING

from . import common
from .common import rental_from_dict, rental_to_row, vehicle_from_dict
from .user_service import UserService
from .vehicle_service import VehicleService
from ..exceptions import (
    AccountNotFoundError,
    AlreadyRentedError,
    AlreadyReturnedError,
    AlreadyTopTierError,
    InvalidArgumentError,
    RentalNotFoundError,
    VehicleUnavailableError,
)
from ..models.membership import MembershipTier
from ..models.pricing import (
    FeePolicy,
    PricingChain,
    dedupe_options,
    overdue_days,
    overdue_penalty,
    parse_options,
)
from ..models.rental import RentalRecord
from ..models.vehicle import VehicleBase
from ..utils.constants import RentalStatus

if TYPE_CHECKING:
    from ..models.store import Store  # noqa: F401

logger = logging.getLogger(__name__)


def _check_days(days) -> int:
    if isinstance(days, bool) or not isinstance(days, int) or days <= 0:
        raise InvalidArgumentError(f"Error: rental days must be a positive integer, got {days!r}")
    return days


def _resolve_policy(fee_policy) -> FeePolicy:
    try:
        return FeePolicy.parse(fee_policy)
    except ValueError as e:
        raise InvalidArgumentError(f"Error: {e}") from None


class RentalService:
    """
    Rent and return vehicles.

    Fee order:
      base_fee   = fee policy applied to daily_rate * days
      option_fee = per-day option surcharges * days
      discount   = membership discount on (base_fee + option_fee), fixed at return
      penalty    = overdue charge at return, never discounted
      total_fee  = base_fee + option_fee - discount + penalty
    """

    @staticmethod
    def rent(
            account_id,
            vehicle: VehicleBase,
            days: int,
            option_names: Optional[Iterable[str]] = None,
            fee_policy=FeePolicy.BASE,
            store: Optional["Store"] = None,
    ) -> RentalRecord:
        """
        Open a rental for `vehicle`.

        Raises:
            InvalidArgumentError: days is not a positive int, or the vehicle has no id
            AccountNotFoundError: the account does not exist
            AlreadyRentedError: the vehicle already has an active rental
            VehicleUnavailableError: the vehicle is not AVAILABLE
        """
        st = store or common._store()

        _check_days(days)
        if vehicle is None or vehicle.vehicle_id is None:
            raise InvalidArgumentError("Error: vehicle must be a persisted vehicle")
        policy = _resolve_policy(fee_policy)

        account = UserService.get_account(account_id, store=st)

        # admission control against persisted state first, then the vehicle itself
        if st.find_active_rental_by_vehicle(vehicle.vehicle_id) is not None:
            raise AlreadyRentedError(f"Error: vehicle {vehicle.vehicle_id} is already rented")
        if not vehicle.is_available:
            raise VehicleUnavailableError(
                f"Error: vehicle {vehicle.vehicle_id} is not available (state={vehicle.state})")

        # a rental request never charges the same option twice
        options = dedupe_options(parse_options(option_names))
        chain = PricingChain(vehicle, options)

        base_fee = policy.calculate_total_fee(vehicle, days)
        option_fee = chain.option_fee(days)

        now = common._now()
        rec = RentalRecord(
            account_id=account.account_id,
            vehicle_id=vehicle.vehicle_id,
            rental_days=days,
            start_at=now,
            end_at=now + timedelta(days=days),
            status=RentalStatus.RENTED,
            fee_policy=policy.value,
            membership_tier=account.tier.value,
            options=[o.value for o in options],
            base_fee=base_fee,
            option_fee=option_fee,
            total_fee=base_fee + option_fee,
        )

        # insert + vehicle flip happen in one transaction
        rec.rental_id = st.insert_rental(rental_to_row(rec))
        vehicle.occupy()

        logger.info(
            "Rental %s opened: account=%s vehicle=%s days=%s policy=%s pricing=[%s] total=%s",
            rec.rental_id, account.login_id, vehicle.vehicle_id, days, policy.value,
            chain.description(), rec.total_fee,
        )
        return rec

    @staticmethod
    def return_car(
            rental_id,
            vehicle: Optional[VehicleBase] = None,
            cached_record: Optional[RentalRecord] = None,
            store: Optional["Store"] = None,
    ) -> RentalRecord:
        """
        Settle and close a rental.

        The fee basis is read from the store; a `cached_record` is only
        overwritten with the settled values so callers holding one stay in sync.

        Raises:
            RentalNotFoundError, AlreadyReturnedError, AccountNotFoundError,
            VehicleNotFoundError (when no vehicle is given and it was deleted)
        """
        st = store or common._store()

        rec = rental_from_dict(st.get_rental(rental_id))
        if rec is None:
            raise RentalNotFoundError(f"Error: rental '{rental_id}' not found")
        if not rec.is_active:
            raise AlreadyReturnedError(f"Error: rental {rec.rental_id} has already been returned")

        if vehicle is None:
            vehicle = VehicleService.find_by_id(rec.vehicle_id, store=st)
        elif vehicle.vehicle_id != rec.vehicle_id:
            raise InvalidArgumentError(
                f"Error: rental {rec.rental_id} is for vehicle {rec.vehicle_id}, not {vehicle.vehicle_id}")

        # without the account there is no discount to apply
        account = UserService.get_account(rec.account_id, store=st)

        now = common._now()
        penalty = overdue_penalty(vehicle.daily_rate, rec.scheduled_end_at, now)

        rental_fee = rec.rental_fee
        discounted = account.apply_discount(rental_fee)
        discount = rental_fee - discounted
        total = discounted + penalty

        affected = st.mark_returned_if_rented(
            rec.rental_id, penalty=penalty, discount=discount, total_fee=total,
            end_at=now, vehicle_id=rec.vehicle_id,
        )
        if affected == 0:
            raise AlreadyReturnedError(f"Error: rental {rec.rental_id} has already been returned")

        rec.settle(discount, penalty, now)

        try:
            UserService.upgrade_tier(account.account_id, store=st)
        except (AlreadyTopTierError, AccountNotFoundError) as e:
            # the return stands even when the upgrade does not
            logger.warning("Tier upgrade skipped for account %s: %s", account.account_id, e)

        vehicle.release()
        if cached_record is not None:
            cached_record.copy_settlement_from(rec)

        logger.info(
            "Rental %s returned: vehicle=%s discount=%s penalty=%s total=%s",
            rec.rental_id, rec.vehicle_id, discount, penalty, rec.total_fee,
        )
        return rec

    # --------------- Read side ---------------
    @staticmethod
    def get_rental(rental_id, store: Optional["Store"] = None) -> RentalRecord:
        st = store or common._store()
        rec = rental_from_dict(st.get_rental(rental_id))
        if rec is None:
            raise RentalNotFoundError(f"Error: rental '{rental_id}' not found")
        return rec

    @staticmethod
    def rentals_for_account(account_id, store: Optional["Store"] = None) -> List[RentalRecord]:
        """Every rental of this account, newest first."""
        st = store or common._store()
        return [rental_from_dict(d) for d in st.list_rentals(account_id=account_id)]

    @staticmethod
    def active_rentals_for(account_id, store: Optional["Store"] = None) -> List[RentalRecord]:
        st = store or common._store()
        return [rental_from_dict(d) for d in st.list_rentals(account_id=account_id, status=RentalStatus.RENTED)]

    @staticmethod
    def quote(vehicle: VehicleBase, days: int, option_names=None, fee_policy=FeePolicy.BASE) -> dict:
        """Price a rental without opening it."""
        _check_days(days)
        policy = _resolve_policy(fee_policy)
        chain = PricingChain(vehicle, dedupe_options(parse_options(option_names)))
        base_fee = policy.calculate_total_fee(vehicle, days)
        option_fee = chain.option_fee(days)
        return {
            "vehicle_id": vehicle.vehicle_id,
            "description": chain.description(),
            "daily_rate": vehicle.daily_rate,
            "per_day_with_options": chain.quote(),
            "days": days,
            "fee_policy": policy.value,
            "options": [{"name": o.value, "per_day": o.surcharge} for o in chain.options],
            "base_fee": base_fee,
            "option_fee": option_fee,
            "subtotal": base_fee + option_fee,
        }

    @staticmethod
    def payment_breakdown(rental_id, now: Optional[datetime] = None,
                          store: Optional["Store"] = None) -> dict:
        """
        Explain what a rental costs.
        Active rentals show the settlement as if returned at `now` with the
        account's current tier; returned rentals show what was settled.
        """
        st = store or common._store()
        rec = RentalService.get_rental(rental_id, store=st)
        policy = FeePolicy.parse(rec.fee_policy, default=FeePolicy.BASE)

        # a settled rental outlives its vehicle; only the penalty needs the rate
        if rec.is_active:
            vehicle = VehicleService.find_by_id(rec.vehicle_id, store=st)
            vehicle_info = vehicle.to_dict()
        else:
            row = st.get_vehicle(rec.vehicle_id)
            vehicle_info = vehicle_from_dict(row).to_dict() if row else {"vehicle_id": rec.vehicle_id}

        out = {
            "rental_id": rec.rental_id,
            "vehicle": vehicle_info,
            "status": rec.status,
            "rental_days": rec.rental_days,
            "start_at": rec.start_at,
            "scheduled_end_at": rec.scheduled_end_at,
            "fee_policy": policy.value,
            "fee_policy_label": policy.label,
            "options": [{"name": o.value, "per_day": o.surcharge} for o in parse_options(rec.options)],
            "base_fee": rec.base_fee,
            "option_fee": rec.option_fee,
        }

        if rec.is_active:
            now = now or common._now()
            account = UserService.get_account(rec.account_id, store=st)
            discount = account.tier.discount_for(rec.rental_fee)
            penalty = overdue_penalty(vehicle.daily_rate, rec.scheduled_end_at, now)
            out.update({
                "membership_tier": account.tier.value,
                "overdue_days": overdue_days(rec.scheduled_end_at, now),
                "discount": discount,
                "penalty": penalty,
                "total_fee": rec.rental_fee - discount + penalty,
                "settled": False,
            })
        else:
            out.update({
                "membership_tier": MembershipTier.parse(rec.membership_tier).value,
                "overdue_days": overdue_days(rec.scheduled_end_at, rec.end_at),
                "returned_at": rec.end_at,
                "discount": rec.discount,
                "penalty": rec.penalty,
                "total_fee": rec.total_fee,
                "settled": True,
            })
        return out
