"""Shared service helpers and dict -> model mappers."""

from datetime import datetime, timezone
from decimal import Decimal, InvalidOperation
from typing import Optional

from ..models.account import Account
from ..models.membership import MembershipTier
from ..models.rental import RentalRecord
from ..models.store import Store
from ..models.vehicle import VehicleBase, vehicle_class_for
from ..utils.constants import VehicleState, RentalStatus, Role, ZERO


def _store() -> Store:
    """Get the singleton store instance."""
    return Store.instance()


def _now() -> datetime:
    """Naive UTC wall clock; wrapper for easier testing/mocking."""
    return datetime.now(timezone.utc).replace(tzinfo=None)


# -------- conversion helpers --------
def to_decimal_safe(value) -> Optional[Decimal]:
    """Safely convert to Decimal; return None if invalid."""
    if value is None or isinstance(value, bool):
        return None
    try:
        d = Decimal(str(value).strip())
    except (InvalidOperation, ValueError):
        return None
    if not d.is_finite():
        return None
    return d


def to_int_safe(value) -> Optional[int]:
    try:
        return int(value)
    except (TypeError, ValueError):
        return None


def _money(value) -> Decimal:
    d = to_decimal_safe(value)
    return ZERO if d is None else d


# -------- dict -> rich model mappers --------
def vehicle_from_dict(d: Optional[dict]) -> Optional[VehicleBase]:
    """
    Map a stored vehicle row to a rich vehicle object.
    A malformed or missing rate is dropped so the category rate applies.
    """
    if not d:
        return None
    cls = vehicle_class_for(d.get("category"))
    state = (d.get("state") or "").upper()
    return cls(
        vehicle_id=d.get("id"),
        name=d.get("name") or "",
        state=VehicleState.UNAVAILABLE if state == VehicleState.UNAVAILABLE else VehicleState.AVAILABLE,
        rate=to_decimal_safe(d.get("daily_rate")),
    )


def account_from_dict(d: Optional[dict]) -> Optional[Account]:
    """Map a stored account row to an Account."""
    if not d:
        return None
    return Account(
        account_id=d.get("id"),
        login_id=d.get("login_id"),
        name=d.get("name") or "",
        phone_number=d.get("phone_number") or "",
        card_number=d.get("card_number"),
        tier=MembershipTier.parse(d.get("membership")),
        role=d.get("role") or Role.CUSTOMER,
    )


def rental_from_dict(d: Optional[dict]) -> Optional[RentalRecord]:
    """Map a stored rental row to a RentalRecord with every fee field filled."""
    if not d:
        return None
    status = (d.get("status") or "").upper()
    return RentalRecord(
        rental_id=d.get("id"),
        account_id=d.get("account_id"),
        vehicle_id=d.get("vehicle_id"),
        rental_days=int(d.get("rental_days") or 0),
        start_at=d.get("start_at"),
        end_at=d.get("end_at"),
        status=RentalStatus.RETURNED if status == RentalStatus.RETURNED else RentalStatus.RENTED,
        fee_policy=d.get("fee_policy") or "BASE",
        membership_tier=d.get("membership_tier") or MembershipTier.SILVER.value,
        options=list(d.get("options") or []),
        base_fee=_money(d.get("base_fee")),
        option_fee=_money(d.get("option_fee")),
        discount=_money(d.get("discount")),
        penalty=_money(d.get("penalty")),
        total_fee=_money(d.get("total_fee")),
    )


def rental_to_row(rec: RentalRecord) -> dict:
    """Columns for a new rentals row (the id is generated)."""
    return {
        "account_id": rec.account_id,
        "vehicle_id": rec.vehicle_id,
        "start_at": rec.start_at,
        "end_at": rec.end_at,
        "rental_days": rec.rental_days,
        "status": rec.status,
        "fee_policy": rec.fee_policy,
        "membership_tier": rec.membership_tier,
        "options": list(rec.options),
        "base_fee": rec.base_fee,
        "option_fee": rec.option_fee,
        "discount": rec.discount,
        "penalty": rec.penalty,
        "total_fee": rec.total_fee,
    }
