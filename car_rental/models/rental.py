from dataclasses import dataclass, field
from datetime import datetime, timedelta
from decimal import Decimal
from typing import List, Optional

from ..utils.constants import RentalStatus, ZERO


@dataclass
class RentalRecord:
    """
    One rental transaction.

    end_at holds the scheduled end while the rental is active and the actual
    return time once it has been returned. The scheduled end can always be
    rebuilt from start_at + rental_days.
    """
    account_id: int
    vehicle_id: int
    rental_days: int
    start_at: datetime
    end_at: Optional[datetime] = None
    status: str = RentalStatus.RENTED
    fee_policy: str = "BASE"
    membership_tier: str = "SILVER"
    options: List[str] = field(default_factory=list)
    base_fee: Decimal = ZERO
    option_fee: Decimal = ZERO
    discount: Decimal = ZERO
    penalty: Decimal = ZERO
    total_fee: Decimal = ZERO
    rental_id: Optional[int] = None

    @property
    def scheduled_end_at(self) -> datetime:
        return self.start_at + timedelta(days=self.rental_days)

    @property
    def is_active(self) -> bool:
        return self.status == RentalStatus.RENTED

    @property
    def rental_fee(self) -> Decimal:
        """Pre-discount amount; the penalty is never part of it."""
        return self.base_fee + self.option_fee

    def settle(self, discount: Decimal, penalty: Decimal, returned_at: datetime) -> None:
        self.discount = discount
        self.penalty = penalty
        self.total_fee = (self.rental_fee - discount) + penalty
        self.end_at = returned_at
        self.status = RentalStatus.RETURNED

    def copy_settlement_from(self, other: "RentalRecord") -> None:
        self.discount = other.discount
        self.penalty = other.penalty
        self.total_fee = other.total_fee
        self.end_at = other.end_at
        self.status = other.status

    def to_dict(self) -> dict:
        return {
            "rental_id": self.rental_id,
            "account_id": self.account_id,
            "vehicle_id": self.vehicle_id,
            "rental_days": self.rental_days,
            "start_at": self.start_at,
            "end_at": self.end_at,
            "status": self.status,
            "fee_policy": self.fee_policy,
            "membership_tier": self.membership_tier,
            "options": list(self.options),
            "base_fee": self.base_fee,
            "option_fee": self.option_fee,
            "discount": self.discount,
            "penalty": self.penalty,
            "total_fee": self.total_fee,
        }
