"""
Pricing primitives: option surcharges, seasonal fee policies and the overdue
penalty. All amounts are Decimals and nothing here rounds.
"""
import logging
from datetime import datetime, timedelta
from decimal import Decimal
from enum import Enum
from typing import Iterable, List, Optional

from .vehicle import VehicleBase
from ..utils.constants import OVERDUE_RATE, ZERO

logger = logging.getLogger(__name__)


# ------------------------- options -------------------------
class RentalOption(str, Enum):
    BLACKBOX = "Blackbox"
    NAVIGATION = "Navigation"
    SUNROOF = "Sunroof"

    @property
    def surcharge(self) -> Decimal:
        return OPTION_SURCHARGES[self]


# per-day surcharges
OPTION_SURCHARGES = {
    RentalOption.BLACKBOX: Decimal("5000"),
    RentalOption.NAVIGATION: Decimal("7000"),
    RentalOption.SUNROOF: Decimal("15000"),
}

_OPTIONS_BY_NAME = {o.value.lower(): o for o in RentalOption}


def parse_options(names: Optional[Iterable[str]]) -> List[RentalOption]:
    """
    Map option names to RentalOption, keeping order and duplicates.
    Unknown names are skipped rather than rejected.
    """
    out: List[RentalOption] = []
    for raw in names or ():
        if raw is None:
            continue
        opt = _OPTIONS_BY_NAME.get(str(raw).strip().lower())
        if opt is None:
            logger.debug("Ignoring unknown option %r", raw)
            continue
        out.append(opt)
    return out


def dedupe_options(options: Iterable[RentalOption]) -> List[RentalOption]:
    """Drop repeated options, keeping first-seen order."""
    seen = set()
    out = []
    for o in options:
        if o not in seen:
            seen.add(o)
            out.append(o)
    return out


class PricingChain:
    """
    Per-day quote for a vehicle plus a stack of option surcharges.

    Each option adds its surcharge on top of the previous stage, so applying an
    option twice charges it twice. Order never changes the result.
    """

    def __init__(self, vehicle: VehicleBase, options: Iterable[RentalOption] = ()):
        self.vehicle = vehicle
        self.options = list(options)

    @classmethod
    def build(cls, vehicle: VehicleBase, option_names: Optional[Iterable[str]]) -> "PricingChain":
        return cls(vehicle, parse_options(option_names))

    def with_option(self, option: RentalOption) -> "PricingChain":
        return PricingChain(self.vehicle, self.options + [option])

    def quote(self) -> Decimal:
        """Per-day price with every option applied."""
        total = self.vehicle.daily_rate
        for o in self.options:
            total += o.surcharge
        return total

    def description(self) -> str:
        parts = [self.vehicle.category.label] + [o.value for o in self.options]
        return " + ".join(parts)

    def option_fee(self, days: int) -> Decimal:
        """Total option cost over `days`, never negative."""
        per_day = self.quote() - self.vehicle.daily_rate
        if per_day < 0:
            per_day = ZERO
        return per_day * days


# ------------------------- seasonal fee policy -------------------------
class FeePolicy(str, Enum):
    BASE = "BASE"
    PEAK = "PEAK"
    OFF_SEASON = "OFF_SEASON"

    @property
    def multiplier(self) -> Decimal:
        return FEE_MULTIPLIERS[self]

    @property
    def label(self) -> str:
        return FEE_LABELS[self]

    def calculate_total_fee(self, vehicle: VehicleBase, days: int) -> Decimal:
        """Day-scaled base fee. `days` is validated by the caller."""
        fee = vehicle.daily_rate * days
        if self is FeePolicy.BASE:
            return fee
        return fee * self.multiplier

    @classmethod
    def parse(cls, value, default: "FeePolicy" = None) -> "FeePolicy":
        """
        Resolve a stored tag. Legacy strategy class names are accepted too.
        Raises ValueError on an unknown tag unless a default is given.
        """
        if isinstance(value, cls):
            return value
        key = (value or "").strip()
        policy = _FEE_TAGS.get(key.upper()) or _FEE_TAGS.get(key)
        if policy is None:
            if default is not None:
                return default
            raise ValueError(f"Unknown fee policy: {value!r}")
        return policy


FEE_MULTIPLIERS = {
    FeePolicy.BASE: Decimal("1"),
    FeePolicy.PEAK: Decimal("1.20"),
    FeePolicy.OFF_SEASON: Decimal("0.90"),
}

FEE_LABELS = {
    FeePolicy.BASE: "Base",
    FeePolicy.PEAK: "Peak season (+20%)",
    FeePolicy.OFF_SEASON: "Off season (-10%)",
}

_FEE_TAGS = {
    "BASE": FeePolicy.BASE,
    "PEAK": FeePolicy.PEAK,
    "OFF_SEASON": FeePolicy.OFF_SEASON,
    "OFFSEASON": FeePolicy.OFF_SEASON,
    "BaseFeeStrategy": FeePolicy.BASE,
    "PeakSeasonFeeStrategy": FeePolicy.PEAK,
    "OffSeasonFeeStrategy": FeePolicy.OFF_SEASON,
}


# ------------------------- overdue penalty -------------------------
def overdue_days(scheduled_end: datetime, now: datetime) -> int:
    """
    Whole days past the scheduled end, floored, with a minimum of 1 once late.
    1s late and 47h59m late both count as 1 day; 48h late counts as 2.
    """
    if now <= scheduled_end:
        return 0
    extra = (now - scheduled_end) // timedelta(days=1)
    return max(1, extra)


def overdue_penalty(daily_rate: Decimal, scheduled_end: datetime, now: datetime) -> Decimal:
    extra = overdue_days(scheduled_end, now)
    if extra == 0:
        return ZERO
    return daily_rate * extra * OVERDUE_RATE
