from __future__ import annotations

from collections import Counter
from decimal import Decimal
from typing import Optional, TYPE_CHECKING

from . import common
from .common import rental_from_dict
from ..utils.constants import RentalStatus, VehicleState

if TYPE_CHECKING:
    from ..models.store import Store  # noqa: F401


class AnalyticsService:
    """Aggregations for the admin dashboard."""

    @staticmethod
    def summary(store: Optional["Store"] = None) -> dict:
        st = store or common._store()
        vehicles = st.list_vehicles()
        rentals = [rental_from_dict(d) for d in st.list_rentals()]

        # only settled rentals count as revenue
        returned = [r for r in rentals if r.status == RentalStatus.RETURNED]
        revenue = sum((r.total_fee for r in returned), Decimal("0"))
        discounts = sum((r.discount for r in returned), Decimal("0"))
        penalties = sum((r.penalty for r in returned), Decimal("0"))

        names = {v["id"]: (v.get("name") or str(v["id"])) for v in vehicles}
        cnt = Counter(r.vehicle_id for r in rentals)
        rentals_by_vehicle = [
            {"vehicle_id": vid, "label": names.get(vid, str(vid)), "count": c}
            for vid, c in cnt.most_common()
        ]

        by_policy = Counter(r.fee_policy for r in rentals)

        return {
            "totals": {
                "vehicles": len(vehicles),
                "available": sum(1 for v in vehicles if v.get("state") == VehicleState.AVAILABLE),
                "rentals": len(rentals),
                "active": sum(1 for r in rentals if r.status == RentalStatus.RENTED),
                "revenue": revenue,
                "discounts": discounts,
                "penalties": penalties,
            },
            "rentals_by_vehicle": rentals_by_vehicle,
            "rentals_by_policy": dict(by_policy),
        }
