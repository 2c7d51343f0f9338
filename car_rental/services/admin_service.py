from __future__ import annotations

import logging
from typing import List, Optional, TYPE_CHECKING

from . import common
from .common import account_from_dict, rental_from_dict, vehicle_from_dict
from ..exceptions import InvalidArgumentError
from ..models.pricing import FeePolicy
from ..utils.constants import SEASON_SETTING
from ..utils.filters import fmt_local, fmt_money, DEFAULT_TZ

if TYPE_CHECKING:
    from ..models.store import Store  # noqa: F401

logger = logging.getLogger(__name__)


class AdminService:
    """Season configuration and rental history for administrators."""

    @staticmethod
    def current_season(default=FeePolicy.BASE, store: Optional["Store"] = None) -> FeePolicy:
        """The fee policy new rentals should use. Existing rentals keep their own."""
        st = store or common._store()
        fallback = FeePolicy.parse(default, default=FeePolicy.BASE)
        return FeePolicy.parse(st.get_setting(SEASON_SETTING), default=fallback)

    @staticmethod
    def change_season(season, store: Optional["Store"] = None) -> FeePolicy:
        st = store or common._store()
        try:
            policy = FeePolicy.parse(season)
        except ValueError:
            raise InvalidArgumentError(
                f"Error: season must be one of {', '.join(p.value for p in FeePolicy)}") from None
        st.set_setting(SEASON_SETTING, policy.value)
        logger.info("Season changed to %s", policy.value)
        return policy

    @staticmethod
    def rental_history(tz_name: str = DEFAULT_TZ, store: Optional["Store"] = None) -> List[dict]:
        """
        All rentals, newest first, with login id and vehicle name attached.
        Rows whose account or vehicle was deleted keep their raw ids.
        """
        st = store or common._store()
        accounts = {}
        vehicles = {v["id"]: vehicle_from_dict(v) for v in st.list_vehicles()}

        out = []
        for d in st.list_rentals():
            rec = rental_from_dict(d)
            if rec.account_id not in accounts:
                accounts[rec.account_id] = account_from_dict(st.get_account(rec.account_id))
            acc = accounts[rec.account_id]
            veh = vehicles.get(rec.vehicle_id)

            row = rec.to_dict()
            row.update({
                "login_id": acc.login_id if acc else str(rec.account_id),
                "vehicle_name": veh.display_name if veh else str(rec.vehicle_id),
                "start_local": fmt_local(rec.start_at, tz_name),
                "end_local": fmt_local(rec.end_at, tz_name),
                "total_display": fmt_money(rec.total_fee),
            })
            out.append(row)
        return out
