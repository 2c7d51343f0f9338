from flask import Blueprint, current_app, jsonify, request

from ..services.admin_service import AdminService
from ..services.analytics_service import AnalyticsService
from ..services.vehicle_service import VehicleService
from ..utils.constants import Role
from ..utils.decorators import role_required

bp = Blueprint("staff", __name__, url_prefix="/admin")


def _payload() -> dict:
    return request.get_json(silent=True) or request.form.to_dict()


@bp.post("/vehicles")
@role_required(Role.ADMIN)
def add_vehicle():
    """Register a vehicle; rate and name are optional."""
    data = _payload()
    v = VehicleService.register_vehicle(
        category=data.get("category"),
        rate=data.get("daily_rate"),
        name=data.get("name"),
    )
    return jsonify({"ok": True, "vehicle": v.to_dict()}), 201


@bp.delete("/vehicles/<int:vid>")
@role_required(Role.ADMIN)
def delete_vehicle(vid):
    VehicleService.delete_vehicle(vid)
    return jsonify({"ok": True})


@bp.get("/rentals")
@role_required(Role.ADMIN)
def rental_history():
    rows = AdminService.rental_history(tz_name=current_app.config["DISPLAY_TIMEZONE"])
    return jsonify({"ok": True, "rentals": rows})


@bp.get("/season")
@role_required(Role.ADMIN)
def get_season():
    policy = AdminService.current_season(default=current_app.config["DEFAULT_SEASON"])
    return jsonify({"ok": True, "season": policy.value, "label": policy.label})


@bp.put("/season")
@role_required(Role.ADMIN)
def change_season():
    policy = AdminService.change_season(_payload().get("season"))
    return jsonify({"ok": True, "season": policy.value, "label": policy.label})


@bp.get("/analytics")
@role_required(Role.ADMIN)
def analytics():
    return jsonify({"ok": True, "data": AnalyticsService.summary()})
