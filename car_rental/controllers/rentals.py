from flask import Blueprint, current_app, jsonify, request, session

from ..exceptions import RentalNotFoundError
from ..services.admin_service import AdminService
from ..services.common import to_int_safe
from ..services.rental_service import RentalService
from ..services.vehicle_service import VehicleService
from ..utils.constants import Role
from ..utils.decorators import login_required

bp = Blueprint("rentals", __name__, url_prefix="/")


def _payload() -> dict:
    return request.get_json(silent=True) or request.form.to_dict()


def _options(data: dict) -> list:
    """Options arrive as a JSON list or a comma separated form field."""
    raw = data.get("options") or []
    if isinstance(raw, str):
        raw = raw.split(",")
    return [str(o).strip() for o in raw if str(o).strip()]


def _days(data: dict):
    days = data.get("days")
    if isinstance(days, str):
        return to_int_safe(days.strip())
    return days


def _own_rental(rental_id):
    """Load a rental the current user may act on; others look like missing ones."""
    rec = RentalService.get_rental(rental_id)
    if rec.account_id != session.get("uid") and session.get("role") != Role.ADMIN:
        raise RentalNotFoundError(f"Error: rental '{rental_id}' not found")
    return rec


@bp.get("/vehicles")
@login_required
def list_vehicles():
    """Available vehicles; `?all=1` lists the whole inventory."""
    if request.args.get("all"):
        vehicles = VehicleService.find_all()
    else:
        vehicles = VehicleService.find_available()
    return jsonify({"ok": True, "vehicles": [v.to_dict() for v in vehicles]})


@bp.get("/vehicles/<int:vid>")
@login_required
def vehicle_detail(vid):
    v = VehicleService.find_by_id(vid)
    return jsonify({"ok": True, "vehicle": v.to_dict()})


@bp.post("/quote")
@login_required
def quote():
    data = _payload()
    vehicle = VehicleService.find_by_id(data.get("vehicle_id"))
    season = AdminService.current_season(default=current_app.config["DEFAULT_SEASON"])
    return jsonify({"ok": True, "quote": RentalService.quote(vehicle, _days(data), _options(data), season)})


@bp.post("/rent")
@login_required
def rent_vehicle():
    """Rent a vehicle for the current user under the current season."""
    data = _payload()
    vehicle = VehicleService.find_by_id(data.get("vehicle_id"))
    season = AdminService.current_season(default=current_app.config["DEFAULT_SEASON"])

    rec = RentalService.rent(
        account_id=session["uid"],
        vehicle=vehicle,
        days=_days(data),
        option_names=_options(data),
        fee_policy=season,
    )
    return jsonify({"ok": True, "rental": rec.to_dict()}), 201


@bp.post("/return")
@login_required
def return_vehicle():
    rental_id = _payload().get("rental_id")
    rec = _own_rental(rental_id)
    settled = RentalService.return_car(rec.rental_id)
    return jsonify({"ok": True, "rental": settled.to_dict()})


@bp.get("/rentals")
@login_required
def my_rentals():
    """The current user's rentals; `?active=1` for the ones still out."""
    uid = session["uid"]
    if request.args.get("active"):
        rentals = RentalService.active_rentals_for(uid)
    else:
        rentals = RentalService.rentals_for_account(uid)
    return jsonify({"ok": True, "rentals": [r.to_dict() for r in rentals]})


@bp.get("/rentals/<int:rid>/payment")
@login_required
def payment(rid):
    rec = _own_rental(rid)
    return jsonify({"ok": True, "payment": RentalService.payment_breakdown(rec.rental_id)})
