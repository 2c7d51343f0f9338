from flask import Blueprint, current_app, jsonify, session

from ..services.admin_service import AdminService

bp = Blueprint("views", __name__)


@bp.get("/")
def home():
    """Liveness plus the season new rentals will be priced with."""
    season = AdminService.current_season(default=current_app.config["DEFAULT_SEASON"])
    return jsonify({
        "ok": True,
        "service": "car-rental",
        "season": season.value,
        "logged_in": "uid" in session,
    })
