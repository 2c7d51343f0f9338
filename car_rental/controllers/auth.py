from flask import Blueprint, current_app, jsonify, request, session

from ..services.user_service import UserService
from ..utils.decorators import login_required

bp = Blueprint("auth", __name__, url_prefix="/")


def _payload() -> dict:
    """Accept either a JSON body or a classic form post."""
    return request.get_json(silent=True) or request.form.to_dict()


@bp.post("/signup")
def signup():
    data = _payload()
    account = UserService.signup(
        login_id=data.get("login_id"),
        password=data.get("password") or "",
        name=data.get("name"),
        phone_number=data.get("phone_number"),
        admin_login_id=current_app.config["ADMIN_LOGIN_ID"],
    )
    return jsonify({"ok": True, "account": account.to_dict()}), 201


@bp.post("/login")
def login():
    data = _payload()
    account = UserService.login(data.get("login_id"), data.get("password"))

    session.clear()
    session["uid"] = account.account_id
    session["role"] = account.role
    session["login_id"] = account.login_id
    return jsonify({"ok": True, "account": account.to_dict()})


@bp.post("/logout")
def logout():
    session.clear()
    return jsonify({"ok": True})


@bp.post("/find-account")
def find_account():
    """Look up a login id by phone number."""
    login_id = UserService.find_login_id_by_phone(_payload().get("phone_number"))
    return jsonify({"ok": True, "login_id": login_id})


@bp.get("/me")
@login_required
def me():
    account = UserService.get_account(session["uid"])
    return jsonify({"ok": True, "account": account.to_dict()})


@bp.patch("/me")
@login_required
def update_me():
    data = _payload()
    account = UserService.update_info(
        session["uid"],
        name=data.get("name"),
        phone_number=data.get("phone_number"),
        password=data.get("password"),
    )
    return jsonify({"ok": True, "account": account.to_dict()})


@bp.post("/me/card")
@login_required
def register_card():
    account = UserService.register_card(session["uid"], _payload().get("card_number"))
    return jsonify({"ok": True, "account": account.to_dict()})


@bp.delete("/me")
@login_required
def withdraw():
    UserService.withdraw(session["uid"])
    session.clear()
    return jsonify({"ok": True})
