import logging
from datetime import datetime
from decimal import Decimal

from flask import Flask, jsonify
from flask.json.provider import DefaultJSONProvider

from .config import Config
from .controllers.auth import bp as auth_bp
from .controllers.rentals import bp as rentals_bp
from .controllers.staff import bp as admin_bp
from .controllers.views import bp as views_bp
from .exceptions import AuthenticationError, ConflictError, NotFoundError, ValidationError
from .models.store import Store

logger = logging.getLogger(__name__)


class RentalJSONProvider(DefaultJSONProvider):
    """Money goes out as exact decimal strings, timestamps as ISO 8601."""

    @staticmethod
    def default(o):
        if isinstance(o, Decimal):
            return str(o)
        if isinstance(o, datetime):
            return o.isoformat()
        return DefaultJSONProvider.default(o)


def _register_error_handlers(app: Flask):
    def handler(status):
        def handle(e):
            logger.debug("%s -> %s: %s", type(e).__name__, status, e)
            return jsonify({"ok": False, "error": str(e)}), status
        return handle

    app.register_error_handler(ValidationError, handler(400))
    app.register_error_handler(AuthenticationError, handler(401))
    app.register_error_handler(NotFoundError, handler(404))
    app.register_error_handler(ConflictError, handler(409))


def create_app(overrides=None):
    app = Flask(__name__)
    app.json = RentalJSONProvider(app)
    app.config.from_object(Config)
    if overrides:
        app.config.update(overrides)

    logging.basicConfig(
        level=app.config["LOG_LEVEL"],
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    Store.configure(app.config["DATABASE_URL"], echo=app.config["SQL_ECHO"])

    app.register_blueprint(auth_bp)
    app.register_blueprint(views_bp)
    app.register_blueprint(rentals_bp)
    app.register_blueprint(admin_bp)
    _register_error_handlers(app)

    return app
