# only4u/extensions.py
from __future__ import annotations

import socket
from flask import jsonify
from flask_sqlalchemy import SQLAlchemy
from flask_login import LoginManager
from flask_bcrypt import Bcrypt
from flask_migrate import Migrate
from flask_cors import CORS
from flask_mail import Mail

# Keep extension instances in one place to avoid circular imports
db = SQLAlchemy()
login_manager = LoginManager()
bcrypt = Bcrypt()
migrate = Migrate()
cors = CORS()
mail = Mail()


@login_manager.user_loader
def load_user(user_id):
    # Lazy import to avoid circular dependency when loading the model
    from only4u.models.user import User
    if not user_id:
        return None
    return db.session.get(User, str(user_id))


@login_manager.unauthorized_handler
def unauthorized():
    return jsonify({"error": "Unauthorized"}), 401


def _coerce_bool(v, default=False) -> bool:
    if v is None:
        return default
    if isinstance(v, bool):
        return v
    s = str(v).strip().lower()
    return s in ("1", "true", "t", "yes", "y", "on")


def _clean_hostname(server: str | None) -> str:
    """Return hostname without scheme/path/spaces."""
    s = (server or "").strip()
    if "://" in s:
        s = s.split("://", 1)[1]
    if "/" in s:
        s = s.split("/", 1)[0]
    return s


def init_mail(app):
    """
    Initialize Flask-Mail with a bit of config sanitization to avoid
    'getaddrinfo failed' errors from malformed MAIL_SERVER.
    """
    cfg = app.config

    server = _clean_hostname(cfg.get("MAIL_SERVER"))
    if not server:
        server = "localhost"
        app.logger.warning("MAIL_SERVER was not set -> using fallback 'localhost'.")
    cfg["MAIL_SERVER"] = server

    use_ssl = _coerce_bool(cfg.get("MAIL_USE_SSL"), False)
    use_tls = _coerce_bool(cfg.get("MAIL_USE_TLS"), False)
    if use_ssl and use_tls:
        use_tls = False
        cfg["MAIL_USE_TLS"] = False
        app.logger.info("MAIL_USE_SSL and MAIL_USE_TLS were True -> disabling TLS (prefer SSL).")

    try:
        port = int(cfg.get("MAIL_PORT"))
    except (TypeError, ValueError):
        port = 465 if use_ssl else (587 if use_tls else 25)
        app.logger.info("MAIL_PORT was invalid -> setting %s (SSL=%s, TLS=%s).", port, use_ssl, use_tls)
    cfg["MAIL_PORT"] = port

    if not cfg.get("MAIL_DEFAULT_SENDER"):
        cfg["MAIL_DEFAULT_SENDER"] = cfg.get("MAIL_USERNAME") or "no-reply@only4u.local"

    # DNS is only worth checking when mail is really going out
    if not cfg.get("MAIL_SUPPRESS_SEND") and not app.testing:
        try:
            infos = socket.getaddrinfo(server, port, proto=socket.IPPROTO_TCP)
            if not {i[4][0] for i in infos if i[4]}:
                app.logger.warning("DNS resolve for '%s' returned no IP addresses.", server)
        except OSError as e:
            app.logger.error("DNS resolve failed for MAIL_SERVER='%s': %s", server, e)

    app.logger.info(
        "MAIL cfg -> server=%s port=%s ssl=%s tls=%s sender=%s suppress=%s",
        cfg.get("MAIL_SERVER"),
        cfg.get("MAIL_PORT"),
        bool(cfg.get("MAIL_USE_SSL")),
        bool(cfg.get("MAIL_USE_TLS")),
        cfg.get("MAIL_DEFAULT_SENDER"),
        bool(cfg.get("MAIL_SUPPRESS_SEND")),
    )

    mail.init_app(app)
