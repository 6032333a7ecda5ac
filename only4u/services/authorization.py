# only4u/services/authorization.py
from flask import current_app
from sqlalchemy.exc import SQLAlchemyError

from only4u.errors import Unauthenticated, Unauthorized
from only4u.extensions import db
from only4u.models import User


def is_authorized(identity) -> bool:
    """True only when `identity` (a user id) belongs to an admin. Fails closed."""
    if not identity:
        return False
    try:
        user = db.session.get(User, str(identity))
    except SQLAlchemyError:
        current_app.logger.exception("[AUTHZ] role lookup failed for %r", identity)
        return False
    if user is None:
        current_app.logger.info("[AUTHZ] unknown identity %r", identity)
        return False
    return user.role == "admin"


def require_admin(identity) -> None:
    if not identity:
        raise Unauthenticated()
    if not is_authorized(identity):
        current_app.logger.warning("[AUTHZ] forbidden for %r", identity)
        raise Unauthorized()
