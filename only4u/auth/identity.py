# only4u/auth/identity.py
from flask_login import current_user

from only4u.errors import Unauthenticated


def current_identity():
    """Id of the signed-in user or None. Only the HTTP layer reads the session."""
    if current_user and current_user.is_authenticated:
        return current_user.get_id()
    return None


def require_identity():
    identity = current_identity()
    if not identity:
        raise Unauthenticated()
    return identity
