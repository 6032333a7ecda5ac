# only4u/auth/__init__.py

# One blueprint object shared by login, signup and profile views
from . import login_routes as _login

auth_bp = _login.auth_bp

# importing attaches the view functions to auth_bp
from . import signup_routes  # noqa: F401,E402
from . import profile_routes  # noqa: F401,E402
