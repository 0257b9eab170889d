# Overview: Request decorators for API routes.

from functools import wraps
from flask import request, g, current_app

from .responses import fail
from .services import session_service
from .services.session_service import SessionError


def require_auth(f):
    """
    Require a valid session cookie.

    Sets g.current_user_email and g.session_context for the route.

    Returns 401 if:
    - No session cookie
    - Token expired
    - Bad signature, malformed claims, or a subject other than the operator
    """
    @wraps(f)
    def decorated_function(*args, **kwargs):
        token = request.cookies.get(current_app.config.get("AUTH_COOKIE_NAME", "jwt"))
        if not token:
            return fail("Authentication required", 401)

        try:
            context = session_service.validate_token(token)
        except SessionError as e:
            return fail(str(e), 401)

        g.current_user_email = context.email
        g.session_context = context

        return f(*args, **kwargs)

    return decorated_function
