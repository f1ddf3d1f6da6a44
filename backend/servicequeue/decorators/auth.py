from functools import wraps
from flask_jwt_extended import verify_jwt_in_request
from servicequeue.errors import UnauthorizedError
from servicequeue.services.policy import has_permissions


def require_permissions(*codes: str, any_of: bool = False):
    """Require a valid JWT holding every code in ``codes`` (or at least one when ``any_of``)."""
    def outer(fn):
        @wraps(fn)
        def wrapper(*args, **kwargs):
            verify_jwt_in_request()
            if any_of:
                granted = any(has_permissions(c) for c in codes)
            else:
                granted = has_permissions(*codes)
            if not granted:
                raise UnauthorizedError(f"missing permission: {', '.join(codes)}")
            return fn(*args, **kwargs)
        return wrapper
    return outer
