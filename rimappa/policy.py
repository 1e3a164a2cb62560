"""
Who may do what. Every role check in the application goes through
`is_allowed`; views use the `requires` decorator.
"""
from functools import wraps

from flask_login import current_user

from rimappa.errors import AuthenticationRequired, PermissionDenied
from rimappa.models import UserRole

ADMIN = UserRole.ADMIN.value
ORGANIZER = UserRole.ORGANIZER.value
COMPETITOR = UserRole.COMPETITOR.value
USER = UserRole.USER.value

RULES = {
    ('create', 'competition'): {ORGANIZER},
    ('list', 'competition'): {ADMIN, ORGANIZER, COMPETITOR},
    ('import', 'competition'): {ADMIN},
    ('export', 'competition'): {ADMIN},
    ('create', 'participation'): {COMPETITOR},
    ('list', 'participation'): {ADMIN, ORGANIZER, COMPETITOR},
    ('update', 'profile'): {ADMIN, ORGANIZER, COMPETITOR, USER},
}

DENIAL_MESSAGES = {
    ('create', 'competition'): 'Only organizers can create competitions',
    ('import', 'competition'): 'Only administrators can import competitions',
    ('export', 'competition'): 'Only administrators can export competitions',
    ('create', 'participation'): 'Only competitors can request to participate',
}


def is_allowed(role, action, resource):
    """Unknown (action, resource) pairs are denied."""
    return role in RULES.get((action, resource), ())


def authorize(user, action, resource):
    if user is None or not user.is_authenticated:
        raise AuthenticationRequired()
    if not is_allowed(user.role, action, resource):
        raise PermissionDenied(DENIAL_MESSAGES.get((action, resource), PermissionDenied().message))
    return user


def requires(action, resource):
    """Decorator to require a session allowed to perform `action` on `resource`"""
    def decorator(f):
        @wraps(f)
        def decorated_function(*args, **kwargs):
            authorize(current_user, action, resource)
            return f(*args, **kwargs)
        return decorated_function
    return decorator
