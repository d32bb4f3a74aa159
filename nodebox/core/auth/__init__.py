"""Principals and folder permission checks."""
from .principal import UserPrincipal, ANONYMOUS_USER_EMAIL, ANONYMOUS_GROUP_UUID
from .permissions import PermissionEngine

__all__ = [
    'UserPrincipal',
    'PermissionEngine',
    'ANONYMOUS_USER_EMAIL',
    'ANONYMOUS_GROUP_UUID',
]
