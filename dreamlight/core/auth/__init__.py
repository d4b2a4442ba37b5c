"""Authentication and Authorization module.

Provides:
- Authentication: password hashing, login, bearer tokens
- RBAC: per-project access checks and role-scoped listing filters
"""

from .auth_service import AuthService, parse_duration
from .rbac import RBACService

__all__ = [
    # Authentication
    "AuthService",
    "parse_duration",
    # RBAC
    "RBACService",
]
