# Security module
from app.security.auth import (
    get_password_hash, verify_password, create_access_token,
    get_auth_session, require_area, require_roles, require_login
)

__all__ = [
    'get_password_hash', 'verify_password', 'create_access_token',
    'get_auth_session', 'require_area', 'require_roles', 'require_login'
]
