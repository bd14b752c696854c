# Security module
from frontdesk.security.auth import (
    get_password_hash, verify_password, create_access_token,
    get_current_user, authenticate
)
from frontdesk.security.policy import Authorizer, PolicyAuthorizer, authorize

__all__ = [
    'get_password_hash', 'verify_password', 'create_access_token',
    'get_current_user', 'authenticate',
    'Authorizer', 'PolicyAuthorizer', 'authorize'
]
