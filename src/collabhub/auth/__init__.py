"""Authentication: password hashing, sessions, and request dependencies."""

from collabhub.auth.dependencies import (
    bearer_token,
    current_user,
    optional_user,
    require_business,
    require_influencer,
)
from collabhub.auth.security import (
    hash_password,
    sign_oauth_state,
    verify_oauth_state,
    verify_password,
)

__all__ = [
    "bearer_token",
    "current_user",
    "hash_password",
    "optional_user",
    "require_business",
    "require_influencer",
    "sign_oauth_state",
    "verify_oauth_state",
    "verify_password",
]
