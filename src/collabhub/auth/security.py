"""Password hashing and signed OAuth state tokens.

Password hashes are Argon2id strings produced by ``argon2-cffi``.  OAuth
``state`` values are ``<platform>.<user_id>.<signature>`` where the signature
is an HMAC-SHA256 over the first two parts, keyed by the application secret.
"""

from __future__ import annotations

import hashlib
import hmac

from argon2 import PasswordHasher
from argon2.exceptions import InvalidHashError, VerificationError

from collabhub.domain.errors import AuthenticationError
from collabhub.domain.types import Platform, parse_platform

_password_hasher = PasswordHasher()


def hash_password(password: str, *, hasher: PasswordHasher = _password_hasher) -> str:
    """Hash *password* with a fresh random salt."""
    return hasher.hash(password)


def verify_password(
    password: str, stored_hash: str | None, *, hasher: PasswordHasher = _password_hasher
) -> bool:
    """Check *password* against a hash produced by :func:`hash_password`.

    Malformed or missing hashes never verify.
    """
    if not password or not stored_hash:
        return False
    try:
        return hasher.verify(stored_hash, password)
    except (VerificationError, InvalidHashError):
        return False


def _signature(payload: str, secret_key: str) -> str:
    return hmac.new(secret_key.encode(), payload.encode(), hashlib.sha256).hexdigest()


def sign_oauth_state(platform: Platform, user_id: str, secret_key: str) -> str:
    """Build the ``state`` query parameter for an OAuth authorize URL."""
    payload = f"{platform.value}.{user_id}"
    return f"{payload}.{_signature(payload, secret_key)}"


def verify_oauth_state(state: str, secret_key: str) -> tuple[Platform, str]:
    """Validate a signed OAuth state and return its platform and user id.

    Raises:
        AuthenticationError: If the state is malformed or its signature
            does not match.
    """
    parts = state.split(".")
    if len(parts) != 3:
        raise AuthenticationError("Invalid OAuth state")
    platform_value, user_id, signature = parts
    expected = _signature(f"{platform_value}.{user_id}", secret_key)
    if not hmac.compare_digest(signature, expected):
        raise AuthenticationError("Invalid OAuth state")
    platform = parse_platform(platform_value)
    if platform is None:
        raise AuthenticationError("Invalid OAuth state")
    return platform, user_id
