"""FastAPI dependencies that resolve the caller from a bearer session token."""

from __future__ import annotations

import asyncio

import structlog
from fastapi import Depends, Request

from collabhub.domain.errors import AuthenticationError, ForbiddenError
from collabhub.domain.models import User
from collabhub.domain.types import UserType
from collabhub.storage.users import UserStore


def bearer_token(request: Request) -> str | None:
    """Extract the token from an ``Authorization: Bearer <token>`` header."""
    scheme, _, token = request.headers.get("Authorization", "").partition(" ")
    if scheme.lower() != "bearer" or not token.strip():
        return None
    return token.strip()


async def optional_user(request: Request) -> User | None:
    """Return the authenticated user, or ``None`` for anonymous requests."""
    token = bearer_token(request)
    if token is None:
        return None
    store: UserStore = request.app.state.services["user_store"]
    user = await asyncio.to_thread(store.get_session_user, token)
    if user is not None:
        structlog.contextvars.bind_contextvars(user_id=user.id)
    return user


async def current_user(user: User | None = Depends(optional_user)) -> User:
    if user is None:
        raise AuthenticationError("Unauthorized")
    return user


async def require_business(user: User = Depends(current_user)) -> User:
    if user.user_type != UserType.BUSINESS:
        raise ForbiddenError("Business access required")
    return user


async def require_influencer(user: User = Depends(current_user)) -> User:
    if user.user_type != UserType.INFLUENCER:
        raise ForbiddenError("Influencer access required")
    return user
