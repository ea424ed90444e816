"""Account, influencer preference, and business profile endpoints."""

from __future__ import annotations

import asyncio
from datetime import timedelta

import structlog
from fastapi import APIRouter, Depends, Request

from collabhub.accounts.models import (
    AuthResponse,
    BusinessProfileInput,
    LanguageUpdate,
    LoginRequest,
    PreferencesInput,
    RegisterRequest,
    UsernameUpdate,
)
from collabhub.auth.dependencies import bearer_token, current_user, require_business
from collabhub.auth.security import hash_password, verify_password
from collabhub.domain.errors import AuthenticationError, ConflictError
from collabhub.domain.models import BusinessProfile, InfluencerPreferences, User
from collabhub.storage.users import UserStore

logger = structlog.get_logger()

router = APIRouter()


def _user_store(request: Request) -> UserStore:
    return request.app.state.services["user_store"]


async def _issue_session(request: Request, user: User) -> AuthResponse:
    ttl = timedelta(days=request.app.state.settings.session_ttl_days)
    token = await asyncio.to_thread(_user_store(request).create_session, user.id, ttl)
    return AuthResponse(token=token, user=user)


# ----------------------------------------------------------------------
# Authentication
# ----------------------------------------------------------------------


@router.post("/api/auth/register", status_code=201)
async def register(body: RegisterRequest, request: Request) -> AuthResponse:
    """Create an account and log it in.

    Raises:
        ConflictError: 409 if the email is taken for this account type or
            the username is taken.
    """
    store = _user_store(request)
    existing = await asyncio.to_thread(store.get_user_by_email, body.email, body.user_type)
    if existing is not None:
        raise ConflictError("An account with this email already exists")

    password_hash = await asyncio.to_thread(hash_password, body.password)
    user = await asyncio.to_thread(
        lambda: store.create_user(
            email=body.email,
            password_hash=password_hash,
            user_type=body.user_type,
            username=body.username,
            first_name=body.first_name,
            last_name=body.last_name,
            language_preference=body.language_preference,
        )
    )
    logger.info("User registered", user_id=user.id, user_type=user.user_type)
    return await _issue_session(request, user)


@router.post("/api/auth/login")
async def login(body: LoginRequest, request: Request) -> AuthResponse:
    store = _user_store(request)
    user = await asyncio.to_thread(store.get_user_by_email, body.email, body.user_type)
    valid = user is not None and await asyncio.to_thread(
        verify_password, body.password, user.password_hash
    )
    if not valid or user is None:
        logger.info("Login rejected", email=body.email)
        raise AuthenticationError("Invalid email or password")
    logger.info("User logged in", user_id=user.id)
    return await _issue_session(request, user)


@router.post("/api/auth/logout")
async def logout(request: Request) -> dict[str, str]:
    token = bearer_token(request)
    if token is not None:
        await asyncio.to_thread(_user_store(request).delete_session, token)
    return {"message": "Logged out"}


@router.get("/api/auth/user")
async def get_user(user: User = Depends(current_user)) -> User:
    return user


@router.patch("/api/auth/username")
async def update_username(
    body: UsernameUpdate, request: Request, user: User = Depends(current_user)
) -> User:
    """Change the caller's public username (409 when already taken)."""
    store = _user_store(request)
    owner = await asyncio.to_thread(store.get_user_by_username, body.username)
    if owner is not None and owner.id != user.id:
        raise ConflictError("Username is already taken")
    return await asyncio.to_thread(store.update_username, user.id, body.username)


@router.patch("/api/auth/language")
async def update_language(
    body: LanguageUpdate, request: Request, user: User = Depends(current_user)
) -> User:
    return await asyncio.to_thread(
        _user_store(request).update_language_preference, user.id, body.language
    )


# ----------------------------------------------------------------------
# Influencer preferences
# ----------------------------------------------------------------------


@router.get("/api/preferences")
async def get_preferences(
    request: Request, user: User = Depends(current_user)
) -> InfluencerPreferences | None:
    return await asyncio.to_thread(_user_store(request).get_influencer_preferences, user.id)


@router.post("/api/preferences")
async def save_preferences(
    body: PreferencesInput, request: Request, user: User = Depends(current_user)
) -> InfluencerPreferences:
    """Create or replace the caller's agent preferences."""
    preferences = await asyncio.to_thread(
        lambda: _user_store(request).upsert_influencer_preferences(
            user.id, **body.model_dump()
        )
    )
    logger.info("Influencer preferences saved", user_id=user.id)
    return preferences


# ----------------------------------------------------------------------
# Business profile
# ----------------------------------------------------------------------


@router.get("/api/business/profile")
async def get_business_profile(
    request: Request, user: User = Depends(require_business)
) -> BusinessProfile | None:
    return await asyncio.to_thread(_user_store(request).get_business_profile, user.id)


@router.post("/api/business/profile")
async def save_business_profile(
    body: BusinessProfileInput, request: Request, user: User = Depends(require_business)
) -> BusinessProfile:
    profile = await asyncio.to_thread(
        lambda: _user_store(request).upsert_business_profile(user.id, **body.model_dump())
    )
    logger.info("Business profile saved", user_id=user.id)
    return profile
