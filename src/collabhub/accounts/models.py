"""Request and response bodies for account, preference, and profile endpoints."""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, Field, field_validator

from collabhub.domain.models import User
from collabhub.domain.types import Language, UserType


def clean_social_links(value: Any) -> dict[str, str]:
    """Keep only non-blank string values of a social links mapping."""
    if not isinstance(value, dict):
        return {}
    return {
        str(key): link.strip()
        for key, link in value.items()
        if isinstance(link, str) and link.strip()
    }


class RegisterRequest(BaseModel):
    email: str = Field(min_length=3, max_length=254)
    password: str = Field(min_length=8)
    user_type: UserType = UserType.INFLUENCER
    username: str | None = Field(default=None, min_length=3, max_length=40)
    first_name: str | None = None
    last_name: str | None = None
    language_preference: Language = Language.EN

    @field_validator("email")
    @classmethod
    def email_must_look_valid(cls, v: str) -> str:
        """Normalize case and require a single ``@`` with text on both sides."""
        v = v.strip().lower()
        local, _, domain = v.partition("@")
        if not local or not domain or "@" in domain:
            raise ValueError("email must be a valid address")
        return v


class LoginRequest(BaseModel):
    email: str
    password: str
    user_type: UserType | None = None

    @field_validator("email")
    @classmethod
    def normalize_email(cls, v: str) -> str:
        return v.strip().lower()


class AuthResponse(BaseModel):
    """A freshly issued bearer token and the account it belongs to."""

    token: str
    user: User


class UsernameUpdate(BaseModel):
    username: str = Field(min_length=3, max_length=40, pattern=r"^[A-Za-z0-9_.-]+$")


class LanguageUpdate(BaseModel):
    language: Language


class PreferencesInput(BaseModel):
    """Negotiation settings an influencer configures for the agent."""

    personal_content_preferences: str = Field(min_length=1)
    monetary_baseline: int = Field(ge=0)
    content_length: str = Field(min_length=1)
    additional_guidelines: str | None = None
    social_links: dict[str, str] = Field(default_factory=dict)

    @field_validator("social_links", mode="before")
    @classmethod
    def drop_blank_links(cls, v: Any) -> dict[str, str]:
        return clean_social_links(v)


class BusinessProfileInput(BaseModel):
    company_name: str | None = None
    website: str | None = None
    industry: str | None = None
    description: str | None = None
    company_size: str | None = None
    social_links: dict[str, str] = Field(default_factory=dict)

    @field_validator("social_links", mode="before")
    @classmethod
    def drop_blank_links(cls, v: Any) -> dict[str, str]:
        return clean_social_links(v)
