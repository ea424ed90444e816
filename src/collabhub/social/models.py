"""Social account request bodies and platform API results."""

from __future__ import annotations

import math
from typing import Any

from pydantic import BaseModel, field_validator

from collabhub.domain.types import Platform


def parse_count(value: Any) -> int | None:
    """Parse a follower or like count typed by a person.

    Commas are stripped; only finite, non-negative numbers are kept.
    """
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, str):
        try:
            number = float(value.replace(",", "").strip())
        except ValueError:
            return None
    elif isinstance(value, (int, float)):
        number = float(value)
    else:
        return None
    if not math.isfinite(number) or number < 0:
        return None
    return int(number)


class ProfileSnapshot(BaseModel):
    """Profile fields read from a platform or SocialBlade."""

    handle: str | None = None
    platform_account_id: str | None = None
    followers: int | None = None
    likes: int | None = None
    raw_profile: Any = None

    @field_validator("followers", "likes", mode="before")
    @classmethod
    def parse_counts(cls, v: Any) -> int | None:
        return parse_count(v)

    @field_validator("platform_account_id", mode="before")
    @classmethod
    def stringify_account_id(cls, v: Any) -> Any:
        # SocialBlade and the Graph APIs report some ids as JSON numbers.
        if isinstance(v, int) and not isinstance(v, bool):
            return str(v)
        return v


class TokenGrant(BaseModel):
    access_token: str
    refresh_token: str | None = None
    expires_at: str | None = None


class PlatformRequest(BaseModel):
    platform: Platform


class ManualAccountInput(BaseModel):
    """A social profile typed in by the influencer."""

    platform: Platform
    handle: str | None = None
    followers: int | None = None
    likes: int | None = None
    url: str | None = None

    @field_validator("followers", "likes", mode="before")
    @classmethod
    def parse_counts(cls, v: Any) -> int | None:
        return parse_count(v)


class LookupRequest(BaseModel):
    url: str | None = None
    platform: str | None = None


class ConnectResponse(BaseModel):
    url: str
