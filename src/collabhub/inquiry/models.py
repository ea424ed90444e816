"""Request and response bodies for inquiry and chat endpoints."""

from __future__ import annotations

from typing import Any, Literal

from pydantic import BaseModel, Field, field_validator

from collabhub.domain.models import Message, parse_optional_int
from collabhub.domain.types import Language


def _loose_language(value: Any) -> Language | None:
    # Unknown language codes are ignored rather than rejected.
    if isinstance(value, Language):
        return value
    if isinstance(value, str):
        try:
            return Language(value)
        except ValueError:
            return None
    return None


class InquiryCreate(BaseModel):
    """A business's collaboration request submitted to an influencer."""

    influencer_id: str = Field(min_length=1)
    business_email: str = Field(min_length=3)
    message: str = Field(min_length=1)
    price: int | None = None
    company_info: str | None = None
    attachment_url: str | None = None
    campaign_id: str | None = None
    language: Language | None = None

    @field_validator("price", mode="before")
    @classmethod
    def parse_price(cls, v: Any) -> int | None:
        return parse_optional_int(v)

    @field_validator("attachment_url", mode="before")
    @classmethod
    def drop_non_string_attachment(cls, v: Any) -> str | None:
        return v if isinstance(v, str) else None

    @field_validator("language", mode="before")
    @classmethod
    def parse_language(cls, v: Any) -> Language | None:
        return _loose_language(v)


class MessageCreate(BaseModel):
    content: str | None = None
    language: Language | None = None

    @field_validator("language", mode="before")
    @classmethod
    def parse_language(cls, v: Any) -> Language | None:
        return _loose_language(v)


class CloseChatRequest(BaseModel):
    language: Language | None = None

    @field_validator("language", mode="before")
    @classmethod
    def parse_language(cls, v: Any) -> Language | None:
        return _loose_language(v)


class StatusUpdate(BaseModel):
    """An influencer's decision on an inquiry.

    ``status`` stays a plain string so an unknown value can be answered
    with a domain error rather than a schema error.
    """

    status: str
    message: str | None = None


class PostedMessages(BaseModel):
    """The business message just stored and the agent's reply to it."""

    user_message: Message
    ai_message: Message


class IdleSweepDetail(BaseModel):
    inquiry_id: str
    status: Literal["closed", "failed"]
    error: str | None = None


class IdleSweepResult(BaseModel):
    """Outcome of one idle-chat sweep."""

    closed: int
    details: list[IdleSweepDetail] = Field(default_factory=list)
