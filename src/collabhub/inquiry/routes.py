"""Inquiry, chat, and idle-sweep endpoints."""

from __future__ import annotations

import asyncio
import hmac

import structlog
from fastapi import APIRouter, Depends, Request

from collabhub.auth.dependencies import (
    bearer_token,
    current_user,
    optional_user,
    require_business,
    require_influencer,
)
from collabhub.domain.errors import AuthenticationError
from collabhub.domain.models import Inquiry, Message, User
from collabhub.inquiry.models import (
    CloseChatRequest,
    IdleSweepResult,
    InquiryCreate,
    MessageCreate,
    PostedMessages,
    StatusUpdate,
)
from collabhub.inquiry.service import InquiryService

logger = structlog.get_logger()

router = APIRouter()


def _service(request: Request) -> InquiryService:
    return request.app.state.services["inquiry_service"]


# ----------------------------------------------------------------------
# Inquiries
# ----------------------------------------------------------------------


@router.get("/api/inquiries")
async def list_inquiries(
    request: Request, user: User = Depends(require_influencer)
) -> list[Inquiry]:
    return await asyncio.to_thread(_service(request).list_for_influencer, user)


@router.post("/api/inquiries", status_code=201)
async def create_inquiry(
    body: InquiryCreate,
    request: Request,
    user: User | None = Depends(optional_user),
) -> Inquiry:
    """Open an inquiry with an influencer and return it with the agent's reply.

    Anonymous submissions are accepted; an authenticated business is linked
    to the inquiry.
    """
    return await asyncio.to_thread(_service(request).open_inquiry, body, user)


@router.get("/api/business/inquiries")
async def list_business_inquiries(
    request: Request, user: User = Depends(require_business)
) -> list[Inquiry]:
    return await asyncio.to_thread(_service(request).list_for_business, user)


@router.get("/api/inquiries/{inquiry_id}")
async def get_inquiry(
    inquiry_id: str, request: Request, user: User = Depends(current_user)
) -> Inquiry:
    return await asyncio.to_thread(_service(request).get_for_user, inquiry_id, user)


@router.delete("/api/inquiries/{inquiry_id}")
async def delete_inquiry(
    inquiry_id: str, request: Request, user: User = Depends(require_influencer)
) -> dict[str, str]:
    await asyncio.to_thread(_service(request).delete, inquiry_id, user)
    return {"message": "Inquiry deleted"}


@router.patch("/api/inquiries/{inquiry_id}/status")
async def update_inquiry_status(
    inquiry_id: str,
    body: StatusUpdate,
    request: Request,
    user: User = Depends(require_influencer),
) -> Inquiry:
    """Record the influencer's decision; the business is emailed for final ones."""
    return await _service(request).update_status(inquiry_id, body.status, body.message, user)


# ----------------------------------------------------------------------
# Chat
# ----------------------------------------------------------------------


@router.post("/api/inquiries/{inquiry_id}/close")
async def close_chat(
    inquiry_id: str, request: Request, body: CloseChatRequest | None = None
) -> Inquiry:
    language = body.language if body else None
    return await asyncio.to_thread(_service(request).close_chat, inquiry_id, language)


@router.get("/api/inquiries/{inquiry_id}/messages")
async def list_messages(inquiry_id: str, request: Request) -> list[Message]:
    return await asyncio.to_thread(_service(request).list_messages, inquiry_id)


@router.post("/api/inquiries/{inquiry_id}/messages")
async def post_message(inquiry_id: str, body: MessageCreate, request: Request) -> PostedMessages:
    return await asyncio.to_thread(
        _service(request).post_message, inquiry_id, body.content, body.language
    )


# ----------------------------------------------------------------------
# Scheduled sweep
# ----------------------------------------------------------------------


def verify_cron_secret(request: Request) -> None:
    """Accept the request only when it presents the configured cron secret.

    The secret may arrive as a bearer token or as the ``secret`` query
    parameter.

    Raises:
        AuthenticationError: If no secret is configured or it does not match.
    """
    expected = request.app.state.settings.cron_secret.get_secret_value()
    presented = bearer_token(request) or request.query_params.get("secret") or ""
    if not expected or not hmac.compare_digest(presented.encode(), expected.encode()):
        logger.warning("Rejected idle sweep request", path=request.url.path)
        raise AuthenticationError("Unauthorized")


@router.api_route(
    "/api/cron/close-idle-chats",
    methods=["GET", "POST"],
    dependencies=[Depends(verify_cron_secret)],
)
async def close_idle_chats(request: Request) -> IdleSweepResult:
    return await asyncio.to_thread(_service(request).close_idle_chats)
