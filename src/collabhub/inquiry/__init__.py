"""Business inquiries, the negotiation chat, and decisions."""

from collabhub.inquiry.routes import router
from collabhub.inquiry.service import InquiryService

__all__ = ["InquiryService", "router"]
