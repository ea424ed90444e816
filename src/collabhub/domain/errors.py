"""Domain-specific exception classes for the marketplace.

Every error carries the HTTP status it maps to so the API layer can render
it without a lookup table.
"""


class CollabHubError(Exception):
    """Base class for all domain errors."""

    status_code: int = 500

    def __init__(self, message: str) -> None:
        self.message = message
        super().__init__(message)


class InvalidRequestError(CollabHubError):
    """Raised when request input fails domain validation."""

    status_code = 400


class AuthenticationError(CollabHubError):
    """Raised when a request carries no valid session."""

    status_code = 401


class ForbiddenError(CollabHubError):
    """Raised when the caller's account type may not use an endpoint."""

    status_code = 403


class NotFoundError(CollabHubError):
    """Raised when an entity does not exist or is not visible to the caller."""

    status_code = 404


class ConflictError(CollabHubError):
    """Raised when a unique value (email, username) is already taken."""

    status_code = 409


class ChatClosedError(CollabHubError):
    """Raised when a message is posted to a closed inquiry chat."""

    status_code = 400

    def __init__(self, inquiry_id: str) -> None:
        self.inquiry_id = inquiry_id
        super().__init__("This conversation has been closed")


class ExtractionError(CollabHubError):
    """Raised when campaign fields could not be extracted from free text."""

    status_code = 500


class SocialPlatformError(CollabHubError):
    """Raised when a social platform or SocialBlade call fails.

    Attributes:
        platform: The platform whose API failed, if known.
    """

    status_code = 502

    def __init__(self, message: str, platform: str | None = None) -> None:
        self.platform = platform
        super().__init__(message)
