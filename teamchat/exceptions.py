"""
Chat Exceptions

Error taxonomy shared by HTTP calls and real-time connection events.
HTTP routes turn these into structured responses; the event dispatcher
drops them silently.
"""


class ChatError(Exception):
    """Base exception for all chat errors"""

    status_code: int = 500

    def __init__(self, message: str = ""):
        self.message = message or self.__class__.__name__
        super().__init__(self.message)


class AuthenticationError(ChatError):
    """Bad, missing or expired credential"""

    status_code = 401


class ValidationError(ChatError):
    """Empty content, missing fields or malformed payload"""

    status_code = 400


class ConflictError(ChatError):
    """Unique constraint hit (duplicate username, duplicate direct channel)"""

    status_code = 400


class AuthorizationError(ChatError):
    """Identity lacks the capability for this operation"""

    status_code = 403


class NotFoundError(ChatError):
    """Referenced channel, message or identity does not exist"""

    status_code = 404
