"""
Error types shared by the session, storage and data-provider layers.
"""

from typing import Optional


class LarunError(Exception):
    """Base class for all LARUN errors."""

    status_code: int = 500

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class ConversationNotFoundError(LarunError):
    """A conversation id did not resolve in the store."""

    status_code = 404

    def __init__(self, conversation_id: str):
        super().__init__(f"Conversation not found: {conversation_id}")
        self.conversation_id = conversation_id


class UpstreamUnavailableError(LarunError):
    """A remote completion or data-provider call failed."""

    status_code = 502

    def __init__(self, service: str, reason: Optional[str] = None):
        message = f"{service} unavailable"
        if reason:
            message += f": {reason}"
        super().__init__(message)
        self.service = service
        self.reason = reason


class SessionBusyError(LarunError):
    """A send was attempted while another one is still in flight."""

    status_code = 409

    def __init__(self):
        super().__init__("A message is already being processed for this session")


class PersistenceError(LarunError):
    """
    A write to durable storage failed. Logged rather than raised: the
    operation still returns its in-memory result.
    """

    def __init__(self, path: str):
        super().__init__(f"Failed to persist {path}")
        self.path = path
