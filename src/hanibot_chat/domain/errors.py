"""Error taxonomy shared by the store, the reply pipeline and the API."""

from typing import Any, Dict, Optional

EMPTY_TEXT = "EmptyText"
TEXT_TOO_LONG = "TextTooLong"
EMPTY_SENDER = "EmptySender"
SENDER_TOO_LONG = "SenderTooLong"
RESERVED_SENDER = "ReservedSender"


class ChatError(Exception):
    """Base class for all service errors."""


class MessageValidationError(ChatError):
    """User input is malformed. Always user-correctable."""

    _messages = {
        EMPTY_TEXT: "Skriv en besked først.",
        TEXT_TOO_LONG: "Beskeden må højst være {limit} tegn.",
        EMPTY_SENDER: "Angiv et navn.",
        SENDER_TOO_LONG: "Navnet må højst være {limit} tegn.",
        RESERVED_SENDER: "Navnet er reserveret til botten.",
    }

    def __init__(self, code: str, field: str, limit: Optional[int] = None):
        self.code = code
        self.field = field
        self.limit = limit
        super().__init__(self._messages.get(code, code).format(limit=limit))

    @property
    def too_long(self) -> bool:
        return self.code in (TEXT_TOO_LONG, SENDER_TOO_LONG)

    def details(self) -> Dict[str, Any]:
        return {"code": self.code, "field": self.field, "limit": self.limit}


class MessageNotFound(ChatError):
    """No message with the given id exists."""

    def __init__(self, message_id: str):
        self.message_id = message_id
        super().__init__(f"Message {message_id} not found")


class OriginRejected(ChatError):
    """The request origin is not on the allow-list."""

    def __init__(self, origin: str):
        self.origin = origin
        super().__init__(f"Origin {origin} not allowed")


class CollaboratorUnavailable(ChatError):
    """The external reply collaborator is not configured."""


class CollaboratorError(ChatError):
    """The external reply collaborator failed, timed out or answered garbage."""


class StoreIOError(ChatError):
    """The durable message store could not be read or written."""
