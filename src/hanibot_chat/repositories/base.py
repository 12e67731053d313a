"""Base message store interface."""

from abc import ABC, abstractmethod
from typing import List, Sequence

from ..domain.models import Message, MessagePatch


class MessageStore(ABC):
    """Durable, insertion-ordered collection of messages.

    Implementations are read-modify-write over the whole collection and are
    not safe for concurrent writers; callers serialize mutations.
    """

    @abstractmethod
    async def read_all(self) -> List[Message]:
        """Return every message in insertion order."""
        pass

    @abstractmethod
    async def extend(self, messages: Sequence[Message]) -> None:
        """Append messages at the end, all or nothing."""
        pass

    @abstractmethod
    async def update_by_id(self, message_id: str, patch: MessagePatch) -> Message:
        """Merge the provided fields into a message and persist."""
        pass

    @abstractmethod
    async def delete_by_id(self, message_id: str) -> Message:
        """Remove a message and persist the remainder."""
        pass

    async def append(self, message: Message) -> None:
        """Append one message."""
        await self.extend([message])
