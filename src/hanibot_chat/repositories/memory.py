"""In-memory store implementation."""

from typing import List, Sequence

import structlog

from ..domain.errors import MessageNotFound
from ..domain.models import Message, MessagePatch
from .base import MessageStore

logger = structlog.get_logger()


class InMemoryMessageStore(MessageStore):
    """Process-local store. Content is lost on restart."""

    def __init__(self, messages: Sequence[Message] = ()) -> None:
        self._messages: List[Message] = [m.model_copy() for m in messages]
        logger.info("memory_store_initialized", messages=len(self._messages))

    async def read_all(self) -> List[Message]:
        return [m.model_copy() for m in self._messages]

    async def extend(self, messages: Sequence[Message]) -> None:
        self._messages.extend(m.model_copy() for m in messages)

    async def update_by_id(self, message_id: str, patch: MessagePatch) -> Message:
        for index, message in enumerate(self._messages):
            if message.id == message_id:
                updated = message.model_copy(update=patch.model_dump(exclude_none=True))
                self._messages[index] = updated
                return updated.model_copy()
        raise MessageNotFound(message_id)

    async def delete_by_id(self, message_id: str) -> Message:
        for index, message in enumerate(self._messages):
            if message.id == message_id:
                return self._messages.pop(index).model_copy()
        raise MessageNotFound(message_id)
