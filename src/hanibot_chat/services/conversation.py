"""Store and history cache composed behind one lock."""

import asyncio
from datetime import datetime
from typing import Callable, List, Optional

import structlog

from ..domain.models import HistoryEntry, Message, MessagePatch, Turn, utcnow
from ..repositories.base import MessageStore
from .history import HistoryCache

logger = structlog.get_logger()


class ConversationService:
    """Owns the message store and its history cache.

    Every mutation runs store-then-cache inside one ``asyncio.Lock``. If the
    store write raises, the cache is not touched.
    """

    def __init__(
        self,
        store: MessageStore,
        history: HistoryCache,
        clock: Callable[[], datetime] = utcnow,
    ) -> None:
        self.store = store
        self.history = history
        self._clock = clock
        self._lock = asyncio.Lock()
        self._hydrated = False
        self._last_timestamp: Optional[datetime] = None

    async def hydrate(self) -> None:
        """Load the store into the cache. Only the first call reads."""
        async with self._lock:
            await self._hydrate_locked()

    async def _hydrate_locked(self) -> None:
        if self._hydrated:
            return
        messages = await self.store.read_all()
        self.history.hydrate(messages)
        if messages:
            self._last_timestamp = max(m.date for m in messages)
        self._hydrated = True
        logger.info("history_hydrated", messages=len(messages))

    def _next_timestamp(self) -> datetime:
        now = self._clock()
        if self._last_timestamp is not None and now < self._last_timestamp:
            now = self._last_timestamp
        self._last_timestamp = now
        return now

    async def list_history(self) -> List[HistoryEntry]:
        if not self._hydrated:
            await self.hydrate()
        return self.history.get()

    async def record_turn(self, text: str, sender: str, reply: str, bot_name: str) -> Turn:
        """Persist a user message and its bot reply together."""
        async with self._lock:
            await self._hydrate_locked()
            user = Message(date=self._next_timestamp(), text=text, sender=sender)
            bot = Message(date=self._next_timestamp(), text=reply, sender=bot_name)
            await self.store.extend([user, bot])
            turn = Turn(
                user_message=self.history.append(user),
                bot_message=self.history.append(bot),
            )
        logger.info("turn_recorded", user_message_id=user.id, bot_message_id=bot.id)
        return turn

    async def update_message(self, message_id: str, patch: MessagePatch) -> HistoryEntry:
        async with self._lock:
            await self._hydrate_locked()
            updated = await self.store.update_by_id(message_id, patch)
            entry = self.history.update_by_id(updated)
        logger.info("message_updated", message_id=message_id)
        return entry

    async def delete_message(self, message_id: str) -> HistoryEntry:
        async with self._lock:
            await self._hydrate_locked()
            await self.store.delete_by_id(message_id)
            entry = self.history.delete_by_id(message_id)
        logger.info("message_deleted", message_id=message_id)
        return entry
