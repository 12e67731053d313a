"""Reply pipeline.

Validating -> Matching -> (Resolved | Escalating) -> Persisting -> Done.
A validation failure rejects the request before anything is written.
Once validation passes the turn always gets a reply.
"""

from typing import Any, Optional

import structlog

from ..config import Settings
from ..domain.errors import MessageValidationError
from ..domain.models import HistoryEntry, MessagePatch, Turn
from ..metrics import ESCALATIONS, KEYWORD_HITS, TURNS
from .conversation import ConversationService
from .escalation import EscalationChain
from .responder import KeywordResponder
from .sanitizer import validate_fields, validate_sender, validate_text

logger = structlog.get_logger()


class ReplyPipeline:
    """Turns one inbound message into a persisted user/bot pair."""

    def __init__(
        self,
        settings: Settings,
        conversation: ConversationService,
        responder: KeywordResponder,
        escalation: EscalationChain,
    ) -> None:
        self.settings = settings
        self.conversation = conversation
        self.responder = responder
        self.escalation = escalation

    async def handle(self, text: Any, sender: Optional[Any] = None) -> Turn:
        try:
            fields = validate_fields(
                text,
                sender,
                self.settings.max_message_length,
                self.settings.max_sender_length,
                self.settings.reserved_bot_names,
            )
        except MessageValidationError as e:
            logger.info("message_rejected", code=e.code, field=e.field)
            raise

        reply = self.responder.match(fields.text, fields.sender)
        if reply is not None:
            KEYWORD_HITS.inc()
        else:
            ESCALATIONS.inc()
            logger.info("message_escalated", sender=fields.sender)
            reply = await self.escalation.resolve(fields.text, fields.sender)

        turn = await self.conversation.record_turn(
            fields.text, fields.sender, reply, self.settings.bot_name
        )
        TURNS.inc()
        return turn

    async def update(
        self, message_id: str, text: Optional[Any] = None, sender: Optional[Any] = None
    ) -> HistoryEntry:
        """Re-validate and re-sanitize the provided fields, then merge them."""
        try:
            patch = MessagePatch(
                text=None if text is None else validate_text(text, self.settings.max_message_length),
                sender=None if sender is None else validate_sender(
                    sender, self.settings.max_sender_length, self.settings.reserved_bot_names
                ),
            )
        except MessageValidationError as e:
            logger.info("update_rejected", message_id=message_id, code=e.code, field=e.field)
            raise
        return await self.conversation.update_message(message_id, patch)

    async def delete(self, message_id: str) -> HistoryEntry:
        return await self.conversation.delete_message(message_id)
