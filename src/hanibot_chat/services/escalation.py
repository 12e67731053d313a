"""Slow path for messages no keyword rule answers.

The unanswered question is logged, then the reply collaborator is asked.
Neither step can fail the turn: log failures and collaborator failures are
recorded operationally and the canned reply is used instead.
"""

import asyncio
import json
from pathlib import Path
from typing import Optional, Union

import structlog

from ..domain.errors import CollaboratorError, CollaboratorUnavailable
from ..domain.models import UnansweredQuestion
from ..metrics import FALLBACKS
from .llm import ReplyCollaborator
from .responder import NAME_FALLBACK

logger = structlog.get_logger()


def canned_reply(name: str) -> str:
    return f"Jeg har ikke noget smart svar på det endnu, {name or NAME_FALLBACK} 🤖"


class UnansweredQuestionLog:
    """Append-only newline-delimited JSON log of ``{ts, name, question}``."""

    def __init__(self, path: Union[str, Path]) -> None:
        self.path = Path(path)
        self._lock = asyncio.Lock()

    def _append_line(self, line: str) -> None:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        with self.path.open("a", encoding="utf-8") as handle:
            handle.write(line)

    async def record(self, question: str, name: str) -> bool:
        """Append one entry. Returns ``False`` instead of raising on failure."""
        entry = UnansweredQuestion(name=name or "", question=question or "")
        line = json.dumps(entry.model_dump(mode="json"), ensure_ascii=False) + "\n"
        try:
            async with self._lock:
                await asyncio.to_thread(self._append_line, line)
        except OSError as e:
            logger.error("unanswered_log_failed", path=str(self.path), error=str(e))
            return False
        logger.info("unanswered_question_logged", name=entry.name)
        return True


class EscalationChain:
    """Log, ask the collaborator, fall back to the canned reply."""

    def __init__(self, log: UnansweredQuestionLog, collaborator: ReplyCollaborator) -> None:
        self.log = log
        self.collaborator = collaborator

    async def ask_collaborator(self, question: str, name: str) -> Optional[str]:
        try:
            return await self.collaborator.generate_reply(question, name)
        except CollaboratorUnavailable:
            logger.debug("collaborator_unavailable")
        except CollaboratorError as e:
            logger.warning("collaborator_error", error=str(e))
        except Exception as e:
            logger.error("collaborator_unexpected_error", error=str(e), exc_info=True)
        return None

    async def resolve(self, question: str, name: str) -> str:
        """Always returns a reply."""
        await self.log.record(question, name)
        reply = await self.ask_collaborator(question, name)
        if reply:
            return reply
        FALLBACKS.inc()
        return canned_reply(name)
