"""JSON file store.

The whole collection lives in one pretty-printed JSON array of
``{id, date, text, sender}`` records. Every mutation rewrites the file
through a temporary sibling and an atomic rename, so a reader never sees a
half-written array.
"""

import asyncio
import contextlib
import json
import os
import tempfile
from pathlib import Path
from typing import List, Sequence, Union

import structlog
from pydantic import ValidationError

from ..domain.errors import MessageNotFound, StoreIOError
from ..domain.models import Message, MessagePatch
from .base import MessageStore

logger = structlog.get_logger()


class JsonFileMessageStore(MessageStore):
    """Message store backed by a single JSON file."""

    def __init__(self, path: Union[str, Path]) -> None:
        self.path = Path(path)
        logger.info("json_store_initialized", path=str(self.path))

    def _read(self) -> List[Message]:
        try:
            raw = self.path.read_text(encoding="utf-8")
        except FileNotFoundError:
            self._write([])
            return []
        except OSError as e:
            logger.error("store_read_failed", path=str(self.path), error=str(e))
            raise StoreIOError(f"Could not read {self.path}") from e

        try:
            records = json.loads(raw)
            if not isinstance(records, list):
                raise ValueError("top-level value is not an array")
            return [Message.model_validate(record) for record in records]
        except (ValueError, ValidationError) as e:
            logger.error("store_corrupt", path=str(self.path), error=str(e))
            raise StoreIOError(f"Corrupt message file {self.path}") from e

    def _write(self, messages: Sequence[Message]) -> None:
        payload = json.dumps(
            [m.model_dump(mode="json") for m in messages],
            ensure_ascii=False,
            indent=2,
        )
        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            fd, tmp_name = tempfile.mkstemp(
                dir=self.path.parent, prefix=f".{self.path.name}.", suffix=".tmp"
            )
            try:
                with os.fdopen(fd, "w", encoding="utf-8") as handle:
                    handle.write(payload)
                    handle.flush()
                    os.fsync(handle.fileno())
                os.replace(tmp_name, self.path)
            except BaseException:
                with contextlib.suppress(FileNotFoundError):
                    os.unlink(tmp_name)
                raise
        except OSError as e:
            logger.error("store_write_failed", path=str(self.path), error=str(e))
            raise StoreIOError(f"Could not write {self.path}") from e

    async def read_all(self) -> List[Message]:
        return await asyncio.to_thread(self._read)

    async def extend(self, messages: Sequence[Message]) -> None:
        def _extend() -> None:
            current = self._read()
            current.extend(messages)
            self._write(current)

        await asyncio.to_thread(_extend)
        logger.debug("store_extended", path=str(self.path), added=len(messages))

    async def update_by_id(self, message_id: str, patch: MessagePatch) -> Message:
        def _update() -> Message:
            current = self._read()
            for index, message in enumerate(current):
                if message.id == message_id:
                    updated = message.model_copy(update=patch.model_dump(exclude_none=True))
                    current[index] = updated
                    self._write(current)
                    return updated
            raise MessageNotFound(message_id)

        return await asyncio.to_thread(_update)

    async def delete_by_id(self, message_id: str) -> Message:
        def _delete() -> Message:
            current = self._read()
            for index, message in enumerate(current):
                if message.id == message_id:
                    removed = current.pop(index)
                    self._write(current)
                    return removed
            raise MessageNotFound(message_id)

        return await asyncio.to_thread(_delete)
