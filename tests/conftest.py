"""Shared fixtures."""

import random
from datetime import datetime

import pytest

from hanibot_chat.config import Settings
from hanibot_chat.domain.errors import CollaboratorError
from hanibot_chat.services.llm import ReplyCollaborator

MORNING = datetime(2024, 5, 1, 10, 0)


class FakeCollaborator(ReplyCollaborator):
    """Returns a fixed reply, or raises, and remembers what it was asked."""

    def __init__(self, reply=None, error=None):
        self.reply = reply
        self.error = error
        self.calls = []

    async def generate_reply(self, question: str, name: str) -> str:
        self.calls.append((question, name))
        if self.error is not None:
            raise self.error
        if self.reply is None:
            raise CollaboratorError("no reply")
        return self.reply


@pytest.fixture
def settings(tmp_path) -> Settings:
    return Settings(
        data_file=str(tmp_path / "data" / "messages.json"),
        unanswered_log=str(tmp_path / "data" / "unanswered.log"),
    )


@pytest.fixture
def rng() -> random.Random:
    return random.Random(1234)


@pytest.fixture
def morning_clock():
    return lambda: MORNING
