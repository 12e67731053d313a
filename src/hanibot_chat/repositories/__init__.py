"""Message store implementations."""

from .base import MessageStore
from .json_file import JsonFileMessageStore
from .memory import InMemoryMessageStore

__all__ = ["MessageStore", "JsonFileMessageStore", "InMemoryMessageStore"]
