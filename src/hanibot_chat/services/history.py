"""In-memory mirror of the conversation."""

from typing import Callable, Iterable, List

from ..domain.errors import MessageNotFound
from ..domain.models import HistoryEntry, Message, Role


def role_classifier(reserved_names: Iterable[str]) -> Callable[[str], Role]:
    """Build the sender -> role rule: reserved bot names are ``bot``."""
    reserved = frozenset(name.strip().lower() for name in reserved_names)

    def classify(sender: str) -> Role:
        return Role.BOT if sender.strip().lower() in reserved else Role.USER

    return classify


class HistoryCache:
    """Ordered conversational records derived from the stored messages.

    Holds no lock of its own; the owner applies each mutation in the same
    critical section as the matching store write.
    """

    def __init__(self, classify: Callable[[str], Role]) -> None:
        self._classify = classify
        self._entries: List[HistoryEntry] = []

    def __len__(self) -> int:
        return len(self._entries)

    def entry_for(self, message: Message) -> HistoryEntry:
        return HistoryEntry(
            id=message.id,
            role=self._classify(message.sender),
            name=message.sender,
            text=message.text,
            timestamp=message.date,
        )

    def hydrate(self, messages: Iterable[Message]) -> None:
        self._entries = [self.entry_for(m) for m in messages]

    def get(self) -> List[HistoryEntry]:
        """Return the live sequence. Callers must not mutate it."""
        return self._entries

    def append(self, message: Message) -> HistoryEntry:
        entry = self.entry_for(message)
        self._entries.append(entry)
        return entry

    def update_by_id(self, message: Message) -> HistoryEntry:
        entry = self.entry_for(message)
        self._entries[self._index_of(message.id)] = entry
        return entry

    def delete_by_id(self, message_id: str) -> HistoryEntry:
        return self._entries.pop(self._index_of(message_id))

    def _index_of(self, message_id: str) -> int:
        for index, entry in enumerate(self._entries):
            if entry.id == message_id:
                return index
        raise MessageNotFound(message_id)
