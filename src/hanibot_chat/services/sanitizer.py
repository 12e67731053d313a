"""Text sanitizing and field validation."""

import re
import unicodedata
from typing import Any, Iterable, NamedTuple, Optional

from ..domain.errors import (
    EMPTY_SENDER,
    EMPTY_TEXT,
    RESERVED_SENDER,
    SENDER_TOO_LONG,
    TEXT_TOO_LONG,
    MessageValidationError,
)
from ..domain.models import DEFAULT_SENDER, MAX_SENDER_LENGTH

_TAG_RE = re.compile(r"<[^>]*>")
_CONTROL_RE = re.compile(r"[\x00-\x1f\x7f]")


class ValidatedFields(NamedTuple):
    text: str
    sender: str


def sanitize(raw: Any) -> str:
    """Strip tags and control characters and trim whitespace.

    Never raises: anything that is not a string becomes ``""``.
    """
    if not isinstance(raw, str):
        return ""
    text = unicodedata.normalize("NFC", raw)
    # Control characters go first so they cannot split a tag and survive.
    text = _CONTROL_RE.sub("", text)
    text = _TAG_RE.sub("", text)
    return text.strip()


def _check(value: str, field: str, limit: int, empty_code: str, long_code: str) -> str:
    if not value:
        raise MessageValidationError(empty_code, field, limit)
    if len(value) > limit:
        raise MessageValidationError(long_code, field, limit)
    return value


def validate_text(raw: Any, max_text_len: int) -> str:
    return _check(sanitize(raw), "text", max_text_len, EMPTY_TEXT, TEXT_TOO_LONG)


def validate_sender(
    raw: Any,
    max_sender_len: int = MAX_SENDER_LENGTH,
    reserved: Iterable[str] = (),
) -> str:
    sender = _check(sanitize(raw), "sender", max_sender_len, EMPTY_SENDER, SENDER_TOO_LONG)
    if sender.lower() in reserved:
        raise MessageValidationError(RESERVED_SENDER, "sender", max_sender_len)
    return sender


def validate_fields(
    text: Any,
    sender: Optional[Any],
    max_text_len: int,
    max_sender_len: int = MAX_SENDER_LENGTH,
    reserved: Iterable[str] = (),
) -> ValidatedFields:
    """Sanitize and validate a ``(text, sender)`` pair.

    A missing sender defaults to ``Anonym``; a sender that is present but
    sanitizes to nothing is rejected. Text is checked before sender.
    """
    if sender is None:
        sender = DEFAULT_SENDER
    return ValidatedFields(
        text=validate_text(text, max_text_len),
        sender=validate_sender(sender, max_sender_len, reserved),
    )
