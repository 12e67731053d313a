"""Service settings read from the environment."""

import os
from typing import Callable, List, Optional, TypeVar

import structlog
from pydantic import BaseModel, Field

from .domain.models import MAX_SENDER_LENGTH

logger = structlog.get_logger()

T = TypeVar("T")

DEFAULT_SYSTEM_PROMPT = "Du er en hjælpsom dansk chatbot der svarer venligt, kort og præcist."
MEMORY_STORE = ":memory:"


def _env(
    name: str,
    default: T,
    cast: Callable[[str], T],
    valid: Optional[Callable[[T], bool]] = None,
) -> T:
    raw = os.getenv(name)
    if raw is None or not raw.strip():
        return default
    try:
        value = cast(raw.strip())
    except ValueError:
        value = None
    if value is None or (valid is not None and not valid(value)):
        logger.warning("invalid_setting", name=name, value=raw, default=default)
        return default
    return value


def _positive(value) -> bool:
    # NaN compares false, so it is rejected too.
    return value > 0


def _split_origins(raw: str) -> List[str]:
    return [origin.strip() for origin in raw.split(",") if origin.strip()]


class Settings(BaseModel):
    """Recognized configuration options."""

    port: int = 3000
    max_message_length: int = Field(default=500, gt=0)
    max_sender_length: int = MAX_SENDER_LENGTH
    allowed_origins: List[str] = Field(default_factory=list)
    data_file: str = "data/messages.json"
    unanswered_log: str = "data/unanswered.log"
    bot_name: str = "Hanibot"
    gemini_api_key: Optional[str] = None
    gemini_model: str = "gemini-1.5-flash"
    gemini_temperature: float = 0.3
    gemini_max_tokens: int = 200
    gemini_system_prompt: str = DEFAULT_SYSTEM_PROMPT
    gemini_timeout: float = Field(default=10.0, gt=0)

    @classmethod
    def from_env(cls) -> "Settings":
        return cls(
            port=_env("PORT", 3000, int, _positive),
            max_message_length=_env("MAX_MESSAGE_LENGTH", 500, int, _positive),
            allowed_origins=_split_origins(os.getenv("ALLOWED_ORIGINS", "")),
            data_file=_env("DATA_FILE", "data/messages.json", str),
            unanswered_log=_env("UNANSWERED_LOG", "data/unanswered.log", str),
            bot_name=_env("BOT_NAME", "Hanibot", str),
            gemini_api_key=os.getenv("GEMINI_API_KEY") or None,
            gemini_model=_env("GEMINI_MODEL", "gemini-1.5-flash", str),
            gemini_temperature=_env("GEMINI_TEMPERATURE", 0.3, float),
            gemini_max_tokens=_env("GEMINI_MAX_TOKENS", 200, int, _positive),
            gemini_system_prompt=_env("GEMINI_SYSTEM_PROMPT", DEFAULT_SYSTEM_PROMPT, str),
            gemini_timeout=_env("GEMINI_TIMEOUT", 10.0, float, _positive),
        )

    @property
    def allows_any_origin(self) -> bool:
        return not self.allowed_origins or "*" in self.allowed_origins

    def origin_allowed(self, origin: Optional[str]) -> bool:
        """Requests without an Origin header are same-origin or non-browser."""
        if origin is None or self.allows_any_origin:
            return True
        return origin.rstrip("/") in {o.rstrip("/") for o in self.allowed_origins}

    @property
    def reserved_bot_names(self) -> frozenset:
        return frozenset({self.bot_name.strip().lower(), "chatbot"})
