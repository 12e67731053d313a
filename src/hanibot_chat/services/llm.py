"""External reply collaborator backed by Google's Gemini model."""

import asyncio
from abc import ABC, abstractmethod
from typing import Optional

import google.generativeai as genai
import structlog
from google.api_core import exceptions

from ..config import Settings
from ..domain.errors import CollaboratorError, CollaboratorUnavailable

logger = structlog.get_logger()


class ReplyCollaborator(ABC):
    """Generates a reply for a question no keyword rule could answer."""

    @abstractmethod
    async def generate_reply(self, question: str, name: str) -> str:
        """Return a non-empty reply.

        Raises:
            CollaboratorUnavailable: nothing is configured.
            CollaboratorError: the call failed, timed out or returned nothing.
        """
        pass


class DisabledCollaborator(ReplyCollaborator):
    """Used when no credential is configured."""

    async def generate_reply(self, question: str, name: str) -> str:
        raise CollaboratorUnavailable("No reply collaborator configured")


def format_prompt(question: str, name: str) -> str:
    return f"Bruger: {name or 'ukendt'}\nSpørgsmål: {question}"


class GeminiCollaborator(ReplyCollaborator):
    """Asks Gemini for a short reply, bounded by a timeout."""

    def __init__(
        self,
        api_key: str,
        model_name: str = "gemini-1.5-flash",
        temperature: float = 0.3,
        max_tokens: int = 200,
        system_prompt: Optional[str] = None,
        timeout: float = 10.0,
    ) -> None:
        genai.configure(api_key=api_key)
        self.model_name = model_name
        self.timeout = timeout
        self.model = genai.GenerativeModel(
            model_name,
            system_instruction=system_prompt,
            generation_config=genai.GenerationConfig(
                temperature=temperature,
                max_output_tokens=max_tokens,
            ),
        )
        logger.info("llm_service_init", model=model_name, timeout=timeout)

    async def generate_reply(self, question: str, name: str) -> str:
        prompt = format_prompt(question, name)
        try:
            response = await asyncio.wait_for(
                self.model.generate_content_async(prompt),
                timeout=self.timeout,
            )
        except asyncio.TimeoutError as e:
            raise CollaboratorError(f"No reply within {self.timeout}s") from e
        except exceptions.ResourceExhausted as e:
            raise CollaboratorError("Gemini quota exhausted") from e
        except exceptions.GoogleAPIError as e:
            raise CollaboratorError(f"Gemini request failed: {e}") from e

        try:
            text = response.text
        except ValueError as e:
            # Raised when the candidate was blocked or carries no text part.
            raise CollaboratorError("Gemini returned no usable text") from e

        text = (text or "").strip()
        if not text:
            raise CollaboratorError("Gemini returned an empty reply")
        return text


def build_collaborator(settings: Settings) -> ReplyCollaborator:
    if not settings.gemini_api_key:
        logger.info("llm_service_disabled", reason="missing_api_key")
        return DisabledCollaborator()
    return GeminiCollaborator(
        api_key=settings.gemini_api_key,
        model_name=settings.gemini_model,
        temperature=settings.gemini_temperature,
        max_tokens=settings.gemini_max_tokens,
        system_prompt=settings.gemini_system_prompt,
        timeout=settings.gemini_timeout,
    )
