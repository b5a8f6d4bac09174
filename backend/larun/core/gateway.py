"""
Remote Completion Gateway - sends a message plus recent context to the
configured LLM provider and falls back to the local generator on any failure.

``complete`` never raises. Its result says which path produced the text:
``RemoteSuccess`` or ``FallbackUsed`` (with a reason).
"""

import asyncio
import logging
from dataclasses import dataclass
from typing import Callable, List, Optional, Sequence, Union

import httpx

from ..llm.base import LLMProvider, LLMMessage
from ..models import Message
from . import fallback

logger = logging.getLogger(__name__)

# Agreed with the provider; not user-tunable.
TEMPERATURE = 0.7
MAX_TOKENS = 1500

SYSTEM_PROMPT = """You are LARUN, an AI assistant specialized in exoplanet detection and analysis. You help users analyze NASA TESS and Kepler mission data to find exoplanet transit signals.

Your capabilities include:
1. **Transit Search**: Analyze light curves for periodic dips indicating planetary transits
2. **BLS Periodogram**: Run Box Least Squares analysis to find orbital periods
3. **TinyML Detection**: Use machine learning to classify transit candidates (81.8% accuracy)
4. **Habitable Zone Analysis**: Determine if planets could support liquid water
5. **Report Generation**: Create publication-ready analysis reports

When users ask about specific targets (TIC IDs, Kepler stars, TOIs), provide realistic scientific analysis including:
- Orbital period estimates
- Transit depth in ppm
- Signal-to-noise ratio
- Planet radius estimates
- Habitability assessment

Format responses with markdown tables for data, use scientific notation where appropriate, and always explain results in accessible terms. Remember: "No PhD required" is our motto.

If asked to search for transits, simulate realistic BLS periodogram results. If asked about habitable zones, calculate based on stellar parameters. Always be helpful and educational."""

REASON_NO_CREDENTIALS = "no_credentials"
REASON_TIMEOUT = "timeout"
REASON_UPSTREAM_ERROR = "upstream_error"
REASON_EMPTY_RESPONSE = "empty_response"


@dataclass(frozen=True)
class RemoteSuccess:
    """The provider answered."""
    text: str
    model: str = ""
    source: str = "remote"


@dataclass(frozen=True)
class FallbackUsed:
    """The local generator answered because the provider could not."""
    text: str
    reason: str
    detail: Optional[str] = None
    source: str = "fallback"


CompletionResult = Union[RemoteSuccess, FallbackUsed]


class CompletionGateway:
    """
    Wraps an optional LLM provider with a bounded timeout and local fallback.
    """

    def __init__(
        self,
        provider: Optional[LLMProvider] = None,
        timeout: float = 30.0,
        context_messages: int = 10,
        fallback_generator: Callable[[str], str] = fallback.generate,
    ):
        """
        Args:
            provider: Configured provider, or None when no credential is set
            timeout: Upper bound in seconds for one remote call
            context_messages: How many prior messages to send along
            fallback_generator: Local text generator used on failure
        """
        self.provider = provider
        self.timeout = timeout
        self.context_messages = context_messages
        self.fallback_generator = fallback_generator

    @property
    def has_remote(self) -> bool:
        return self.provider is not None

    def build_messages(self, message: str, history: Optional[Sequence[Message]] = None) -> List[LLMMessage]:
        messages = [LLMMessage.text("system", SYSTEM_PROMPT)]
        if history and self.context_messages > 0:
            for item in list(history)[-self.context_messages:]:
                messages.append(LLMMessage.text(item.role.value, item.content))
        messages.append(LLMMessage.text("user", message))
        return messages

    def _fallback(self, message: str, reason: str, detail: Optional[str] = None) -> FallbackUsed:
        return FallbackUsed(text=self.fallback_generator(message), reason=reason, detail=detail)

    async def complete(
        self,
        message: str,
        conversation_id: Optional[str] = None,
        history: Optional[Sequence[Message]] = None,
    ) -> CompletionResult:
        """
        Produce a response for ``message``.

        Args:
            message: The user's message
            conversation_id: Conversation the message belongs to (logging only)
            history: Prior messages of that conversation, oldest first

        Returns:
            RemoteSuccess or FallbackUsed; never raises
        """
        if self.provider is None:
            logger.debug("No LLM credential configured, using fallback response")
            return self._fallback(message, REASON_NO_CREDENTIALS)

        log_fields = {"conversation_id": conversation_id, "provider": self.provider.name}
        try:
            response = await asyncio.wait_for(
                self.provider.chat_completion(
                    self.build_messages(message, history),
                    temperature=TEMPERATURE,
                    max_tokens=MAX_TOKENS,
                ),
                timeout=self.timeout,
            )
        except (asyncio.TimeoutError, httpx.TimeoutException) as e:
            logger.warning(
                f"LLM call timed out after {self.timeout}s, using fallback response",
                extra={"extra_fields": log_fields},
            )
            return self._fallback(message, REASON_TIMEOUT, str(e) or None)
        except Exception as e:
            logger.warning(
                f"LLM call failed, using fallback response: {e}",
                extra={"extra_fields": {**log_fields, "error": str(e)}},
            )
            return self._fallback(message, REASON_UPSTREAM_ERROR, str(e))

        if not response.content or not response.content.strip():
            logger.warning("LLM returned an empty response, using fallback response",
                           extra={"extra_fields": log_fields})
            return self._fallback(message, REASON_EMPTY_RESPONSE)

        return RemoteSuccess(text=response.content, model=response.model)

    async def complete_text(self, message: str, conversation_id: Optional[str] = None) -> str:
        """Same as ``complete`` but returns only the text."""
        result = await self.complete(message, conversation_id)
        return result.text
