"""LLM Client for Groq API integration."""
import time
import logging
from typing import Any, Dict, List, Optional, Sequence

from groq import AsyncGroq
from groq import RateLimitError, AuthenticationError, APIError, APITimeoutError

from config import COMPLETION_MAX_TOKENS, COMPLETION_MODEL, GATEWAY_TIMEOUT_SECONDS, GROQ_API_KEY
from models.conversation import Turn
from services.errors import UpstreamError
from services.gateways import CompletionGateway

logger = logging.getLogger(__name__)


class LLMClient(CompletionGateway):
    """Client for interfacing with Groq API for chat completion."""

    def __init__(
        self,
        api_key: Optional[str] = None,
        model: str = COMPLETION_MODEL,
        max_tokens: int = COMPLETION_MAX_TOKENS,
        timeout: float = GATEWAY_TIMEOUT_SECONDS
    ):
        """
        Initialize LLM client with Groq API key.

        Args:
            api_key: Groq API key (defaults to GROQ_API_KEY from environment)
            model: Chat model name
            max_tokens: Maximum tokens to generate
            timeout: Request timeout in seconds
        """
        self.api_key = api_key or GROQ_API_KEY
        if not self.api_key:
            raise ValueError("GROQ_API_KEY must be provided or set in environment")

        self.model = model
        self.max_tokens = max_tokens
        self.client = AsyncGroq(api_key=self.api_key, timeout=timeout)
        logger.info("LLMClient initialized successfully")

    async def complete(self, turns: Sequence[Turn], system_prompt: str) -> str:
        """
        Generate the next assistant message for a conversation.

        Args:
            turns: Conversation so far, oldest first
            system_prompt: System instruction (with any retrieved context)

        Returns:
            Generated reply text

        Raises:
            UpstreamError: Structured error with code, message, and details
        """
        start_time = time.time()
        messages = self.build_messages(turns, system_prompt)

        try:
            logger.debug(f"Generating response with model: {self.model}")

            response = await self.client.chat.completions.create(
                model=self.model,
                messages=messages,
                max_tokens=self.max_tokens,
                temperature=0.7
            )

        except RateLimitError as e:
            raise self._error("RATE_LIMIT_ERROR", "Rate limit exceeded. Please try again in a few moments.", e, start_time) from e
        except AuthenticationError as e:
            raise self._error("AUTHENTICATION_ERROR", "Authentication failed. Please check your API key.", e, start_time) from e
        except APITimeoutError as e:
            raise self._error("TIMEOUT_ERROR", "Request timed out. Please try again.", e, start_time) from e
        except APIError as e:
            raise self._error("API_ERROR", f"Groq API error: {str(e)}", e, start_time) from e
        except Exception as e:
            raise self._error("UNKNOWN_ERROR", f"Unexpected error during generation: {str(e)}", e, start_time) from e

        latency_ms = int((time.time() - start_time) * 1000)

        try:
            text = response.choices[0].message.content
        except (AttributeError, IndexError, TypeError):
            text = None
        if not text:
            raise UpstreamError(
                "MALFORMED_RESPONSE",
                "Completion response contained no text",
                {"model": self.model, "latency_ms": latency_ms}
            )

        usage = getattr(response, "usage", None)
        logger.info(
            f"Generated response: model={self.model}, "
            f"input_tokens={getattr(usage, 'prompt_tokens', None)}, "
            f"output_tokens={getattr(usage, 'completion_tokens', None)}, "
            f"latency={latency_ms}ms"
        )
        return text

    def _error(self, code: str, message: str, original: Exception, start_time: float) -> UpstreamError:
        """Build an UpstreamError for a failed completion and log it."""
        latency_ms = int((time.time() - start_time) * 1000)
        details: Dict[str, Any] = {
            "model": self.model,
            "latency_ms": latency_ms,
            "original_error": str(original),
            "error_type": type(original).__name__
        }
        logger.error(
            f"Completion error: code={code}, model={self.model}, latency={latency_ms}ms, error={original}",
            extra={"error_code": code, "error_details": details}
        )
        return UpstreamError(code, message, details)

    @staticmethod
    def build_messages(turns: Sequence[Turn], system_prompt: str) -> List[Dict[str, str]]:
        """Chat messages for the API: the system prompt, then each turn."""
        messages = [{"role": "system", "content": system_prompt}]
        messages.extend({"role": turn.role, "content": turn.content} for turn in turns)
        return messages

    @staticmethod
    def build_system_prompt(base_prompt: str, context: str = "") -> str:
        """
        Append retrieved context to the system prompt.

        An empty context is omitted entirely rather than sent as blank text.
        """
        return f"{base_prompt}\n\n{context}" if context else base_prompt
