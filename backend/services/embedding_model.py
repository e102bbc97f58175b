"""Embedding model integration with Hugging Face Inference API, plus the hash fallback."""
import asyncio
import logging
import re
import time
from typing import List, Optional

import httpx
import numpy as np

from config import (
    EMBEDDING_DIMENSION,
    EMBEDDING_MODEL,
    EMBEDDING_SERVICE_DIMENSION,
    HUGGINGFACE_API_KEY,
)
from services.errors import UpstreamError
from services.gateways import EmbeddingGateway

logger = logging.getLogger(__name__)

# Longest input sent to the embedding service
MAX_INPUT_CHARS = 8000

_TOKEN_SPLIT = re.compile(r"\W+", re.ASCII)


def _to_int32(value: int) -> int:
    """Wrap an integer to signed 32 bits."""
    value &= 0xFFFFFFFF
    return value - 0x100000000 if value & 0x80000000 else value


def _token_hash(token: str) -> int:
    """
    Polynomial string hash, ``hash * 31 + code`` per UTF-16 code unit.

    Computed as ``((hash << 5) - hash) + code`` where only the shift wraps to
    signed 32 bits, so the running value may leave the 32-bit range between
    steps. Ranking under the fallback depends on reproducing this exactly.
    """
    value = 0
    units = token.encode("utf-16-le")
    for i in range(0, len(units), 2):
        code = units[i] | (units[i + 1] << 8)
        value = _to_int32(_to_int32(value) << 5) - value + code
    return value


def hash_embedding(text: str, dimension: int = EMBEDDING_DIMENSION) -> np.ndarray:
    """
    Deterministic bag-of-words embedding used when the embedding service is unavailable.

    Tokens come from lower-casing and splitting on non-word characters (empty
    tokens at the edges included); each token increments slot
    ``abs(hash) % dimension``. The result is L2-normalized, with a zero norm
    treated as 1.

    Args:
        text: Text to embed
        dimension: Vector length

    Returns:
        float64 vector of length ``dimension``
    """
    vector = np.zeros(dimension, dtype=np.float64)
    for token in _TOKEN_SPLIT.split(text.lower()):
        vector[abs(_token_hash(token)) % dimension] += 1.0

    magnitude = float(np.sqrt(np.dot(vector, vector))) or 1.0
    return vector / magnitude


class EmbeddingModel(EmbeddingGateway):
    """Wrapper for Hugging Face Inference API embedding model."""

    def __init__(
        self,
        api_key: Optional[str] = HUGGINGFACE_API_KEY,
        model_name: str = EMBEDDING_MODEL,
        max_retries: int = 3,
        initial_delay: float = 2.0,
        timeout: float = 30.0,
        dimension: Optional[int] = EMBEDDING_SERVICE_DIMENSION,
        transport: Optional[httpx.AsyncBaseTransport] = None
    ):
        """
        Initialize the embedding model client.

        Args:
            api_key: Hugging Face API key
            model_name: Model identifier (default: sentence-transformers/all-mpnet-base-v2)
            max_retries: Maximum number of attempts for 503s, timeouts and network errors
            initial_delay: Initial delay in seconds for exponential backoff
            timeout: Request timeout in seconds
            dimension: Expected vector length; None accepts any length
            transport: Optional httpx transport (used by tests)
        """
        if not api_key:
            raise ValueError("HUGGINGFACE_API_KEY environment variable is required")

        self.api_key = api_key
        self.model_name = model_name
        self.max_retries = max_retries
        self.initial_delay = initial_delay
        self.timeout = timeout
        self.dimension = dimension
        self.transport = transport
        self.api_url = f"https://api-inference.huggingface.co/models/{model_name}"

        logger.info(f"Initialized EmbeddingModel with model: {model_name}")

    async def embed(self, text: str) -> List[float]:
        """
        Generate embedding for a single text string.

        Args:
            text: Text to embed (truncated to MAX_INPUT_CHARS)

        Returns:
            Embedding vector as list of floats

        Raises:
            UpstreamError: If the API request fails after all retries or the
                payload is not a vector
        """
        if not text or not text.strip():
            raise UpstreamError("INVALID_INPUT", "Text cannot be empty")

        payload = await self._embed_with_retry([text[:MAX_INPUT_CHARS]])
        vector = self._parse_vector(payload)
        if self.dimension is not None and len(vector) != self.dimension:
            raise UpstreamError(
                "MALFORMED_RESPONSE",
                f"Embedding has {len(vector)} dimensions, expected {self.dimension}",
                {"dimension": len(vector)}
            )
        return vector

    async def _embed_with_retry(self, texts: List[str]):
        """
        Call the HF API with an exponential backoff retry strategy.

        HF free tier models "sleep" and answer 503 while loading, so 503s,
        timeouts and network errors are retried; other failures are not.
        """
        headers = {
            "Authorization": f"Bearer {self.api_key}",
            "Content-Type": "application/json"
        }
        payload = {
            "inputs": texts,
            "options": {
                "wait_for_model": True
            }
        }

        delay = self.initial_delay
        last_error = None

        for attempt in range(self.max_retries):
            try:
                start_time = time.time()

                async with httpx.AsyncClient(timeout=self.timeout, transport=self.transport) as client:
                    response = await client.post(self.api_url, headers=headers, json=payload)

                elapsed = time.time() - start_time

                if response.status_code == 503:
                    last_error = f"Model loading (503) on attempt {attempt + 1}/{self.max_retries}"
                    logger.warning(f"{last_error}. Retrying in {delay}s...")
                elif response.status_code == 429:
                    raise UpstreamError("RATE_LIMIT_ERROR", "Rate limit exceeded for Hugging Face API")
                elif response.status_code == 401:
                    raise UpstreamError("AUTHENTICATION_ERROR", "Invalid Hugging Face API key")
                elif response.status_code != 200:
                    raise UpstreamError(
                        "HTTP_ERROR",
                        f"Embedding request failed with status {response.status_code}",
                        {"status_code": response.status_code, "body": response.text[:200]}
                    )
                else:
                    logger.debug(f"Generated embeddings for {len(texts)} texts in {elapsed:.2f}s")
                    try:
                        return response.json()
                    except ValueError as e:
                        raise UpstreamError(
                            "MALFORMED_RESPONSE",
                            "Embedding response is not JSON",
                            {"body": response.text[:200]}
                        ) from e

            except httpx.TimeoutException:
                last_error = f"Request timeout after {self.timeout}s"
                logger.error(f"{last_error} on attempt {attempt + 1}/{self.max_retries}")

            except httpx.RequestError as e:
                last_error = f"Network error: {str(e)}"
                logger.error(f"{last_error} on attempt {attempt + 1}/{self.max_retries}")

            if attempt < self.max_retries - 1:
                await asyncio.sleep(delay)
                delay = min(delay * 2, 60.0)

        raise UpstreamError(
            "UNAVAILABLE",
            f"Failed to generate embeddings after {self.max_retries} attempts",
            {"last_error": last_error}
        )

    @staticmethod
    def _parse_vector(payload) -> List[float]:
        """Pull the single embedding out of the API's list-of-vectors response."""
        if isinstance(payload, list) and payload and isinstance(payload[0], list):
            payload = payload[0]
        if (
            not isinstance(payload, list)
            or not payload
            or not all(isinstance(v, (int, float)) for v in payload)
        ):
            raise UpstreamError("MALFORMED_RESPONSE", "Embedding response is not a numeric vector")
        return [float(v) for v in payload]
