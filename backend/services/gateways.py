"""
Gateway interfaces the dialogue engine depends on.

Each external service (pricing, location search, embeddings, text completion)
sits behind one of these abstractions so the engine can be exercised with
fakes. Implementations convert every transport or payload failure into
``UpstreamError``.
"""
from abc import ABC, abstractmethod
from typing import List, Sequence

from models.conversation import Turn
from models.estimate import Estimate
from models.location import KioskLocation
from models.slots import SlotSet


class PricingGateway(ABC):

    @abstractmethod
    async def get_estimate(self, slots: SlotSet) -> Estimate:
        """Price a complete device identification."""


class LocationGateway(ABC):

    @abstractmethod
    async def find_by_zip(self, zip_code: str) -> List[KioskLocation]:
        """Kiosks near a zip code; raises NotFoundError for unknown codes."""


class EmbeddingGateway(ABC):

    @abstractmethod
    async def embed(self, text: str) -> List[float]:
        """Embedding vector for ``text``."""


class CompletionGateway(ABC):

    @abstractmethod
    async def complete(self, turns: Sequence[Turn], system_prompt: str) -> str:
        """Assistant reply for the conversation so far."""
