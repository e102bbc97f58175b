"""Knowledge base document models."""
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Optional

import numpy as np


@dataclass(frozen=True)
class Page:
    """A fetched web page reduced to its cleaned text."""
    url: str
    title: str
    text: str


@dataclass(frozen=True)
class Document:
    """A fixed-size content chunk of a scraped page, the unit of retrieval."""
    document_id: str  # Format: "{url with non-alphanumerics as '-'}-{offset}"
    url: str
    title: str
    content: str
    # Embedding-service vector; None when the service was unavailable at ingestion
    embedding: Optional[np.ndarray] = field(default=None, compare=False, repr=False)
    # Hash embedding of the content, scored against fallback query vectors
    fallback_embedding: Optional[np.ndarray] = field(default=None, compare=False, repr=False)
    created_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc), compare=False)

    @property
    def source(self) -> str:
        """Label used when citing this chunk in answer context."""
        return f"{self.title} ({self.url})"


@dataclass
class ScoredDocument:
    """Document with its similarity score from retrieval."""
    document: Document
    score: float
