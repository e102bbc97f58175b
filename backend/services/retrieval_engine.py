"""Retrieval engine for orchestrating query embedding and document ranking."""
import asyncio
import logging
from typing import List, Optional

import numpy as np

from config import EMBEDDING_DIMENSION, GATEWAY_TIMEOUT_SECONDS
from models.document import Document, ScoredDocument
from services.document_index import DocumentIndex
from services.embedding_model import hash_embedding
from services.errors import UpstreamError
from services.gateways import EmbeddingGateway

logger = logging.getLogger(__name__)


class RetrievalEngine:
    """
    Embed text and rank indexed documents.

    Service vectors and hash vectors live in different spaces, so a query is
    only compared with service embeddings when the service answered for the
    query and for every indexed document. Otherwise both sides use the hash
    fallback.
    """

    def __init__(
        self,
        document_index: DocumentIndex,
        embedding_gateway: Optional[EmbeddingGateway] = None,
        dimension: int = EMBEDDING_DIMENSION,
        timeout: float = GATEWAY_TIMEOUT_SECONDS
    ):
        """
        Initialize the retrieval engine.

        Args:
            document_index: DocumentIndex to search
            embedding_gateway: Embedding service; None means fallback only
            dimension: Length of fallback embeddings
            timeout: Seconds to wait for the embedding service
        """
        self.document_index = document_index
        self.embedding_gateway = embedding_gateway
        self.dimension = dimension
        self.timeout = timeout
        if embedding_gateway is None:
            logger.warning("No embedding service configured, using hash embeddings only")
        logger.info("Initialized RetrievalEngine")

    async def embed_with_service(self, text: str) -> Optional[np.ndarray]:
        """
        Embed text with the embedding service.

        Returns:
            The service vector, or None when no service is configured or the
            call failed in any way
        """
        if self.embedding_gateway is None:
            return None
        try:
            vector = await asyncio.wait_for(self.embedding_gateway.embed(text), timeout=self.timeout)
            return np.asarray(vector, dtype=np.float64)
        except asyncio.TimeoutError:
            logger.warning(f"Embedding service timed out after {self.timeout}s, using fallback")
        except UpstreamError as e:
            logger.warning(f"Embedding service failed ({e}), using fallback")
        except Exception as e:
            logger.error(f"Unexpected embedding service error: {e}, using fallback", exc_info=True)
        return None

    def fallback_embedding(self, text: str) -> np.ndarray:
        return hash_embedding(text, self.dimension)

    async def embed(self, text: str) -> np.ndarray:
        """Embed text with the embedding service, falling back to the hash embedding."""
        vector = await self.embed_with_service(text)
        return vector if vector is not None else self.fallback_embedding(text)

    async def retrieve(self, query: str, top_k: int = 3) -> List[ScoredDocument]:
        """
        Rank indexed documents against a query.

        Args:
            query: User question
            top_k: Maximum number of documents to return

        Returns:
            Scored documents by descending similarity, empty for an empty
            query or an empty index
        """
        if not query or not query.strip():
            logger.warning("Empty query string provided, returning empty results")
            return []

        if self.document_index.count() == 0:
            logger.info("Document index is empty, nothing to retrieve")
            return []

        logger.debug(f"Embedding query: {query[:100]}...")
        query_embedding = None
        if self.document_index.has_service_embeddings():
            query_embedding = await self.embed_with_service(query)

        if query_embedding is not None:
            scored = self.document_index.search(query_embedding, top_k=top_k)
        else:
            scored = self.document_index.search(
                self.fallback_embedding(query), top_k=top_k, use_fallback=True
            )

        if scored:
            logger.info(f"Retrieved {len(scored)} documents (top score: {scored[0].score:.3f})")
        return scored

    async def search(self, query: str, top_k: int = 3) -> List[Document]:
        """Documents most similar to ``query``, best first."""
        return [item.document for item in await self.retrieve(query, top_k=top_k)]
