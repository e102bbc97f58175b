"""In-memory document index with cosine similarity search."""
import logging
from typing import Iterable, List, Sequence

import numpy as np

from models.document import Document, ScoredDocument

logger = logging.getLogger(__name__)


def cosine_similarity(a: np.ndarray, b: np.ndarray) -> float:
    """
    Cosine similarity of two vectors.

    Vectors of different length, or with a zero norm, score 0.0.
    """
    if a.shape != b.shape:
        return 0.0
    magnitude = float(np.linalg.norm(a)) * float(np.linalg.norm(b))
    if magnitude == 0.0:
        return 0.0
    score = float(np.dot(a, b)) / magnitude
    return score if np.isfinite(score) else 0.0


class DocumentIndex:
    """
    Store document chunks with embeddings and rank them by similarity.

    Each document may carry two vectors: the embedding service's and the
    hash fallback's. A query is scored in one space only, chosen by the
    caller. Search is a linear scan, fine for the few hundred chunks a
    handful of scraped pages produce. Documents keep their ingestion order,
    which breaks ties between equal scores.
    """

    def __init__(self):
        self._documents: List[Document] = []
        logger.info("Initialized DocumentIndex")

    def add(self, document: Document) -> None:
        """
        Add an embedded document to the index.

        Raises:
            ValueError: If the document has neither embedding
        """
        if document.embedding is None and document.fallback_embedding is None:
            raise ValueError(f"Document {document.document_id} has no embedding")
        self._documents.append(document)

    def add_documents(self, documents: Iterable[Document]) -> int:
        count = 0
        for document in documents:
            self.add(document)
            count += 1
        logger.info(f"Added {count} documents to index ({len(self._documents)} total)")
        return count

    def has_service_embeddings(self) -> bool:
        """True when every indexed document has an embedding-service vector."""
        return bool(self._documents) and all(d.embedding is not None for d in self._documents)

    def search(
        self,
        query_embedding: Sequence[float],
        top_k: int = 3,
        use_fallback: bool = False
    ) -> List[ScoredDocument]:
        """
        Find the documents most similar to a query embedding.

        Args:
            query_embedding: Embedding vector for the query
            top_k: Number of documents to return
            use_fallback: Score against the documents' hash embeddings
                instead of their service embeddings

        Returns:
            ScoredDocuments by descending score, ties in ingestion order;
            empty if the index is empty or top_k is not positive
        """
        if not self._documents or top_k <= 0:
            return []

        query = np.asarray(query_embedding, dtype=np.float64)
        scored = []
        for position, document in enumerate(self._documents):
            vector = document.fallback_embedding if use_fallback else document.embedding
            score = 0.0 if vector is None else cosine_similarity(query, vector)
            scored.append((position, score))
        scored.sort(key=lambda item: (-item[1], item[0]))

        results = [
            ScoredDocument(document=self._documents[position], score=score)
            for position, score in scored[:top_k]
        ]
        logger.debug(f"Found {len(results)} documents for query")
        return results

    def count(self) -> int:
        return len(self._documents)

    def clear(self) -> None:
        """Remove every document, e.g. before reindexing."""
        self._documents.clear()
        logger.info("Cleared all documents from index")

    @property
    def documents(self) -> List[Document]:
        return list(self._documents)

    def __len__(self) -> int:
        return len(self._documents)
