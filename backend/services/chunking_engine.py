"""Chunking engine that slices page text into fixed-size windows."""
import logging
import re
from typing import List

from config import CHUNK_SIZE
from models.document import Document, Page

logger = logging.getLogger(__name__)


class ChunkingEngine:
    """Segments pages into fixed-size, non-overlapping character chunks."""

    def __init__(self, chunk_size: int = CHUNK_SIZE):
        """
        Initialize ChunkingEngine.

        Args:
            chunk_size: Chunk length in characters
        """
        if chunk_size <= 0:
            raise ValueError("chunk_size must be positive")
        self.chunk_size = chunk_size

    def chunk_page(self, page: Page) -> List[Document]:
        """
        Chunk a page into unembedded Documents.

        Args:
            page: Cleaned page

        Returns:
            Documents in page order; empty if the page has no text
        """
        if not page.text:
            logger.warning(f"Page has no text to chunk: {page.url}")
            return []

        prefix = self.document_prefix(page.url)
        chunks = [
            Document(
                document_id=f"{prefix}-{offset}",
                url=page.url,
                title=page.title,
                content=page.text[offset:offset + self.chunk_size]
            )
            for offset in range(0, len(page.text), self.chunk_size)
        ]

        logger.info(f"Created {len(chunks)} chunks from {page.url}")
        return chunks

    @staticmethod
    def document_prefix(url: str) -> str:
        """URL with every non-alphanumeric character replaced by '-'."""
        return re.sub(r"[^a-zA-Z0-9]", "-", url)
