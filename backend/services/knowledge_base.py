"""
Knowledge base ingestion for the ecoATM Chat Assistant.

Runs once at startup:
1. Fetches each source page and cleans its HTML
2. Slices the text into fixed-size chunks
3. Embeds every chunk with the embedding service (when reachable) and the hash fallback
4. Stores the embedded chunks in the DocumentIndex
"""
import dataclasses
import logging
from typing import Iterable, List

from models.document import Document, Page
from services.chunking_engine import ChunkingEngine
from services.document_index import DocumentIndex
from services.document_loader import DocumentLoader
from services.errors import UpstreamError
from services.retrieval_engine import RetrievalEngine

logger = logging.getLogger(__name__)


class KnowledgeBase:
    """Builds the DocumentIndex from a fixed set of source pages."""

    def __init__(
        self,
        document_loader: DocumentLoader,
        chunking_engine: ChunkingEngine,
        retrieval_engine: RetrievalEngine,
        document_index: DocumentIndex
    ):
        self.document_loader = document_loader
        self.chunking_engine = chunking_engine
        self.retrieval_engine = retrieval_engine
        self.document_index = document_index

    async def initialize(self, urls: Iterable[str]) -> int:
        """
        Index every page in ``urls``, in order.

        A page that fails to load is logged and skipped.

        Returns:
            Total number of chunks indexed
        """
        logger.info("Initializing knowledge base...")
        total_chunks = 0

        for url in urls:
            logger.info(f"Scraping {url}...")
            total_chunks += await self.index_url(url)

        logger.info(f"Knowledge base initialized with {total_chunks} total chunks")
        return total_chunks

    async def index_url(self, url: str) -> int:
        """Fetch, chunk, embed and index one page. Returns the chunk count (0 on failure)."""
        try:
            page = await self.document_loader.load(url)
        except UpstreamError as e:
            logger.error(f"Error scraping {url}: {e}")
            return 0
        return await self.index_page(page)

    async def index_text(self, url: str, title: str, text: str) -> int:
        """Index page text fetched by someone else."""
        page = Page(url=url, title=title, text=DocumentLoader.clean_text(text))
        return await self.index_page(page)

    async def index_page(self, page: Page) -> int:
        documents: List[Document] = []
        for chunk in self.chunking_engine.chunk_page(page):
            documents.append(dataclasses.replace(
                chunk,
                embedding=await self.retrieval_engine.embed_with_service(chunk.content),
                fallback_embedding=self.retrieval_engine.fallback_embedding(chunk.content)
            ))

        self.document_index.add_documents(documents)
        logger.info(f"Indexed {len(documents)} chunks from {page.url}")
        return len(documents)
