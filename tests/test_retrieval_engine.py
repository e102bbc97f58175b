"""Unit tests for RetrievalEngine."""
import sys
from pathlib import Path

# Add backend to path
sys.path.insert(0, str(Path(__file__).parent.parent / "backend"))

import asyncio

import numpy as np
import pytest
from unittest.mock import AsyncMock
from models.document import Document
from services.document_index import DocumentIndex
from services.embedding_model import hash_embedding
from services.errors import UpstreamError
from services.retrieval_engine import RetrievalEngine


def indexed_document(document_id, content, embedding=None):
    return Document(
        document_id=document_id,
        url=f"https://www.ecoatm.com/{document_id}",
        title=document_id,
        content=content,
        embedding=None if embedding is None else np.asarray(embedding, dtype=np.float64),
        fallback_embedding=hash_embedding(content)
    )


class TestRetrievalEngine:
    """Test suite for RetrievalEngine class."""

    @pytest.fixture
    def document_index(self):
        index = DocumentIndex()
        index.add_documents([
            indexed_document("faq", "kiosks pay cash for used phones"),
            indexed_document("privacy", "we erase personal data from devices"),
            indexed_document("terms", "terms and conditions apply to all sales"),
        ])
        return index

    @pytest.fixture
    def retrieval_engine(self, document_index):
        """Create a RetrievalEngine that only uses the hash embedding."""
        return RetrievalEngine(document_index)

    @pytest.mark.asyncio
    async def test_empty_query(self, retrieval_engine):
        assert await retrieval_engine.retrieve("") == []
        assert await retrieval_engine.retrieve("   ") == []

    @pytest.mark.asyncio
    async def test_empty_index(self):
        engine = RetrievalEngine(DocumentIndex())
        assert await engine.search("anything") == []

    @pytest.mark.asyncio
    async def test_ranks_best_match_first(self, retrieval_engine):
        documents = await retrieval_engine.search("personal data", top_k=3)
        assert documents[0].document_id == "privacy"
        assert len(documents) == 3

    @pytest.mark.asyncio
    async def test_top_k(self, retrieval_engine):
        results = await retrieval_engine.retrieve("cash for phones", top_k=1)
        assert len(results) == 1
        assert results[0].document.document_id == "faq"

    @pytest.mark.asyncio
    async def test_uses_embedding_gateway(self, document_index):
        gateway = AsyncMock()
        gateway.embed.return_value = [0.5, 0.5]
        engine = RetrievalEngine(document_index, gateway)

        vector = await engine.embed("hello")

        gateway.embed.assert_awaited_once_with("hello")
        assert np.array_equal(vector, np.array([0.5, 0.5]))

    @pytest.mark.asyncio
    async def test_falls_back_on_upstream_error(self, document_index):
        gateway = AsyncMock()
        gateway.embed.side_effect = UpstreamError("UNAVAILABLE", "down")
        engine = RetrievalEngine(document_index, gateway)

        vector = await engine.embed("hello world")

        assert np.array_equal(vector, hash_embedding("hello world"))

    @pytest.mark.asyncio
    async def test_falls_back_on_timeout(self, document_index):
        async def slow_embed(text):
            await asyncio.sleep(1)
            return [1.0]

        gateway = AsyncMock()
        gateway.embed.side_effect = slow_embed
        engine = RetrievalEngine(document_index, gateway, timeout=0.01)

        vector = await engine.embed("hello world")

        assert np.array_equal(vector, hash_embedding("hello world"))

    @pytest.mark.asyncio
    async def test_fallback_retrieval_matches_fallback_index(self, document_index):
        """Test ranking still works end to end when the gateway is down."""
        gateway = AsyncMock()
        gateway.embed.side_effect = UpstreamError("UNAVAILABLE", "down")
        engine = RetrievalEngine(document_index, gateway)

        documents = await engine.search("terms and conditions", top_k=1)

        assert documents[0].document_id == "terms"

    @pytest.mark.asyncio
    async def test_falls_back_on_unexpected_error(self, document_index):
        gateway = AsyncMock()
        gateway.embed.side_effect = ValueError("Expecting value: line 1 column 1 (char 0)")
        engine = RetrievalEngine(document_index, gateway)

        vector = await engine.embed("hello world")

        assert np.array_equal(vector, hash_embedding("hello world"))

    @pytest.mark.asyncio
    async def test_embed_with_service_without_gateway(self, retrieval_engine):
        assert await retrieval_engine.embed_with_service("hello") is None

    @pytest.mark.asyncio
    async def test_service_space_when_fully_embedded(self):
        index = DocumentIndex()
        index.add_documents([
            indexed_document("faq", "kiosks pay cash for used phones", embedding=[0.0, 1.0]),
            indexed_document("privacy", "we erase personal data from devices", embedding=[1.0, 0.0]),
        ])
        gateway = AsyncMock()
        gateway.embed.return_value = [1.0, 0.1]
        engine = RetrievalEngine(index, gateway)

        documents = await engine.search("cash for phones", top_k=1)

        gateway.embed.assert_awaited_once_with("cash for phones")
        assert documents[0].document_id == "privacy"

    @pytest.mark.asyncio
    async def test_service_outage_after_ingestion_still_ranks(self):
        """Test documents embedded by the service stay searchable once it goes down."""
        index = DocumentIndex()
        index.add_documents([
            indexed_document("privacy", "privacy policy data collection", embedding=np.full(768, 0.1)),
            indexed_document("terms", "terms of use for our website", embedding=np.full(768, 0.2)),
            indexed_document("faq", "our kiosks pay cash when you recycle phones", embedding=np.full(768, 0.3)),
        ])
        gateway = AsyncMock()
        gateway.embed.side_effect = UpstreamError("UNAVAILABLE", "down")
        engine = RetrievalEngine(index, gateway)

        results = await engine.retrieve("recycle phones cash payout kiosk", top_k=3)

        assert results[0].document.document_id == "faq"
        assert results[0].score > 0.0

    @pytest.mark.asyncio
    async def test_partially_embedded_index_uses_fallback(self):
        """Test one chunk without a service vector moves every query to the hash space."""
        index = DocumentIndex()
        index.add_documents([
            indexed_document("privacy", "privacy policy data collection", embedding=[1.0, 0.0]),
            indexed_document("faq", "our kiosks pay cash when you recycle phones"),
        ])
        gateway = AsyncMock()
        gateway.embed.return_value = [1.0, 0.0]
        engine = RetrievalEngine(index, gateway)

        documents = await engine.search("recycle phones for cash", top_k=1)

        gateway.embed.assert_not_awaited()
        assert documents[0].document_id == "faq"
