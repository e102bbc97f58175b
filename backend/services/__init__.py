"""Services for the ecoATM Chat Assistant."""
from .errors import AssistantError, ValidationError, UpstreamError, NotFoundError
from .gateways import PricingGateway, LocationGateway, EmbeddingGateway, CompletionGateway
from .slot_extractor import SlotExtractor
from .slot_merger import merge_slots
from .intent_router import IntentRouter, Action, RouteDecision
from .session_store import SessionStore
from .document_loader import DocumentLoader
from .chunking_engine import ChunkingEngine
from .embedding_model import EmbeddingModel, hash_embedding
from .document_index import DocumentIndex, cosine_similarity
from .retrieval_engine import RetrievalEngine
from .knowledge_base import KnowledgeBase
from .llm_client import LLMClient
from .pricing_service import PricingService
from .location_service import LocationService
from .dialogue_engine import DialogueEngine, DialogueReply

__all__ = [
    'AssistantError', 'ValidationError', 'UpstreamError', 'NotFoundError',
    'PricingGateway', 'LocationGateway', 'EmbeddingGateway', 'CompletionGateway',
    'SlotExtractor', 'merge_slots', 'IntentRouter', 'Action', 'RouteDecision',
    'SessionStore', 'DocumentLoader', 'ChunkingEngine', 'EmbeddingModel', 'hash_embedding',
    'DocumentIndex', 'cosine_similarity', 'RetrievalEngine', 'KnowledgeBase', 'LLMClient',
    'PricingService', 'LocationService', 'DialogueEngine', 'DialogueReply'
]
