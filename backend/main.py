"""Main entry point for the ecoATM Chat Assistant API."""
import logging
import re

from fastapi import FastAPI, HTTPException, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from config import (
    CHUNK_SIZE,
    CORS_ORIGINS,
    EMBEDDING_MODEL,
    HUGGINGFACE_API_KEY,
    KNOWLEDGE_BASE_URLS,
    PORT,
)
from models.api import (
    ChatRequest,
    ChatResponse,
    ErrorResponse,
    EstimateRequest,
    EstimateResponse,
    LocationsResponse,
)
from services.chunking_engine import ChunkingEngine
from services.dialogue_engine import DialogueEngine
from services.document_index import DocumentIndex
from services.document_loader import DocumentLoader
from services.embedding_model import EmbeddingModel
from services.errors import NotFoundError, UpstreamError, ValidationError
from services.intent_router import IntentRouter
from services.knowledge_base import KnowledgeBase
from services.llm_client import LLMClient
from services.location_service import LocationService
from services.pricing_service import PricingService
from services.retrieval_engine import RetrievalEngine
from services.session_store import SessionStore
from services.slot_extractor import SlotExtractor

# Initialize logging
logger = logging.getLogger(__name__)

ZIP_CODE_FORMAT = re.compile(r"^\d{5}(?:-\d{4})?$")

# Initialize FastAPI app
app = FastAPI(
    title="ecoATM Chat Assistant",
    description="Conversational assistant for kiosk locations, device estimates and ecoATM questions",
    version="1.0.0"
)

# Configure CORS
app.add_middleware(
    CORSMiddleware,
    allow_origins=CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Initialize services (will be done on startup)
dialogue_engine: DialogueEngine = None
slot_extractor: SlotExtractor = None
pricing_service: PricingService = None
location_service: LocationService = None
knowledge_base: KnowledgeBase = None


@app.on_event("startup")
async def startup_event():
    """Initialize services and index the knowledge base on startup."""
    global dialogue_engine, slot_extractor, pricing_service, location_service, knowledge_base

    logger.info("Initializing ecoATM Chat Assistant services...")

    try:
        document_index = DocumentIndex()

        embedding_model = None
        if HUGGINGFACE_API_KEY:
            embedding_model = EmbeddingModel(api_key=HUGGINGFACE_API_KEY, model_name=EMBEDDING_MODEL)
        retrieval_engine = RetrievalEngine(document_index, embedding_model)

        slot_extractor = SlotExtractor()
        pricing_service = PricingService()
        location_service = LocationService()
        llm_client = LLMClient()

        dialogue_engine = DialogueEngine(
            session_store=SessionStore(),
            router=IntentRouter(slot_extractor),
            retrieval_engine=retrieval_engine,
            location_gateway=location_service,
            pricing_gateway=pricing_service,
            completion_gateway=llm_client,
        )

        knowledge_base = KnowledgeBase(
            document_loader=DocumentLoader(),
            chunking_engine=ChunkingEngine(CHUNK_SIZE),
            retrieval_engine=retrieval_engine,
            document_index=document_index,
        )
        await knowledge_base.initialize(KNOWLEDGE_BASE_URLS)

        logger.info("All services initialized successfully")
    except Exception as e:
        logger.error(f"Failed to initialize services: {e}", exc_info=True)
        raise


@app.exception_handler(StarletteHTTPException)
async def http_exception_handler(request: Request, exc: StarletteHTTPException):
    return JSONResponse(status_code=exc.status_code, content={"error": str(exc.detail)})


@app.exception_handler(RequestValidationError)
async def validation_exception_handler(request: Request, exc: RequestValidationError):
    logger.warning(f"Invalid request body for {request.url.path}: {exc.errors()}")
    return JSONResponse(status_code=400, content={"error": "Invalid request body"})


@app.get("/")
async def root():
    """Health check endpoint."""
    return {"status": "ok", "message": "ecoATM Chat Assistant API"}


@app.get("/health")
async def health():
    """Detailed health check."""
    return {
        "status": "healthy",
        "service": "ecoatm-chat-assistant",
        "version": "1.0.0"
    }


@app.post(
    "/api/chat",
    response_model=ChatResponse,
    response_model_by_alias=True,
    responses={400: {"model": ErrorResponse}, 500: {"model": ErrorResponse}}
)
async def chat_endpoint(request: ChatRequest) -> ChatResponse:
    """
    Dialogue entry point.

    Routes the message to the location, estimate or general-question flow
    and returns the assistant reply. In-dialogue failures come back as a
    normal reply; only transport-level problems produce an error status.

    Args:
        request: ChatRequest with message and optional conversationId

    Returns:
        ChatResponse with reply, userMessage and conversationId

    Raises:
        HTTPException: 400 for an empty message, 500 for unexpected failures
    """
    if not request.message or not request.message.strip():
        raise HTTPException(status_code=400, detail="Message is required")

    logger.info(f"Processing message: {request.message[:100]}...")

    try:
        result = await dialogue_engine.handle_message(request.message, request.conversation_id)
    except Exception as e:
        logger.error(f"Unexpected error processing message: {e}", exc_info=True)
        raise HTTPException(status_code=500, detail="Something went wrong")

    return ChatResponse(
        reply=result.reply,
        user_message=result.user_message,
        conversation_id=result.conversation_id
    )


@app.get("/api/locations/{zip_code}", response_model=LocationsResponse)
async def locations_endpoint(zip_code: str) -> LocationsResponse:
    """
    Find kiosks near a zip code.

    An unknown zip code yields an empty list rather than an error.
    """
    if not ZIP_CODE_FORMAT.match(zip_code):
        raise HTTPException(status_code=400, detail="Invalid zip code format")

    try:
        locations = await location_service.find_by_zip(zip_code)
    except NotFoundError as e:
        logger.info(f"No location for zip code {zip_code}: {e}")
        locations = []
    except UpstreamError as e:
        logger.error(f"Location lookup failed for {zip_code}: {e}", exc_info=True)
        raise HTTPException(status_code=502, detail="Location service unavailable")

    return LocationsResponse(locations=[loc.to_payload() for loc in locations])


@app.post("/api/estimate", response_model=EstimateResponse)
async def estimate_endpoint(request: EstimateRequest) -> EstimateResponse:
    """
    Price a device from structured fields.

    Storage and carrier default when omitted; brand and model are required.
    """
    slots = slot_extractor.extract_structured(request.model_dump())
    if slots is None:
        raise HTTPException(status_code=400, detail="Missing required device information")

    try:
        estimate = await pricing_service.get_estimate(slots)
    except ValidationError as e:
        raise HTTPException(status_code=400, detail=str(e))
    except UpstreamError as e:
        logger.error(f"Estimate failed for {slots.brand} {slots.model}: {e}", exc_info=True)
        raise HTTPException(status_code=502, detail="Pricing service unavailable")

    return EstimateResponse(estimate=estimate.raw)


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(app, host="0.0.0.0", port=PORT)
