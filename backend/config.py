"""Configuration management for the ecoATM Chat Assistant."""
import os
from dotenv import load_dotenv

from logger import setup_logging

# Load environment variables
load_dotenv()

# API Keys
GROQ_API_KEY = os.getenv("GROQ_API_KEY")
HUGGINGFACE_API_KEY = os.getenv("HUGGINGFACE_API_KEY")
BULLSEYE_CLIENT_ID = os.getenv("BULLSEYE_CLIENT_ID")
BULLSEYE_API_KEY = os.getenv("BULLSEYE_API_KEY")
BULLSEYE_INTERFACE_ID = os.getenv("BULLSEYE_INTERFACE_ID")

# Server Configuration
PORT = int(os.getenv("PORT", "3000"))
LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO")
LOG_FORMAT = os.getenv("LOG_FORMAT", "text")  # "text" or "json"

# CORS Configuration
CORS_ORIGINS = os.getenv(
    "CORS_ORIGINS",
    "http://localhost:3000,http://localhost:3001"
).split(",")

# Upstream services
PRICING_API_URL = os.getenv("PRICING_API_URL", "https://api-qa.ecoatm.com/omni/v1/graphql")
GEOCODING_API_URL = os.getenv("GEOCODING_API_URL", "https://api.zippopotam.us/us")
LOCATION_SEARCH_URL = os.getenv(
    "LOCATION_SEARCH_URL",
    "https://ws.bullseyelocations.com/RestSearch.svc/DoSearch2"
)
GATEWAY_TIMEOUT_SECONDS = float(os.getenv("GATEWAY_TIMEOUT_SECONDS", "15"))

# Pricing lookups are always for the phone category
PHONE_CATEGORY_ID = "8fbcad05-0bbf-4ba7-ba0c-1d4f36bc1022"

# Model Configuration
COMPLETION_MODEL = "llama-3.3-70b-versatile"
COMPLETION_MAX_TOKENS = 500
EMBEDDING_MODEL = "sentence-transformers/all-mpnet-base-v2"
EMBEDDING_DIMENSION = 1536
# Vector length produced by EMBEDDING_MODEL; other lengths are rejected
EMBEDDING_SERVICE_DIMENSION = 768

# Knowledge base
CHUNK_SIZE = 1000  # characters
RETRIEVAL_TOP_K = 3
KNOWLEDGE_BASE_URLS = [
    url.strip()
    for url in os.getenv(
        "KNOWLEDGE_BASE_URLS",
        "https://www.ecoatm.com/how-it-works/,"
        "https://www.ecoatm.com/faq/,"
        "https://www.ecoatm.com/privacy-policy/,"
        "https://www.ecoatm.com/terms-and-conditions/,"
        "https://www.ecoatm.com/what-we-buy/"
    ).split(",")
    if url.strip()
]

SYSTEM_PROMPT = (
    "You are a helpful customer support assistant for ecoATM, a company that offers "
    "automated kiosks that buy back used cell phones and other electronic devices for cash. "
    "Be friendly, concise, and helpful. Base your answers on the information provided in the "
    "context. If you don't know something or if the information isn't in the provided context, "
    "say so politely."
)

# Logging Configuration
setup_logging(LOG_LEVEL, LOG_FORMAT)
