"""Data models for the ecoATM Chat Assistant."""
from .slots import SlotSet
from .conversation import Session, Turn
from .document import Page, Document, ScoredDocument
from .estimate import Estimate
from .location import KioskLocation
from .api import (
    ChatRequest,
    ChatResponse,
    ErrorResponse,
    EstimateRequest,
    EstimateResponse,
    LocationsResponse,
)

__all__ = [
    "SlotSet",
    "Session",
    "Turn",
    "Page",
    "Document",
    "ScoredDocument",
    "Estimate",
    "KioskLocation",
    "ChatRequest",
    "ChatResponse",
    "ErrorResponse",
    "EstimateRequest",
    "EstimateResponse",
    "LocationsResponse",
]
