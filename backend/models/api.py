"""Request and response schemas for the HTTP API."""
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field


class ChatRequest(BaseModel):
    """Body of POST /api/chat."""
    model_config = ConfigDict(populate_by_name=True)

    message: str
    conversation_id: Optional[str] = Field(default=None, alias="conversationId")


class ChatResponse(BaseModel):
    """Reply to a chat message."""
    model_config = ConfigDict(populate_by_name=True)

    reply: str
    user_message: str = Field(alias="userMessage")
    conversation_id: str = Field(alias="conversationId")


class ErrorResponse(BaseModel):
    """Transport-level failure payload."""
    error: str


class EstimateRequest(BaseModel):
    """Structured device fields for POST /api/estimate."""
    brandName: Optional[str] = None
    modelName: Optional[str] = None
    seriesName: Optional[str] = None
    storageOption: Optional[str] = None
    carrierName: Optional[str] = None


class EstimateResponse(BaseModel):
    estimate: Dict[str, Any]


class LocationsResponse(BaseModel):
    locations: List[Dict[str, Any]]
