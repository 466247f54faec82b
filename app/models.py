"""
Pydantic models and schemas for the Loop hospital network assistant

This module defines the hospital record, the structured query produced by the
interpreter, the dialogue result, and the request/response bodies of the API.
"""

from datetime import datetime
from typing import Dict, Any, Optional
from enum import Enum
from pydantic import BaseModel, Field, field_validator


class Intent(str, Enum):
    """Classified purpose of a user utterance."""
    FIND_NEARBY = "FIND_NEARBY"
    CONFIRM_IN_NETWORK = "CONFIRM_IN_NETWORK"
    OUT_OF_SCOPE = "OUT_OF_SCOPE"
    IN_SCOPE = "IN_SCOPE"


class HospitalRecord(BaseModel):
    """A single row of the hospital directory."""
    name: str = Field(default="", description="Hospital name")
    address: str = Field(default="", description="Street address")
    city: str = Field(default="", description="City")

    model_config = {"frozen": True}


class QueryInfo(BaseModel):
    """Intent and slots extracted from one utterance."""
    intent: Intent = Field(default=Intent.IN_SCOPE, description="Classified intent")
    city: str = Field(default="", description="City slot, possibly empty")
    hospital_name: str = Field(default="", alias="hospitalName", description="Hospital name slot, possibly empty")
    max_results: int = Field(default=3, alias="maxResults", description="Result limit for nearby searches")
    out_of_scope: bool = Field(default=False, alias="outOfScope", description="Request falls outside the assistant's domain")

    model_config = {"populate_by_name": True}


class DialogueResult(BaseModel):
    """Reply for one conversational turn."""
    reply: str = Field(..., description="Natural-language reply")
    end_conversation: bool = Field(default=False, alias="endConversation", description="Whether the conversation should end")

    model_config = {"populate_by_name": True}


class QueryRequest(BaseModel):
    """Request model for the query endpoint."""
    text: str = Field(default="", description="User utterance")
    introduced: bool = Field(default=False, description="Whether the assistant has already introduced itself")

    @field_validator("text", mode="before")
    @classmethod
    def null_text_is_empty(cls, v):
        return "" if v is None else v


class HealthCheckResponse(BaseModel):
    """Response model for health check endpoint."""
    status: str = Field(..., description="Health status")


class SystemStatus(BaseModel):
    """Model for system status information."""
    status: str = Field(..., description="System status")
    hospitals_loaded: int = Field(..., description="Number of hospitals in the directory")
    llm_configured: bool = Field(..., description="Whether a Gemini API key is configured")
    active_call_sessions: int = Field(..., description="Number of live telephony sessions")
    timestamp: datetime = Field(default_factory=datetime.utcnow, description="Status check timestamp")


class ErrorResponse(BaseModel):
    """Response model for API errors."""
    error: str = Field(..., description="Error message")
    error_code: Optional[str] = Field(None, description="Error code")
    details: Optional[Dict[str, Any]] = Field(None, description="Additional error details")
    timestamp: datetime = Field(default_factory=datetime.utcnow, description="Error timestamp")
