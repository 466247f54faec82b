"""
FastAPI routes and endpoints for the Loop hospital network assistant

This module defines the JSON web channel:
- Query endpoint answering a single utterance
- Health check and system status endpoints
"""

import logging
from fastapi import APIRouter, HTTPException
from app.config import settings
from app.dialogue import get_dialogue_handler
from app.directory import get_hospital_directory
from app.memory import get_call_session_store
from app.models import DialogueResult, HealthCheckResponse, QueryRequest, SystemStatus

# Configure logging
logger = logging.getLogger(__name__)

# Create API router
router = APIRouter()


@router.post("/query", response_model=DialogueResult)
async def query_assistant(request: QueryRequest) -> DialogueResult:
    """
    Answer one user utterance.

    Args:
        request: Query request containing the text and greeting state

    Returns:
        DialogueResult: Reply and end-of-conversation flag
    """
    if not request.text.strip():
        raise HTTPException(status_code=400, detail="Missing text")

    try:
        result = await get_dialogue_handler().handle_query(request.text, introduced=request.introduced)
    except Exception as e:
        logger.error(f"Error handling /api/query: {e}")
        raise HTTPException(status_code=500, detail="Internal server error")

    logger.info(f"Query answered (endConversation={result.end_conversation})")
    return result


@router.get("/health", response_model=HealthCheckResponse)
async def health_check() -> HealthCheckResponse:
    """Simple health check."""
    return HealthCheckResponse(status="ok")


@router.get("/status", response_model=SystemStatus)
async def get_system_status() -> SystemStatus:
    """
    Get detailed system status.

    Returns:
        SystemStatus: Directory size, LLM configuration and live call sessions
    """
    try:
        hospitals_loaded = len(get_hospital_directory())
    except RuntimeError:
        hospitals_loaded = 0

    llm_configured = bool(settings.gemini_api_key)

    return SystemStatus(
        status="operational" if hospitals_loaded else "degraded",
        hospitals_loaded=hospitals_loaded,
        llm_configured=llm_configured,
        active_call_sessions=get_call_session_store().active_session_count(),
    )


# Add router to the app
def get_api_router() -> APIRouter:
    """
    Get the configured API router.

    Returns:
        APIRouter: Configured router with all endpoints
    """
    return router
