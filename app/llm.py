"""
LLM integration module for the Loop hospital network assistant

This module handles integration with Gemini as the intent and slot extractor.
The parser is only available when a Gemini API key is configured; any failure
is raised to the interpreter, which falls back to the rule-based parser.
"""

import asyncio
import json
import logging
import re
from typing import Any, Optional
from langchain_google_genai import ChatGoogleGenerativeAI
from pydantic import ValidationError
from app.config import settings
from app.interpreter import QueryParser, QueryParsingError
from app.models import Intent, QueryInfo

logger = logging.getLogger(__name__)

SYSTEM_PROMPT = (
    "You are a parser for a hospital search assistant. "
    "Given a user query, you MUST respond with a short JSON object only, no extra text. "
    'Fields: intent ("FIND_NEARBY" or "CONFIRM_IN_NETWORK" or "OUT_OF_SCOPE"), '
    "city (string, may be empty), hospitalName (string, may be empty), "
    "maxResults (integer, default 3). "
    'If the question is not about hospitals in the provided network, set intent to "OUT_OF_SCOPE".'
)

REMOTE_INTENTS = {Intent.FIND_NEARBY, Intent.CONFIRM_IN_NETWORK, Intent.OUT_OF_SCOPE}

_CODE_FENCE = re.compile(r"^```(?:json)?\s*|\s*```$", re.IGNORECASE)


def _response_text(content: Any) -> str:
    """Flatten a chat model message content into plain text."""
    if isinstance(content, str):
        return content
    if isinstance(content, list):
        parts = []
        for part in content:
            if isinstance(part, dict):
                parts.append(str(part.get("text", "")))
            else:
                parts.append(str(part))
        return "".join(parts)
    return str(content)


def parse_model_output(raw: str, default_max_results: int = 3) -> QueryInfo:
    """
    Turn the model's JSON reply into a QueryInfo.

    Args:
        raw: Model output, optionally wrapped in a markdown code fence
        default_max_results: Limit used when the model omits a positive maxResults

    Returns:
        QueryInfo: Parsed query

    Raises:
        QueryParsingError: On malformed JSON or a schema mismatch
    """
    cleaned = _CODE_FENCE.sub("", raw.strip())
    try:
        payload = json.loads(cleaned)
    except json.JSONDecodeError as e:
        raise QueryParsingError(f"Model returned malformed JSON: {e}") from e

    if not isinstance(payload, dict):
        raise QueryParsingError("Model output is not a JSON object")

    max_results = payload.get("maxResults")
    if not isinstance(max_results, int) or isinstance(max_results, bool) or max_results <= 0:
        max_results = default_max_results

    try:
        info = QueryInfo(
            intent=payload.get("intent"),
            city=(payload.get("city") or "").strip(),
            hospital_name=(payload.get("hospitalName") or "").strip(),
            max_results=max_results,
        )
    except (ValidationError, AttributeError) as e:
        raise QueryParsingError(f"Model output does not match the query schema: {e}") from e

    if info.intent not in REMOTE_INTENTS:
        raise QueryParsingError(f"Unexpected intent from model: {info.intent.value}")

    return info.model_copy(update={"out_of_scope": info.intent == Intent.OUT_OF_SCOPE})


class GeminiQueryParser(QueryParser):
    """Query parser backed by a Gemini chat model."""

    name = "gemini"

    def __init__(self, model: Optional[Any] = None):
        self._model = model

    def is_available(self) -> bool:
        return self._model is not None or bool(settings.gemini_api_key)

    @property
    def model(self):
        if self._model is None:
            if not settings.gemini_api_key:
                raise QueryParsingError("GEMINI_API_KEY is not set.")
            self._model = ChatGoogleGenerativeAI(
                model=settings.gemini_model_name,
                google_api_key=settings.gemini_api_key,
                temperature=0.0,
                max_retries=0,
            )
            logger.info(f"Gemini query parser initialized with model: {settings.gemini_model_name}")
        return self._model

    async def parse(self, text: str) -> QueryInfo:
        messages = [
            ("system", SYSTEM_PROMPT),
            ("human", text),
        ]
        try:
            response = await asyncio.wait_for(
                self.model.ainvoke(messages),
                timeout=settings.llm_timeout_seconds,
            )
        except asyncio.TimeoutError as e:
            raise QueryParsingError(
                f"Gemini did not answer within {settings.llm_timeout_seconds}s"
            ) from e

        return parse_model_output(_response_text(response.content), settings.default_max_results)


def check_gemini_connection() -> bool:
    """Quick connection test to Gemini API."""
    if not settings.gemini_api_key:
        return False
    try:
        parser = GeminiQueryParser()
        response = parser.model.invoke("Hello! Can you confirm you are working?")
        return bool(_response_text(response.content))
    except Exception as e:
        logger.error(f"Gemini connection test failed: {e}")
        return False
