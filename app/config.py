"""
Configuration module for the Loop hospital network assistant

This module handles all configuration settings including environment variables,
API keys, and application settings using Pydantic Settings.
"""

import logging
import os
from typing import Optional
from pydantic import Field
from pydantic_settings import BaseSettings
from dotenv import load_dotenv

# Load environment variables from .env file
load_dotenv()

logger = logging.getLogger(__name__)


class Settings(BaseSettings):
    """Application settings and configuration."""

    # Gemini AI Configuration
    gemini_api_key: Optional[str] = Field(default=None)
    gemini_model_name: str = Field(default="gemini-2.5-flash")
    llm_timeout_seconds: float = Field(default=10.0)

    # Hospital directory
    hospital_csv_path: str = Field(default="./data/hospitals.csv")
    default_max_results: int = Field(default=3)

    # Assistant persona
    assistant_name: str = Field(default="Loop AI")
    network_name: str = Field(default="Loop")

    # Call sessions
    session_ttl_minutes: int = Field(default=30)
    max_no_input_prompts: int = Field(default=3)

    # Twilio Configuration
    twilio_account_sid: Optional[str] = Field(default=None)
    twilio_auth_token: Optional[str] = Field(default=None)
    twilio_voice: str = Field(default="Polly.Aditi")
    twilio_language: str = Field(default="en-IN")

    # Application Configuration
    app_host: str = Field(default="0.0.0.0")
    app_port: int = Field(default=3000)
    debug: bool = Field(default=False)

    # Logging Configuration
    log_level: str = Field(default="INFO")
    log_format: str = Field(default="%(asctime)s - %(name)s - %(levelname)s - %(message)s")
    log_file: Optional[str] = Field(default="loop_assistant.log")

    # API Configuration
    api_title: str = Field(default="Loop Hospital Network Assistant API")
    api_description: str = Field(
        default="Find network hospitals by city and confirm network membership over web and voice"
    )
    api_version: str = Field(default="1.0.0")

    # CORS Configuration
    allowed_origins: list[str] = Field(
        default=["http://localhost:8501", "http://localhost:3000"]
    )

    model_config = {
        "protected_namespaces": (),
        "extra": "ignore",
    }


def get_settings() -> Settings:
    """Get application settings instance."""
    return Settings()


def validate_configuration() -> bool:
    """
    Validate that all required configuration is present and valid.

    A missing Gemini key is not an error: the rule-based parser takes over.

    Returns:
        bool: True if configuration is valid, False otherwise
    """
    if not settings.gemini_api_key:
        logger.warning("GEMINI_API_KEY is not set - using the rule-based query parser only")

    if not os.path.isfile(settings.hospital_csv_path):
        logger.error(f"Hospital CSV not found at {settings.hospital_csv_path}")
        return False

    if settings.default_max_results < 1:
        logger.error("DEFAULT_MAX_RESULTS must be at least 1")
        return False

    return True


# Global settings instance
settings = get_settings()
