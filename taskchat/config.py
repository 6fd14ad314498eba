"""
TASKCHAT - Configuration Module

This module handles application configuration via environment variables.
"""

import os
from typing import Optional


class Settings:
    """Application settings loaded from environment variables."""

    # Application
    APP_NAME: str = "TASKCHAT Service"
    APP_VERSION: str = "0.1.0"
    DEBUG: bool = os.getenv("DEBUG", "false").lower() == "true"

    # Server
    HOST: str = os.getenv("HOST", "0.0.0.0")
    PORT: int = int(os.getenv("PORT", "8000"))

    # MongoDB
    MONGODB_URI: str = os.getenv("MONGODB_URI", "mongodb://mongodb:27017")
    MONGODB_DATABASE: str = os.getenv("MONGODB_DATABASE", "taskchat")

    # Generator: "openai" talks to the model directly, "http" posts to a text service
    GENERATOR_BACKEND: str = os.getenv("GENERATOR_BACKEND", "openai")
    OPENAI_API_KEY: Optional[str] = os.getenv("OPENAI_API_KEY", None)
    MODEL_NAME: str = os.getenv("MODEL_NAME", "gpt-4o-mini")
    LLM_TIMEOUT: float = float(os.getenv("LLM_TIMEOUT", "30.0"))
    LLM_TEMPERATURE: float = float(os.getenv("LLM_TEMPERATURE", "0.7"))
    LLM_MAX_TOKENS: int = int(os.getenv("LLM_MAX_TOKENS", "1000"))
    GENERATOR_SERVICE_URL: str = os.getenv(
        "GENERATOR_SERVICE_URL", "http://generator-service:8001"
    )

    # Conversation
    HISTORY_LIMIT: int = int(os.getenv("HISTORY_LIMIT", "10"))
    PROMPT_HISTORY_LIMIT: int = int(os.getenv("PROMPT_HISTORY_LIMIT", "5"))
    # messages kept per session; older ones are dropped
    SESSION_HISTORY_MAX: int = int(os.getenv("SESSION_HISTORY_MAX", "50"))

    # Engine policy
    ENFORCE_UNIQUE_LIST_TITLES: bool = (
        os.getenv("ENFORCE_UNIQUE_LIST_TITLES", "true").lower() == "true"
    )
    REQUIRE_DELETE_LIST_CONFIRMATION: bool = (
        os.getenv("REQUIRE_DELETE_LIST_CONFIRMATION", "true").lower() == "true"
    )

    # Logging
    LOG_LEVEL: str = os.getenv("LOG_LEVEL", "INFO")


settings = Settings()
