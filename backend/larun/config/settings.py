"""
Configuration Settings.
"""

from pydantic_settings import BaseSettings
from typing import Optional


class Settings(BaseSettings):
    """Application settings."""

    # App info
    app_name: str = "LARUN.SPACE"
    app_version: str = "1.0.0"
    debug: bool = True

    # Supabase-issued access tokens (HS256, shared JWT secret)
    jwt_secret: str = "your-supabase-jwt-secret"
    jwt_algorithm: str = "HS256"
    jwt_audience: Optional[str] = "authenticated"
    anonymous_id_prefix: str = "anonymous"  # logged-out clients get "<prefix>-<hex>"

    # Storage
    local_storage_path: str = "./data"
    conversations_filename: str = "larun_conversations.json"

    # LLM Provider settings
    llm_provider: str = "openai"  # "openai" or "gemini"
    llm_api_key: Optional[str] = None
    llm_model: Optional[str] = None  # uses provider default if not set
    llm_base_url: Optional[str] = None  # uses provider default if not set
    llm_timeout_seconds: float = 30.0
    llm_context_messages: int = 10  # prior messages sent along with each request

    # Provider-specific keys (used when llm_api_key is not set)
    openai_api_key: Optional[str] = None
    gemini_api_key: Optional[str] = None

    # NASA data providers
    mast_base_url: str = "https://mast.stsci.edu/api/v0"
    exoplanet_archive_url: str = "https://exoplanetarchive.ipac.caltech.edu/cgi-bin/nstedAPI/nph-nstedAPI"
    mast_timeout_seconds: float = 20.0
    data_cache_ttl_seconds: float = 300.0  # 5 minutes
    data_cache_max_entries: Optional[int] = 512

    # CORS (the chat endpoint is called from static pages on any origin)
    cors_origins: list[str] = ["*"]

    # Logging configuration
    log_level: str = "INFO"  # DEBUG, INFO, WARNING, ERROR, CRITICAL
    log_file_path: str = "./logs/larun.log"
    log_file_enabled: bool = True
    log_console_enabled: bool = True
    log_json_format: bool = True  # JSON format for files, human-readable for console
    log_api_requests: bool = True  # Log all API requests/responses

    class Config:
        env_file = ".env"
        case_sensitive = False

    def resolve_llm_api_key(self) -> Optional[str]:
        """Return the key for the configured provider, preferring llm_api_key."""
        if self.llm_api_key:
            return self.llm_api_key
        if self.llm_provider == "gemini":
            return self.gemini_api_key
        return self.openai_api_key


settings = Settings()
