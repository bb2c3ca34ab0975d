"""Application settings loaded from environment variables via pydantic-settings.

# ─── HOW SETTINGS WORK ────────────────────────────────────────────────
#
# Values are read from two sources (in priority order):
#
#   1. Environment variables, e.g. OPENAI_API_KEY=sk-abc123
#   2. The .env file in the project root (local development)
#
# Field `openai_api_key` maps to env var `OPENAI_API_KEY`.  Defaults below
# apply when neither source sets a value.
#
# Algorithm tunables (chunk size, relevance floor, chat prompt) live in
# config/config.yaml instead and are read by src.config.loader.
# ──────────────────────────────────────────────────────────────────────
"""

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """DEC Learning document service settings.

    Environment variables override defaults. Loaded from .env file when present.
    """

    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8")

    # === OpenAI ===
    # Empty key = "not configured" -> the embedding and chat providers raise
    # ConfigurationError at construction and main.py disables those services.
    openai_api_key: str = ""
    openai_base_url: str = ""  # Custom base URL for OpenAI-compatible APIs
    openai_embedding_model: str = "text-embedding-3-small"
    openai_embedding_dimension: int = 1536
    openai_chat_model: str = "gpt-4o-mini"

    # === Storage ===
    database_path: str = "data/documents.db"
    upload_dir: str = "uploads/documents"
    max_upload_size_mb: int = 50

    # === Authorization gate ===
    # Bearer tokens accepted by StaticTokenAuthorizationGate.  The admin
    # token also passes user-level checks.
    admin_api_token: str = ""
    user_api_token: str = ""

    # === App Config ===
    app_host: str = "0.0.0.0"
    app_port: int = 8000
    app_env: str = "development"
    log_level: str = "INFO"
    cors_origins: list[str] = ["*"]

    @property
    def max_upload_size_bytes(self) -> int:
        return self.max_upload_size_mb * 1024 * 1024
