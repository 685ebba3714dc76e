from pydantic_settings import BaseSettings
from pydantic import Field
from typing import List, Optional


class Settings(BaseSettings):
    app_name: str = "PDF Chat API"
    environment: str = Field(default="development")

    # Routes are mounted under this prefix, uploads are served from /uploads
    API_PREFIX: str = "/api"

    # CORS
    cors_allow_origins: List[str] = Field(default_factory=lambda: ["*"])

    # File Upload Settings
    UPLOAD_DIR: str = "uploads"
    MAX_FILE_SIZE_MB: int = 20
    ALLOWED_EXTENSIONS: List[str] = [".pdf"]

    # Chat Settings
    CONTEXT_WINDOW_CHARS: int = 6000
    MAX_SESSIONS: int = 100  # 0 disables eviction
    EXTRACTION_TIMEOUT_SECONDS: float = 60.0
    GENERATION_TIMEOUT_SECONDS: float = 120.0

    # LLM Settings
    LLM_PROVIDER: str = "openai"  # "openai" (any compatible endpoint) or "groq"
    CHAT_MODEL: str = "deepseek-r1:8b"
    LLM_BASE_URL: Optional[str] = "http://127.0.0.1:11434/v1"
    LLM_API_KEY: str = "ollama"
    GROQ_API_KEY: Optional[str] = None
    TEMPERATURE: float = 0.3
    MAX_TOKENS: int = 1024

    # Logging
    LOG_LEVEL: str = "INFO"

    model_config = {
        "env_file": ".env",
        "case_sensitive": False,
        "extra": "ignore",
    }


settings = Settings()
