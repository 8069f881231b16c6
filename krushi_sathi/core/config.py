from pydantic_settings import BaseSettings, SettingsConfigDict # Pydantic v2+
from pydantic import AliasChoices, Field
from typing import Literal
import os
from dotenv import load_dotenv

# Load .env file from the project root
dotenv_path = os.path.join(os.path.dirname(os.path.dirname(os.path.dirname(__file__))), '.env')
load_dotenv(dotenv_path=dotenv_path)

class Settings(BaseSettings):
    # Runtime
    ENVIRONMENT: str = "development"
    HOST: str = "0.0.0.0"
    PORT: int = 8080
    LOG_LEVEL: str = "INFO"
    ALLOWED_ORIGINS: str = "*"
    APP_VERSION: str = "1.0.0"

    # --- AI provider (Gemini) ---
    # Either AI_API_KEY or GEMINI_API_KEY enables the AI path
    AI_API_KEY: str | None = Field(default=None, validation_alias=AliasChoices("AI_API_KEY", "GEMINI_API_KEY"))
    GEMINI_MODEL_NAME: str = "gemini-2.5-flash"
    GEMINI_FALLBACK_MODEL_NAME: str = "gemini-1.5-flash" # Used once when the primary model is not found
    AI_TIMEOUT_SECONDS: float = 20.0
    AI_TEMPERATURE: float = 0.8
    AI_MAX_OUTPUT_TOKENS: int = 2500
    # "template": answer from static tables when no key is configured
    # "error": answer 503 AI_CONFIG_ERROR instead
    ADVISORY_FALLBACK_POLICY: Literal["template", "error"] = "template"

    # --- Request limits ---
    MAX_REQUEST_BYTES: int = 6 * 1024 * 1024
    MAX_IMAGE_BYTES: int = 5 * 1024 * 1024
    MAX_QUESTION_CHARS: int = 2000

    # --- Rate limiting (advisory endpoint) ---
    RATE_LIMIT_MAX_REQUESTS: int = 10
    RATE_LIMIT_WINDOW_SECONDS: float = 60.0
    RATE_LIMIT_MAX_KEYS: int = 10000 # LRU cap on tracked client addresses
    # Shared counter for multi-process deployments; in-process map when unset
    RATE_LIMIT_REDIS_URL: str | None = None

    # --- Persistence ---
    # Unset -> in-memory store outside production, 503 in production
    DATABASE_URL: str | None = None

    # --- Weather / updates ---
    WEATHER_API_URL: str = "https://api.open-meteo.com/v1/forecast"
    WEATHER_TIMEOUT_SECONDS: float = 10.0
    DEFAULT_LATITUDE: float = 20.5937 # Approximate centroid of India
    DEFAULT_LONGITUDE: float = 78.9629

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding='utf-8',
        case_sensitive=False,
        extra="ignore",
        populate_by_name=True,
    )

    @property
    def is_production(self) -> bool:
        return self.ENVIRONMENT.lower() == "production"

    @property
    def ai_configured(self) -> bool:
        return bool(self.AI_API_KEY)

settings = Settings()
