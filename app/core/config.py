import os
import logging
from pydantic import BaseModel, Field
from typing import List, Optional
from dotenv import load_dotenv

load_dotenv()

class AISettings(BaseModel):
    openrouter_api_key: Optional[str] = Field(default=os.getenv("OPENROUTER_API_KEY"))
    model_name: str = Field(default=os.getenv("AI_MODEL_NAME", "google/gemini-2.0-flash-001"))
    fallback_model: str = Field(default=os.getenv("AI_FALLBACK_MODEL", "google/gemini-2.0-flash-lite-preview-02-05:free"))
    kill_switch: bool = Field(default=os.getenv("AI_KILL_SWITCH", "false").lower() == "true")
    # Transport-level attempts per call; the evaluation engine itself never retries.
    max_attempts: int = Field(default=int(os.getenv("AI_MAX_ATTEMPTS", "3")))
    timeout_seconds: float = Field(default=float(os.getenv("AI_TIMEOUT_SECONDS", "30")))
    evaluation_temperature: float = 0.2
    feedback_temperature: float = 0.5

class Config(BaseModel):
    app_name: str = "Performance Review Engine"
    environment: str = os.getenv("APP_ENV", "development")
    api_prefix: str = "/api"

    # Database
    database_url: str = os.getenv("DATABASE_URL", "sqlite:///./database.db")

    # AI Components
    ai: AISettings = AISettings()

    version: str = "1.0.0"
    build_id: str = os.getenv("BUILD_ID", "local")
    request_id_header: str = "X-Request-ID"
    actor_header: str = "X-Employee-ID"
    log_level: str = os.getenv("LOG_LEVEL", "INFO")

    # CORS: comma-separated origins loaded from env.
    cors_origins: List[str] = Field(
        default_factory=lambda: [
            o.strip()
            for o in os.getenv(
                "CORS_ORIGINS",
                "http://localhost:3000,http://localhost:5173,"
                "http://127.0.0.1:3000,http://127.0.0.1:5173",
            ).split(",")
            if o.strip()
        ]
    )

    # Evaluation rules
    min_report_length: int = int(os.getenv("MIN_REPORT_LENGTH", "50"))
    max_report_length: int = int(os.getenv("MAX_REPORT_LENGTH", "3000"))
    red_flag_threshold: float = float(os.getenv("RED_FLAG_THRESHOLD", "6.0"))
    coaching_threshold: float = float(os.getenv("COACHING_THRESHOLD", "6.0"))
    key_skill_limit: int = 8
    skill_analysis_report_limit: int = 20
    skill_analysis_excerpt_chars: int = 500

    # First-run bootstrap (app.core.init_system)
    bootstrap_default_org: bool = os.getenv("BOOTSTRAP_DEFAULT_ORG", "false").lower() == "true"
    bootstrap_org_name: str = os.getenv("BOOTSTRAP_ORG_NAME", "Default Organization")
    bootstrap_owner_email: str = os.getenv("BOOTSTRAP_OWNER_EMAIL", "owner@example.com")

settings = Config()

# --- Startup Validation for Production ---
_logger = logging.getLogger(__name__)
if settings.environment not in ("development", "testing"):
    if not settings.ai.openrouter_api_key and not settings.ai.kill_switch:
        raise RuntimeError(
            "FATAL: OPENROUTER_API_KEY must be set for non-development environments "
            "(or set AI_KILL_SWITCH=true to run without report evaluation)."
        )
elif not settings.ai.openrouter_api_key:
    _logger.warning("⚠ OPENROUTER_API_KEY is not set; report evaluation will fail until it is configured.")
