import logging
import os
from pathlib import Path
from typing import ClassVar, Optional, Union

from dotenv import load_dotenv
from pydantic import ConfigDict, Field, field_validator
from pydantic_settings import BaseSettings

log_format = logging.Formatter("%(asctime)s : %(levelname)s - %(message)s")

# root logger
root_logger = logging.getLogger()
root_logger.setLevel(logging.INFO)

# standard stream handler
stream_handler = logging.StreamHandler()
stream_handler.setFormatter(log_format)
root_logger.addHandler(stream_handler)

logger = logging.getLogger(__name__)

# Load .env file from docker/server directory, falling back to the project root
for env_path in (Path("./docker/server/.env"), Path("./.env")):
    if env_path.exists():
        load_dotenv(dotenv_path=env_path)
        logger.info(f"Loaded environment from {env_path}")
        break
else:
    logger.warning("No .env file found, using process environment only")


class Settings(BaseSettings):
    API_V1_STR: str = "/api/v1"

    # Database Configuration
    DATABASE_URL: str = Field(
        default_factory=lambda: os.getenv("DATABASE_URL"),
        description="SQLAlchemy async database URL, e.g. postgresql+asyncpg://..."
    )

    # Session tokens
    SECRET_KEY: str = Field(
        default_factory=lambda: os.getenv("SECRET_KEY"),
        description="Key used to sign session tokens"
    )
    ACCESS_TOKEN_EXPIRE_MINUTES: int = 60 * 24 * 7
    SESSION_COOKIE_NAME: str = "session_token"

    # Bridge between the external auth framework and this API
    AUTH_BRIDGE_SECRET: Optional[str] = None

    # Conversation session store
    REDIS_URL: str = "redis://localhost:6379/0"
    CONVERSATION_TTL_SECONDS: int = 60 * 60 * 2
    CONVERSATION_MAX_TURNS: int = 20

    # Submission evaluator
    EVALUATOR_URL: str = "http://localhost:2358/submissions/batch"
    EVALUATOR_API_KEY: Optional[str] = None
    EVALUATOR_TIMEOUT_SECONDS: float = 30.0

    # Text generation
    TEXT_GENERATION_URL: str = "https://openrouter.ai/api/v1/chat/completions"
    TEXT_GENERATION_API_KEY: Optional[str] = None
    TEXT_GENERATION_MODEL: str = "meta-llama/llama-3.1-8b-instruct:free"
    TEXT_GENERATION_TIMEOUT_SECONDS: float = 20.0

    # Payments
    RAZORPAY_KEY_SECRET: Optional[str] = None

    # Access policies
    POLICIES_PATH: Optional[str] = None

    # Server Configuration
    SERVER_PORT: int = 8001
    BACKEND_CORS_ORIGINS: list[str] = ["http://localhost:3000"]

    @field_validator("BACKEND_CORS_ORIGINS", mode="before")
    @classmethod
    def assemble_cors_origins(cls, v: Union[str, list[str]]) -> list[str]:
        if isinstance(v, str) and not v.startswith("["):
            return [i.strip() for i in v.split(",")]
        elif isinstance(v, list):
            return v
        elif isinstance(v, str):
            return [v]
        raise ValueError(v)

    PROJECT_NAME: str = "codeprep-api"

    Config: ClassVar[ConfigDict] = ConfigDict(arbitrary_types_allowed=True)


settings = Settings()

# Validate required settings
if not settings.DATABASE_URL:
    raise ValueError("DATABASE_URL environment variable is required")
if not settings.SECRET_KEY:
    raise ValueError("SECRET_KEY environment variable is required")
