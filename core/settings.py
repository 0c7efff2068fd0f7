from functools import lru_cache
from typing import Literal

from pydantic import BaseModel, Field, PostgresDsn, SecretStr, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class CustomSettings(BaseSettings):
    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=True,
        extra="ignore",
    )


class AppSettings(CustomSettings):
    ENVIRONMENT: Literal["local", "dev", "prod"] = Field(default="local")
    LOG_LEVEL: str = Field(default="INFO")
    JSON_LOGS: bool = Field(default=False)


class DatabaseSettings(CustomSettings):
    """Store connection settings.

    SQLite (through aiosqlite) is the default engine. Set ``DB_ENGINE`` to
    ``postgresql+asyncpg`` and the ``POSTGRES_*`` variables to use PostgreSQL,
    or pass a complete ``DATABASE_URL``.
    """

    DB_ENGINE: str = Field(default="sqlite+aiosqlite")
    SQLITE_PATH: str = Field(default="./support_chat.db")
    POSTGRES_USER: str = Field(default="postgres")
    POSTGRES_PASSWORD: SecretStr = Field(default="postgres")
    POSTGRES_DB: str = Field(default="support_chat")
    POSTGRES_HOST: str = Field(default="localhost")
    POSTGRES_PORT: int = Field(default=5432)
    DATABASE_URL: str = Field(default="")
    AUTO_CREATE_SCHEMA: bool = Field(default=True)

    @model_validator(mode="before")
    def validate_database_url(cls, data: dict):
        if isinstance(data, dict) and not data.get("DATABASE_URL"):
            engine = data.get("DB_ENGINE", "sqlite+aiosqlite")
            if engine.startswith("sqlite"):
                path = data.get("SQLITE_PATH", "./support_chat.db")
                data["DATABASE_URL"] = f"{engine}:///{path}"
            else:
                password = data.get("POSTGRES_PASSWORD", "postgres")
                if isinstance(password, SecretStr):
                    password = password.get_secret_value()
                data["DATABASE_URL"] = PostgresDsn.build(
                    scheme=engine,
                    username=data.get("POSTGRES_USER", "postgres"),
                    password=password,
                    host=data.get("POSTGRES_HOST", "localhost"),
                    port=int(data.get("POSTGRES_PORT", 5432)),
                    path=data.get("POSTGRES_DB", "support_chat"),
                ).unicode_string()
        return data


class LLMSettings(CustomSettings):
    """Local completion service (Ollama).

    The first request against a cold model can take minutes, hence the long
    default timeout.
    """

    OLLAMA_URL: str = Field(default="http://localhost:11434")
    LLM_MODEL: str = Field(default="mistral")
    LLM_TIMEOUT_SECONDS: float = Field(default=600.0, gt=0)
    LLM_TEMPERATURE: float = Field(default=0.7, ge=0)
    LLM_HEALTH_TIMEOUT_SECONDS: float = Field(default=5.0, gt=0)


class ChatSettings(CustomSettings):
    MAX_MESSAGE_LENGTH: int = Field(default=2000, ge=1)
    HISTORY_LIMIT: int = Field(default=10, ge=1)


class UiSettings(CustomSettings):
    """Configuration for Streamlit UI to reach API endpoints.

    Set via env vars:
    - API_BASE_URL
    - ENDPOINT_CHAT_MESSAGE
    - ENDPOINT_CHAT_HISTORY
    - UI_REQUEST_TIMEOUT_SECONDS
    """

    API_BASE_URL: str = Field(default="http://localhost:8000")
    ENDPOINT_CHAT_MESSAGE: str = Field(default="/api/chat/message")
    ENDPOINT_CHAT_HISTORY: str = Field(default="/api/chat/history")
    UI_REQUEST_TIMEOUT_SECONDS: float = Field(default=660.0)


class Settings(BaseModel):
    APP: AppSettings = Field(default_factory=AppSettings)
    DATABASE: DatabaseSettings = Field(default_factory=DatabaseSettings)
    LLM: LLMSettings = Field(default_factory=LLMSettings)
    CHAT: ChatSettings = Field(default_factory=ChatSettings)
    UI: UiSettings = Field(default_factory=UiSettings)


@lru_cache
def get_settings() -> Settings:
    return Settings()


SETTINGS = get_settings()
