from functools import lru_cache

from dotenv import load_dotenv
from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

load_dotenv()


def _split_csv(raw: str) -> list[str]:
    return [item.strip() for item in raw.split(",") if item.strip()]


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_file=".env", env_file_encoding="utf-8", extra="ignore"
    )

    # Remote assistant service
    openai_api_key: str = Field(default="", alias="OPENAI_API_KEY")
    openai_assistant_id: str = Field(default="", alias="OPENAI_ASSISTANT_ID")
    openai_organization: str = Field(default="", alias="OPENAI_ORGANIZATION")
    openai_base_url: str = Field(
        default="https://api.openai.com/v1", alias="OPENAI_BASE_URL"
    )

    # Search provider
    tavily_api_key: str = Field(default="", alias="TAVILY_API_KEY")
    tavily_base_url: str = Field(
        default="https://api.tavily.com", alias="TAVILY_BASE_URL"
    )
    search_default_domains: str = Field(default="", alias="SEARCH_DEFAULT_DOMAINS")

    # Run polling. 200 x 2s is roughly 400 seconds of wall time.
    poll_interval_seconds: float = Field(default=2.0, alias="POLL_INTERVAL_SECONDS")
    max_poll_iterations: int = Field(default=200, alias="MAX_POLL_ITERATIONS")

    default_api_timeout_seconds: int = Field(
        default=20, alias="DEFAULT_API_TIMEOUT_SECONDS"
    )

    # Comma-separated sign-in allow-list; empty disables the check.
    allowed_emails: str = Field(default="", alias="ALLOWED_EMAILS")

    log_level: str = Field(default="INFO", alias="LOG_LEVEL")

    # Session id persistence for the CLI
    session_store_dir: str = Field(
        default=".assistant_sessions",
        alias="SESSION_STORE_DIR",
    )
    session_store_backend: str = Field(
        default="file",
        alias="SESSION_STORE_BACKEND",
    )

    # Database configuration
    database_url: str = Field(
        default="sqlite:///./assistant_relay.db",
        alias="DATABASE_URL",
    )
    database_echo: bool = Field(
        default=False,
        alias="DATABASE_ECHO",
    )
    database_auto_migrate: bool = Field(
        default=True,
        alias="DATABASE_AUTO_MIGRATE",
    )

    @property
    def search_domains(self) -> list[str]:
        return _split_csv(self.search_default_domains)

    @property
    def allowed_email_list(self) -> list[str]:
        return _split_csv(self.allowed_emails)

    @property
    def has_assistant_credentials(self) -> bool:
        return bool(self.openai_api_key and self.openai_assistant_id)


@lru_cache
def get_settings() -> Settings:
    return Settings()
