from functools import lru_cache
from typing import Optional

from pydantic import AliasChoices, Field
from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    # Application
    app_env: str = "dev"
    log_level: str = "INFO"
    public_base_url: Optional[str] = None

    # Storage: a database URL selects the SQL store, otherwise links live in memory
    database_url: Optional[str] = Field(
        default=None,
        validation_alias=AliasChoices("database_url", "DATABASE_URL", "POSTGRES_URL"),
    )

    # Redis (optional create quota)
    redis_url: Optional[str] = None
    create_limit: int = 60
    create_window: int = 60

    # GitHub OAuth
    github_client_id: Optional[str] = None
    github_client_secret: Optional[str] = None

    # Session tokens
    session_secret: str = "dev-insecure-session-secret"
    session_algorithm: str = "HS256"
    session_ttl_minutes: int = 60 * 24
    session_cookie_name: str = "slinker_session"

    # Links
    code_length: int = 8
    max_code_attempts: int = 10
    list_limit: int = 50
    referrer_tag: str = "slinker"

    class Config:
        env_file = ".env"

    @property
    def github_enabled(self) -> bool:
        return bool(self.github_client_id and self.github_client_secret)


@lru_cache
def get_settings() -> Settings:
    return Settings()
