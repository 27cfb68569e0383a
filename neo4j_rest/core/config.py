"""
Configuration module for neo4j-rest.

Uses pydantic-settings for environment-based configuration of the
REST endpoint, credentials and request timeout.
"""

from functools import lru_cache

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """
    Client settings loaded from environment variables.

    The URL is the discovery root of the server (e.g. http://localhost:7474),
    not the data endpoint; the data endpoint is discovered from it.
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # ===========================================
    # NEO4J REST CONFIGURATION
    # ===========================================
    neo4j_url: str = Field(
        default="http://localhost:7474",
        description="Neo4j REST discovery root URL",
    )
    neo4j_user: str | None = Field(default=None, description="Basic auth username")
    neo4j_password: str | None = Field(
        default=None,
        description="Basic auth password",
    )
    neo4j_timeout: float = Field(
        default=30.0,
        description="Per-request timeout in seconds",
    )


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()
