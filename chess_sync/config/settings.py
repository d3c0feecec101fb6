# chess_sync/config/settings.py
"""
Configuration settings for the Chess Sync application, powered by Pydantic.

This module centralizes all tunable parameters, default values, and configuration
schemas. Using Pydantic allows for type-safe, self-documenting configuration
that can be loaded from environment variables, providing a clear separation of
configuration from code.
"""
from pydantic import BaseModel, Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

# --- Nested Models for Configuration Schemas ---

class ArchiveSettings(BaseModel):
    """Connection settings for the public game archive API."""
    base_url: str = Field("https://api.chess.com/pub", description="Root URL of the archive API.")
    user_agent: str = Field("chess-sync/0.1.0", description="User-Agent header sent with every request.")
    timeout_s: float = Field(30.0, description="Per-request timeout in seconds.")
    max_attempts: int = Field(3, ge=1, description="Attempts per request before a transient error is surfaced.")
    initial_backoff_s: float = Field(0.5, ge=0, description="Delay before the first retry; doubles on each further retry.")

    @field_validator("base_url")
    @classmethod
    def strip_trailing_slash(cls, value: str) -> str:
        return value.rstrip("/")


class SyncConfig(BaseModel):
    """
    Encapsulates all configuration for a single sync run.

    This object is typically constructed at startup from command-line
    arguments and the main settings.
    """
    username: str
    db_path: str
    concurrency: int = Field(4, ge=1, description="Maximum number of games processed at once.")
    archive_settings: ArchiveSettings = Field(default_factory=ArchiveSettings)

# --- Main Application Settings Class ---

class Settings(BaseSettings):
    """
    Main configuration class for the application.

    It loads settings from environment variables with the prefix 'CHESS_SYNC_'.
    Nested models can be configured using a double underscore delimiter, e.g.,
    `CHESS_SYNC_ARCHIVE_SETTINGS__TIMEOUT_S=60`.
    """
    model_config = SettingsConfigDict(env_prefix='CHESS_SYNC_', env_nested_delimiter='__')

    archive_settings: ArchiveSettings = Field(default_factory=ArchiveSettings)
    default_db_path: str = "data/chess_sync.db"
    default_concurrency: int = 4
    default_log_level: str = "INFO"

    def build_sync_config(self, username: str, db_path: str | None = None, concurrency: int | None = None) -> SyncConfig:
        """Assembles a `SyncConfig` for one run, falling back to the defaults above."""
        return SyncConfig(
            username=username,
            db_path=db_path or self.default_db_path,
            concurrency=concurrency or self.default_concurrency,
            archive_settings=self.archive_settings,
        )

# A singleton instance of the settings, accessible throughout the application.
settings = Settings()
