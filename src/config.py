"""Application settings loaded from environment variables."""

import os
from pathlib import Path

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


def _env_file() -> str | None:
    if os.getenv("PYTEST_CURRENT_TEST"):
        return None
    return ".env"


class Settings(BaseSettings):
    """Engage scheduler configuration. All values come from environment variables."""

    # Database
    database_path: Path = Field(default=Path("data/engage.db"))

    # Turso (hosted libSQL), overrides database_path when set
    turso_database_url: str = Field(default="")
    turso_auth_token: str = Field(default="")

    # Scheduler
    scheduler_timezone: str = Field(default="UTC")

    # Message kinds re-registered at startup
    engage_auto_kinds: str = Field(default="auto,visitorAuto")

    # Logging
    log_level: str = Field(default="INFO")

    model_config = SettingsConfigDict(env_file=_env_file(), env_file_encoding="utf-8")

    @classmethod
    def settings_customise_sources(
        cls,
        settings_cls: type[BaseSettings],
        init_settings,
        env_settings,
        dotenv_settings,
        file_secret_settings,
    ):
        if os.getenv("PYTEST_CURRENT_TEST"):
            return (init_settings,)
        return (init_settings, env_settings, dotenv_settings, file_secret_settings)

    def get_engage_auto_kinds(self) -> list[str]:
        """Parse ENGAGE_AUTO_KINDS into a list of message kinds."""
        if not self.engage_auto_kinds.strip():
            return []
        return [kind.strip() for kind in self.engage_auto_kinds.split(",") if kind.strip()]


settings = Settings()
