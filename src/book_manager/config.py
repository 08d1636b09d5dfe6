"""Book manager configuration via pydantic-settings (.env + env vars)."""

import sys
from pathlib import Path

from loguru import logger
from pydantic import field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from .models import Owner


class ManagerConfig(BaseSettings):
    """All book manager configuration with layered resolution:
    .env file < environment variables < constructor kwargs.

    Immutable once loaded; the watcher holds one instance for its lifetime.
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        extra="ignore",
        frozen=True,
    )

    # -- Directories --
    watch_path: Path
    out_path: Path
    log_dir: Path | None = None

    # -- Permissions (applied only when both are set) --
    puid: int | None = None
    pgid: int | None = None

    # -- Behavior --
    dry_run: bool = False
    isolate_failures: bool = False
    max_workers: int = 4
    log_level: str = "INFO"

    # -- Search --
    search_timeout: float = 30.0
    user_agent: str = "BookManager/1.0"

    # -- AI (uses PIPELINE_LLM_* env vars to avoid OPENAI_* collisions) --
    pipeline_llm_base_url: str = ""
    pipeline_llm_api_key: str = ""
    pipeline_llm_model: str = "gpt-4o-mini"
    max_tool_rounds: int = 5

    @field_validator("watch_path", "out_path")
    @classmethod
    def _absolute(cls, value: Path) -> Path:
        return value.expanduser().resolve()

    @field_validator("puid", "pgid", mode="before")
    @classmethod
    def _blank_is_unset(cls, value):
        if isinstance(value, str) and not value.strip():
            return None
        return value

    @property
    def owner(self) -> Owner | None:
        """uid/gid pair to apply to relocated files, or None unless both are set."""
        if self.puid is None or self.pgid is None:
            return None
        return Owner(uid=self.puid, gid=self.pgid)

    def ensure_dirs(self) -> None:
        """Create the output directory if it doesn't exist."""
        self.out_path.mkdir(parents=True, exist_ok=True)

    def setup_logging(self) -> None:
        """Configure loguru for the book manager."""
        logger.remove()  # Remove default stderr handler

        log_format = (
            "{time:YYYY-MM-DDTHH:mm:ssZ} | {level:<8} | "
            "{extra[stage]:<10} | {message}"
        )

        def _default_extra(record):
            record["extra"].setdefault("stage", "")
            return True

        logger.add(
            sys.stderr,
            format=log_format,
            level=self.log_level.upper(),
            filter=_default_extra,
        )

        if self.log_dir is None:
            return

        self.log_dir.mkdir(parents=True, exist_ok=True)
        logger.add(
            str(self.log_dir / "book-manager.log"),
            format=log_format,
            level="DEBUG",
            rotation="10 MB",
            retention="30 days",
            filter=_default_extra,
        )
