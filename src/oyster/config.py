"""Runtime configuration for Oyster tools."""

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Environment-driven runtime settings."""

    model_config = SettingsConfigDict(env_prefix="OYSTER_", env_file=".env", extra="ignore")

    app_name: str = "oyster-tools"
    log_level: str = "WARNING"
    comment_prefixes: tuple[str, ...] = Field(
        default=("#", "//"),
        description="Line prefixes treated as comments by the parser and the linter.",
    )
    wait_time_scale: float = Field(
        default=1.0,
        ge=0.0,
        description="Multiplier applied to Sys_Wait durations; 0 skips waits entirely.",
    )
    max_steps: int | None = Field(
        default=None,
        ge=1,
        description="Stop a run after this many executed statements (unbounded when unset).",
    )
    history_path: str | None = Field(
        default=None,
        description="JSONL file that records finished script runs.",
    )


settings = Settings()
