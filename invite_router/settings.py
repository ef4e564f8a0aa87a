from __future__ import annotations

from pathlib import Path

from pydantic import Field, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


def _default_graph_path() -> str:
    # Repo-local data directory when running from a checkout.
    return str(Path(__file__).resolve().parents[1] / "data" / "trackers.json")


class Settings(BaseSettings):
    """Validated settings (env-driven), keeping config out of code for easy extension."""

    model_config = SettingsConfigDict(
        env_file=(".env",),
        env_file_encoding="utf-8",
        extra="ignore",
    )

    graph_path: str = Field(default_factory=_default_graph_path, alias="TRACKER_GRAPH_PATH")

    out_dir: str = Field(default="out", alias="OUT_DIR")
    log_level: str = Field(default="INFO", alias="LOG_LEVEL")

    # Search bounds exposed over HTTP. The engine itself accepts any hop bound.
    default_max_hops: int = Field(default=1, ge=1, alias="DEFAULT_MAX_HOPS")
    max_hops_cap: int = Field(default=6, ge=1, le=32, alias="MAX_HOPS_CAP")
    suggestion_limit: int = Field(default=8, ge=1, le=100, alias="SUGGESTION_LIMIT")

    query_cache_ttl_s: int = Field(default=600, ge=1, alias="QUERY_CACHE_TTL_S")
    query_cache_max_entries: int = Field(default=512, ge=1, alias="QUERY_CACHE_MAX_ENTRIES")

    @model_validator(mode="after")
    def _clamp_default_hops(self) -> "Settings":
        if self.default_max_hops > self.max_hops_cap:
            self.default_max_hops = self.max_hops_cap
        return self


settings = Settings()
