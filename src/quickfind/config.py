"""Centralized configuration for quickfind using Pydantic Settings."""

from pathlib import Path

from pydantic import Field, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from quickfind.roots import DEFAULT_SKIP_DIRS, default_db_path, default_index_roots


class Settings(BaseSettings):
    """Strictly typed configuration loaded from ``QUICKFIND_*`` environment variables."""

    model_config = SettingsConfigDict(
        env_prefix="QUICKFIND_",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        validate_default=True,
        extra="ignore",
    )

    # Storage
    db_path: Path = Field(default_factory=default_db_path, description="SQLite index database file")

    # Indexing
    index_roots: str = Field(
        default="",
        description="Comma-separated root directories to index (empty = platform defaults)",
    )
    skip_dirs: str = Field(
        default=",".join(DEFAULT_SKIP_DIRS),
        description="Comma-separated directory names pruned during traversal (case-insensitive)",
    )
    max_depth: int = Field(default=6, ge=1, description="Maximum traversal depth below each root")
    batch_size: int = Field(default=500, ge=1, description="Entries per batched upsert transaction")
    follow_symlinks: bool = Field(default=True, description="Follow directory symlinks during traversal")

    # Search
    max_results: int = Field(default=15, ge=1, description="Maximum results returned per query")
    candidate_multiplier: int = Field(
        default=3, ge=1, description="Prefilter over-fetch factor relative to max_results"
    )

    # Background indexing
    background_indexing_enabled: bool = Field(default=True, description="Run periodic incremental re-indexing")
    initial_index_delay_seconds: float = Field(
        default=120.0, ge=0, description="Delay before the first background incremental index"
    )
    reindex_interval_seconds: float = Field(
        default=300.0, ge=1, description="Interval between background incremental indexes"
    )

    # Logging
    log_level: str = Field(default="info", description="Logging level")
    log_json: bool = Field(default=True, description="Emit structured JSON logs")

    @model_validator(mode="after")
    def _check_skip_dirs(self) -> "Settings":
        if any(name.strip() in {".", ".."} for name in self.skip_dirs.split(",")):
            raise ValueError("QUICKFIND_SKIP_DIRS must contain directory names, not '.' or '..'")
        return self

    def get_index_roots(self) -> list[Path]:
        """Configured roots, or the platform defaults when none are configured."""
        if not self.index_roots:
            return default_index_roots()
        return [Path(root.strip()).expanduser() for root in self.index_roots.split(",") if root.strip()]

    def get_skip_dirs(self) -> list[str]:
        """Get the lower-cased skip list."""
        if not self.skip_dirs:
            return []
        return [name.strip().lower() for name in self.skip_dirs.split(",") if name.strip()]
