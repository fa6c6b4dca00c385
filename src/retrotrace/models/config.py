"""Configuration models."""

from pathlib import Path

from pydantic import BaseModel, Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class ScanConfig(BaseModel):
    """Options for scanning the commit log."""

    max_commits: int = Field(1000, gt=0, description="Maximum number of commits to read")
    skip_merges: bool = Field(True, description="Exclude merge commits from the log")
    min_lines_changed: int = Field(
        5,
        ge=0,
        description="Carried for collaborators; significance is decided by the classifier",
    )


class ReconstructionConfig(BaseSettings):
    """Settings for a retroactive reconstruction run.

    Settings can be loaded from environment variables or .env file.
    All settings are prefixed with RETROTRACE_ (e.g., RETROTRACE_MAX_COMMITS).
    """

    model_config = SettingsConfigDict(
        env_prefix="RETROTRACE_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    max_commits: int = Field(default=1000, gt=0, description="Maximum number of commits to scan")
    min_lines_changed: int = Field(default=5, ge=0, description="Minimum lines changed (informational)")
    confidence_baseline: float = Field(
        default=0.7,
        description="Baseline confidence (informational, not used in scoring)",
    )
    generate_adrs: bool = Field(default=True, description="Consumed by the ADR generator downstream")
    skip_merges: bool = Field(default=True, description="Exclude merge commits")

    # Scoring
    max_age_months: float = Field(default=24, gt=0, description="Commits older than this are skipped")
    decay_rate: float = Field(default=0.02, ge=0, description="Exponential decay rate per month")

    # Subprocess pool
    exec_pool_size: int = Field(default=2, gt=0, description="Concurrent git subprocesses")
    exec_timeout: float = Field(default=2.0, gt=0, description="Per-commit stat lookup timeout (seconds)")
    log_timeout: float = Field(default=30.0, gt=0, description="Timeout for the git log listing (seconds)")

    # Storage, relative paths resolve against the workspace root
    reasoning_dir: Path = Field(default=Path(".reasoning"), description="Root of the trace and pattern stores")

    # Logging
    log_level: str = "INFO"

    def scan_config(self) -> ScanConfig:
        """Build the scanner options from these settings."""
        return ScanConfig(
            max_commits=self.max_commits,
            skip_merges=self.skip_merges,
            min_lines_changed=self.min_lines_changed,
        )

    def resolve_reasoning_dir(self, workspace_root: Path) -> Path:
        """Resolve the store directory against a workspace root."""
        if self.reasoning_dir.is_absolute():
            return self.reasoning_dir
        return Path(workspace_root) / self.reasoning_dir
