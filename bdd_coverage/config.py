from __future__ import annotations

from typing import List

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class AppConfig(BaseSettings):
    """Application configuration loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_prefix="BDD_COVERAGE_",
        extra="ignore",
    )

    features_dir: str = Field(default="tests/features", description="Directory scanned for .feature files")
    steps_dir: str = Field(default="tests/steps", description="Directory scanned for step definition files")
    discovery_concurrency: int = Field(default=4, description="Max concurrent file reads during discovery")
    strict_roots: bool = Field(default=False, description="Abort when a scan root does not exist")
    log_level: str = Field(default="WARNING", description="Root log level used by the CLI")

    # Discovery
    feature_globs: List[str] = Field(default_factory=lambda: ["*.feature"])
    step_globs: List[str] = Field(
        default_factory=lambda: [
            "*.steps.js",
            "*.steps.ts",
            "*.step.js",
            "*_steps.py",
            "steps_*.py",
        ]
    )
    ignore_globs: List[str] = Field(
        default_factory=lambda: [
            "**/.git/**",
            "**/.venv/**",
            "**/node_modules/**",
            "**/dist/**",
            "**/build/**",
        ]
    )

    # Simulation
    simulation_sample_size: int = Field(default=2, description="Scenarios simulated per feature")
    simulate_timing: bool = Field(default=False, description="Record real matching time instead of 0")

    # Recommendations
    coverage_threshold: int = Field(default=80, description="Coverage below this triggers a recommendation")
    min_features: int = Field(default=2, description="Fewer features than this triggers a recommendation")
    dedup_threshold: int = Field(default=100, description="More step definitions than this suggests deduplication")
