"""
Engine configuration.

Settings are read from ``FLINT_*`` environment variables and a ``.env``
file, then passed explicitly to the components that need them.
"""

import logging
import os
from typing import List, Optional

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings

from flint.core.domain.models import PathContext

DEFAULT_PROTECTED_DIRS = ["agents", "bmad", "lib", "app", "docs", "components"]


class FlintSettings(BaseSettings):
    """Engine settings with environment variable support."""

    # Filesystem layout
    project_root: str = Field(default_factory=os.getcwd, description="Project root directory")
    bundles_dir: str = Field(default="bmad/custom/bundles", description="Bundle directory")
    core_dir: str = Field(default="bmad/core", description="Read-only core directory")
    output_dir: str = Field(default="data/conversations", description="Only writable directory")
    protected_dirs: List[str] = Field(
        default_factory=lambda: list(DEFAULT_PROTECTED_DIRS),
        description="Directories agents may never write to",
    )

    # Model settings
    model: str = Field(default="gpt-4o", description="Model passed to LiteLLM")
    temperature: Optional[float] = Field(default=None, description="Sampling temperature")
    max_iterations: int = Field(default=50, ge=1, description="Model calls per execution")
    llm_timeout: int = Field(default=60, description="Request timeout in seconds")
    llm_max_attempts: int = Field(default=3, ge=1, description="Attempts per model call")
    llm_backoff_multiplier: float = Field(default=2.0, description="Retry backoff base")

    # Debug settings
    log_level: str = Field(default="WARNING", description="Logging level")

    model_config = {
        "env_file": ".env",
        "env_prefix": "FLINT_",
        "case_sensitive": False,
        "extra": "ignore",
    }

    @field_validator("log_level")
    @classmethod
    def validate_log_level(cls, value: str) -> str:
        level = value.upper()
        if not isinstance(logging.getLevelName(level), int):
            raise ValueError(f"Unknown log level: {value}")
        return level

    def _absolute(self, path: str) -> str:
        root = os.path.abspath(os.path.expanduser(self.project_root))
        return os.path.normpath(os.path.join(root, os.path.expanduser(path)))

    @property
    def project_path(self) -> str:
        return os.path.abspath(os.path.expanduser(self.project_root))

    @property
    def bundles_path(self) -> str:
        return self._absolute(self.bundles_dir)

    @property
    def core_path(self) -> str:
        return self._absolute(self.core_dir)

    @property
    def output_path(self) -> str:
        return self._absolute(self.output_dir)

    def path_context(self, bundle_root: str) -> PathContext:
        """Build a fresh PathContext for an execution rooted at ``bundle_root``."""
        return PathContext(
            bundle_root=os.path.abspath(bundle_root),
            core_root=self.core_path,
            project_root=self.project_path,
            output_root=self.output_path,
            protected_roots=[self._absolute(d) for d in self.protected_dirs],
        )
