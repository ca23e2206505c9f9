"""
Application Configuration

Uses Pydantic Settings for type-safe configuration.
"""

from pathlib import Path
from typing import Optional
from pydantic_settings import BaseSettings
from pydantic import Field, field_validator, ConfigDict

# Package root: finishline/
PACKAGE_ROOT = Path(__file__).parent
# Bundled race table
DEFAULT_RACES_FILE = PACKAGE_ROOT / "features" / "races" / "races.yaml"


class Settings(BaseSettings):
    """Application settings with validation."""

    # === Core ===
    log_level: str = Field(default="INFO", description="Logging level")

    # === Race table ===
    races_file: Path = Field(
        default=DEFAULT_RACES_FILE,
        description="YAML file with race configurations"
    )

    # === HTTP platforms ===
    http_timeout_seconds: float = Field(default=20.0, gt=0)
    user_agent: str = Field(
        default=(
            "Mozilla/5.0 (Macintosh; Intel Mac OS X 10_15_7) AppleWebKit/537.36 "
            "(KHTML, like Gecko) Chrome/120.0.0.0 Safari/537.36"
        ),
        description="User-Agent sent to results platforms"
    )

    # === Headless browser ===
    browser_navigation_timeout_seconds: float = Field(default=60.0, gt=0)
    browser_max_sessions: int = Field(
        default=2,
        ge=1,
        description="Max concurrently open browser sessions"
    )
    browser_headless: bool = Field(default=True)
    browser_executable_path: Optional[str] = Field(
        default=None,
        description="Custom Chromium binary (serverless deployments)"
    )

    # === Dispatch ===
    fetch_deadline_seconds: float = Field(
        default=120.0,
        gt=0,
        description="Upper bound for one adapter fetch"
    )

    # === Caller-level retry / batching ===
    retry_attempts: int = Field(default=3, ge=1)
    retry_base_delay_seconds: float = Field(default=1.0, ge=0)
    retry_max_delay_seconds: float = Field(default=30.0, ge=0)
    batch_concurrency: int = Field(default=4, ge=1)

    @field_validator('log_level')
    @classmethod
    def normalize_log_level(cls, v: str) -> str:
        """Accept 'debug' as well as 'DEBUG'."""
        return v.upper()

    model_config = ConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore"
    )


# Global settings instance
settings = Settings()
