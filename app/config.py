"""
Application Configuration

Uses Pydantic Settings for type-safe configuration.
"""

from typing import List, Literal, Optional
from pydantic_settings import BaseSettings
from pydantic import Field, field_validator, ConfigDict


class Settings(BaseSettings):
    """Application settings with validation."""

    # === Core ===
    debug: bool = Field(default=False, description="Enable debug mode")
    log_level: str = Field(default="INFO", description="Logging level")

    # === Database ===
    database_url: str = Field(
        default="sqlite:///./hike_tracker.db",
        description="Database connection URL"
    )

    # === CORS ===
    cors_origins: List[str] = Field(
        default_factory=lambda: ["http://localhost:5173", "http://localhost:3000"],
        description="Allowed CORS origins"
    )

    # === Live session loops (seconds) ===
    hike_sampling_interval_seconds: float = Field(default=5.0, gt=0)
    hike_refresh_interval_seconds: float = Field(default=1.0, gt=0)
    share_broadcast_interval_seconds: float = Field(default=30.0, gt=0)
    share_anomaly_interval_seconds: float = Field(default=60.0, gt=0)

    # === Location sharing ===
    share_expiry_hours: float = Field(
        default=24.0,
        description="How long a location share stays valid after start"
    )
    share_expiry_mode: Literal["lazy", "enforced"] = Field(
        default="lazy",
        description="lazy: expiry checked on read/restore; "
                    "enforced: broadcast loop stops sharing once expired"
    )
    fail_fast_without_permission: bool = Field(
        default=False,
        description="Refuse to start a session when location access is denied"
    )
    alert_repeat_interval_seconds: float = Field(
        default=600.0,
        description="Minimum gap between automatic alerts for one anomaly type"
    )

    # === Alert gateways ===
    map_link_base_url: str = Field(default="https://www.google.com/maps")
    sms_gateway_url: Optional[str] = Field(
        default=None,
        description="HTTP endpoint accepting SMS dispatch requests"
    )
    email_gateway_url: Optional[str] = Field(
        default=None,
        description="HTTP endpoint accepting email dispatch requests"
    )
    alert_gateway_api_key: Optional[str] = Field(default=None)

    @field_validator('database_url')
    @classmethod
    def fix_postgres_url(cls, v: str) -> str:
        """Fix Render/Railway postgres:// URL to postgresql://"""
        if v.startswith("postgres://"):
            return v.replace("postgres://", "postgresql://", 1)
        return v

    @field_validator('cors_origins', mode='before')
    @classmethod
    def parse_cors_origins(cls, v):
        """Parse CORS origins from comma-separated string."""
        if isinstance(v, str):
            return [origin.strip() for origin in v.split(',')]
        return v

    model_config = ConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore"
    )


# Global settings instance
settings = Settings()
