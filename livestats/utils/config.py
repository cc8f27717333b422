# ==============================================================================
# Application Configuration
# ==============================================================================
"""
Configuration management using pydantic-settings.

All configuration is loaded from environment variables, with support for
.env files via python-dotenv.
"""

from functools import lru_cache

from dotenv import load_dotenv
from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

# Load .env file before any settings are instantiated
load_dotenv()


class ServerSettings(BaseSettings):
    """HTTP and WebSocket server settings."""

    model_config = SettingsConfigDict(env_prefix="SERVER_")

    host: str = Field(default="0.0.0.0", description="Bind address")
    port: int = Field(default=3000, description="Listen port")
    cors_origins: list[str] = Field(
        default_factory=lambda: ["*"], description="Allowed CORS origins"
    )

    # Transport-level keep-alive, handled by uvicorn for every WebSocket
    ws_ping_interval: float = Field(
        default=20.0, description="Seconds between WebSocket ping frames"
    )
    ws_ping_timeout: float = Field(
        default=20.0, description="Seconds to wait for a pong before closing"
    )

    @property
    def base_url(self) -> str:
        """URL the CLI uses to reach a locally running server."""
        host = "localhost" if self.host in ("0.0.0.0", "::") else self.host
        return f"http://{host}:{self.port}"


class StoreSettings(BaseSettings):
    """In-memory event store settings."""

    model_config = SettingsConfigDict(env_prefix="STORE_")

    max_events: int = Field(default=1000, description="Event log capacity (FIFO trim)")
    session_timeout_minutes: int = Field(
        default=30, description="Session inactivity timeout in minutes"
    )
    recent_events: int = Field(default=10, description="Recent events included in summaries")


class RealtimeSettings(BaseSettings):
    """Dashboard connection housekeeping settings."""

    model_config = SettingsConfigDict(env_prefix="REALTIME_")

    sweep_interval_seconds: float = Field(
        default=120.0, description="Seconds between inactive connection sweeps"
    )
    connection_timeout_seconds: float = Field(
        default=300.0, description="Idle time after which a dashboard connection is dropped"
    )


class MilestoneSettings(BaseSettings):
    """Thresholds for milestone alerts."""

    model_config = SettingsConfigDict(env_prefix="MILESTONE_")

    visitor_step: int = Field(default=100, description="Alert on every N visitors today")
    concurrent_threshold: int = Field(
        default=50, description="Alert when this many sessions are active"
    )
    spike_events: int = Field(default=5, description="Events needed to call a traffic spike")
    spike_window_seconds: int = Field(default=60, description="Traffic spike window")
    spike_sample: int = Field(default=10, description="Most recent events inspected for spikes")


class Settings(BaseSettings):
    """Main application settings."""

    model_config = SettingsConfigDict(
        extra="ignore",
    )

    # Nested settings
    server: ServerSettings = Field(default_factory=ServerSettings)
    store: StoreSettings = Field(default_factory=StoreSettings)
    realtime: RealtimeSettings = Field(default_factory=RealtimeSettings)
    milestones: MilestoneSettings = Field(default_factory=MilestoneSettings)

    # General settings
    debug: bool = Field(default=False, description="Enable debug mode")
    log_level: str = Field(default="INFO", description="Logging level")


@lru_cache
def get_settings() -> Settings:
    """
    Get cached application settings.

    Settings are loaded once and cached for subsequent calls.
    """
    return Settings()
