"""Configuration management using pydantic-settings."""

import threading

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

# Valid log levels
VALID_LOG_LEVELS = {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}


class InsightSettings(BaseSettings):
    """Insight pipeline tunables."""

    model_config = SettingsConfigDict(env_prefix="INSIGHTS_", frozen=True)

    include_all: bool = Field(
        default=False, description="Discover every known metric type even if sparse"
    )
    dynamic_discovery: bool = Field(
        default=False, description="Auto-register metric types not previously seen"
    )
    max_per_day: int = Field(default=12, description="Global cap on selected insights")
    topk_per_family: int = Field(default=3, description="Per-family cap on selected insights")
    debug: bool = Field(default=False, description="Verbose per-stage logging")
    baseline_days: int = Field(default=14, description="History window for rule baselines")
    max_concurrent_metrics: int = Field(
        default=4, description="Metrics evaluated concurrently within one run"
    )
    default_timezone: str = Field(
        default="Australia/Perth", description="Timezone used when the caller gives none"
    )
    family_weights: dict[str, float] = Field(
        default_factory=dict, description="Per-family weight overrides"
    )

    @field_validator("max_per_day", "topk_per_family")
    @classmethod
    def validate_caps(cls, v: int) -> int:
        """Validate selection caps are positive."""
        if v < 1:
            raise ValueError(f"Selection cap must be at least 1, got {v}")
        return v

    @field_validator("baseline_days")
    @classmethod
    def validate_baseline_days(cls, v: int) -> int:
        """Validate the baseline window is reasonable."""
        if not 1 <= v <= 90:
            raise ValueError(f"Baseline days must be between 1 and 90, got {v}")
        return v

    @field_validator("max_concurrent_metrics")
    @classmethod
    def validate_concurrency(cls, v: int) -> int:
        """Validate the worker bound."""
        if not 1 <= v <= 64:
            raise ValueError(f"Max concurrent metrics must be between 1 and 64, got {v}")
        return v


class InfluxDBSettings(BaseSettings):
    """InfluxDB connection settings."""

    model_config = SettingsConfigDict(env_prefix="INFLUXDB_", frozen=True)

    url: str = Field(default="http://influxdb:8086", description="InfluxDB URL")
    token: str = Field(description="InfluxDB API token")
    org: str = Field(default="health", description="InfluxDB organization")
    bucket: str = Field(default="apple_health", description="InfluxDB bucket")
    user_tag: str | None = Field(
        default=None, description="Tag holding the user id (None for single-user buckets)"
    )
    query_timeout_seconds: float = Field(default=30.0, description="Per-query timeout")

    @field_validator("token")
    @classmethod
    def validate_token(cls, v: str) -> str:
        """Validate token is not empty."""
        if not v or not v.strip():
            raise ValueError("InfluxDB token cannot be empty")
        return v

    @field_validator("query_timeout_seconds")
    @classmethod
    def validate_query_timeout(cls, v: float) -> float:
        """Validate query timeout is positive."""
        if v <= 0:
            raise ValueError(f"Query timeout must be positive, got {v}")
        return v


class StoreSettings(BaseSettings):
    """Insight store settings."""

    model_config = SettingsConfigDict(env_prefix="STORE_", frozen=True)

    path: str = Field(default="/data/insights.db", description="SQLite database path")
    busy_timeout_ms: int = Field(default=5000, description="SQLite busy timeout")


class TracingSettings(BaseSettings):
    """OpenTelemetry tracing settings."""

    model_config = SettingsConfigDict(env_prefix="TRACING_", frozen=True)

    enabled: bool = Field(default=False, description="Enable OTLP trace export")
    service_name: str = Field(default="health-insights", description="Service name")


class AppSettings(BaseSettings):
    """Application settings."""

    model_config = SettingsConfigDict(env_prefix="APP_", frozen=True)

    log_level: str = Field(default="INFO", description="Logging level")
    log_format: str = Field(default="json", description="Log format: json or console")

    @field_validator("log_level")
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        """Validate log level is valid."""
        normalized = v.upper()
        if normalized not in VALID_LOG_LEVELS:
            raise ValueError(
                f"Invalid log level '{v}'. Must be one of: {', '.join(VALID_LOG_LEVELS)}"
            )
        return normalized

    @field_validator("log_format")
    @classmethod
    def validate_log_format(cls, v: str) -> str:
        """Validate log format is valid."""
        normalized = v.lower()
        if normalized not in ("json", "console"):
            raise ValueError(f"Invalid log format '{v}'. Must be 'json' or 'console'")
        return normalized


class Settings(BaseSettings):
    """Combined application settings."""

    model_config = SettingsConfigDict(frozen=True)

    insights: InsightSettings = Field(default_factory=InsightSettings)
    influxdb: InfluxDBSettings = Field(default_factory=InfluxDBSettings)
    store: StoreSettings = Field(default_factory=StoreSettings)
    tracing: TracingSettings = Field(default_factory=TracingSettings)
    app: AppSettings = Field(default_factory=AppSettings)

    @classmethod
    def load(cls) -> "Settings":
        """Load settings from environment variables."""
        return cls(
            insights=InsightSettings(),
            influxdb=InfluxDBSettings(),
            store=StoreSettings(),
            tracing=TracingSettings(),
            app=AppSettings(),
        )


# Global settings instance with thread-safe initialization
_settings: Settings | None = None
_settings_lock = threading.Lock()


def get_settings() -> Settings:
    """Get or create the global settings instance.

    Thread-safe singleton pattern using double-checked locking. Only the CLI
    reads this; the engine takes its settings through the constructor.
    """
    global _settings
    if _settings is None:
        with _settings_lock:
            # Double-check after acquiring lock
            if _settings is None:
                _settings = Settings.load()
    return _settings
