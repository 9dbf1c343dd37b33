import os
from datetime import timedelta
from typing import Literal
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

import toml
from pydantic import BaseModel, Field, field_validator

# One canonical lookback per operation; override through DefaultsSettings.
DEFAULT_LOG_LOOKBACK = timedelta(minutes=15)
DEFAULT_SPAN_LOOKBACK = timedelta(minutes=15)
DEFAULT_AGGREGATION_LOOKBACK = timedelta(minutes=15)


def _minutes(delta: timedelta) -> int:
    return int(delta.total_seconds() // 60)


class DatadogSettings(BaseModel):
    """Credentials and site for the Datadog API client."""

    api_key: str = Field(default="", description="Datadog API key (DD_API_KEY)")
    app_key: str = Field(default="", description="Datadog application key (DD_APP_KEY)")
    site: str = Field(default="datadoghq.com", description="Datadog site, e.g. datadoghq.eu or us5.datadoghq.com")

    model_config = {"frozen": True}

    @property
    def configured(self) -> bool:
        return bool(self.api_key and self.app_key)

    @property
    def app_url(self) -> str:
        """Base URL of the Datadog web UI for this site."""
        # Regional sites like us5.datadoghq.com already are the UI host.
        if self.site.count(".") >= 2:
            return f"https://{self.site}"
        return f"https://app.{self.site}"


class ExecutorSettings(BaseModel):
    """Timeout and retry policy around the single backend round trip."""

    timeout_seconds: float = Field(default=30.0, gt=0, description="Timeout for one backend request")
    max_retries: int = Field(default=3, ge=1, description="Total attempts for transient failures")
    backoff_base_seconds: float = Field(default=0.5, ge=0, description="First retry delay, doubled per attempt")
    backoff_max_seconds: float = Field(default=8.0, ge=0, description="Upper bound for a single retry delay")

    model_config = {"frozen": True}


class DefaultsSettings(BaseModel):
    """Defaults applied by the parameter normalizer."""

    log_lookback_minutes: int = Field(
        default=_minutes(DEFAULT_LOG_LOOKBACK), gt=0, description="Default window for log search"
    )
    span_lookback_minutes: int = Field(
        default=_minutes(DEFAULT_SPAN_LOOKBACK), gt=0, description="Default window for span search"
    )
    aggregation_lookback_minutes: int = Field(
        default=_minutes(DEFAULT_AGGREGATION_LOOKBACK), gt=0, description="Default window for span aggregation"
    )
    page_limit: int = Field(default=25, ge=1, le=1000, description="Default page size")
    interval: str = Field(default="5m", min_length=1, description="Default timeseries interval")
    strict_time_bounds: bool = Field(
        default=False, description="Reject malformed time bounds instead of falling back to defaults"
    )

    model_config = {"frozen": True}

    @property
    def log_lookback(self) -> timedelta:
        return timedelta(minutes=self.log_lookback_minutes)

    @property
    def span_lookback(self) -> timedelta:
        return timedelta(minutes=self.span_lookback_minutes)

    @property
    def aggregation_lookback(self) -> timedelta:
        return timedelta(minutes=self.aggregation_lookback_minutes)


class ReportSettings(BaseModel):
    """Controls for report rendering."""

    message_max_length: int = Field(default=500, ge=1, description="Max characters of a log message in the report")
    include_raw_data: bool = Field(default=True, description="Append the transformed entities as JSON")
    include_link: bool = Field(default=True, description="Append a deep link to the Datadog UI")
    timezone: str = Field(default="UTC", description="IANA timezone used to display times")
    language: Literal["en", "ja"] = Field(default="en", description="Language of display placeholders")

    model_config = {"frozen": True}

    @field_validator("timezone")
    @classmethod
    def _known_timezone(cls, value: str) -> str:
        try:
            ZoneInfo(value)
        except (ZoneInfoNotFoundError, ValueError):
            raise ValueError(f"unknown timezone: {value!r}") from None
        return value


class ToolSettings(BaseModel):
    """Main configuration for the Datadog tools server."""

    server_name: str = Field(default="datadog_tools", description="MCP server name")

    datadog: DatadogSettings = Field(default_factory=DatadogSettings)
    executor: ExecutorSettings = Field(default_factory=ExecutorSettings)
    defaults: DefaultsSettings = Field(default_factory=DefaultsSettings)
    report: ReportSettings = Field(default_factory=ReportSettings)

    model_config = {"frozen": True}

    @classmethod
    def from_toml(cls, path: str) -> "ToolSettings":
        """Load configuration from a TOML file."""
        with open(path, "r") as f:
            config_data = toml.load(f)
        return cls(**config_data)

    def with_env(self, environ: dict[str, str] | None = None) -> "ToolSettings":
        """Return a copy with Datadog credentials taken from the environment.

        Environment variables (DD_API_KEY, DD_APP_KEY, DD_SITE) win over values
        from the config file.
        """
        env = os.environ if environ is None else environ
        datadog = self.datadog.model_copy(
            update={
                key: env[var]
                for key, var in (("api_key", "DD_API_KEY"), ("app_key", "DD_APP_KEY"), ("site", "DD_SITE"))
                if env.get(var)
            }
        )
        return self.model_copy(update={"datadog": datadog})


def load_settings(path: str | None = None, environ: dict[str, str] | None = None) -> ToolSettings:
    """Build settings from an optional TOML file plus the environment."""
    settings = ToolSettings.from_toml(path) if path else ToolSettings()
    return settings.with_env(environ)
