"""Configuration schema models using Pydantic."""

from enum import Enum
from typing import Dict, List, Optional, Tuple

from pydantic import BaseModel, Field, field_validator, model_validator

from .duration import DurationParseError, parse_duration, validate_duration_range


class ProviderType(str, Enum):
    """Supported job-feed providers."""

    ARBEITNOW = "ARBEITNOW"
    JSEARCH = "JSEARCH"


class LogLevel(str, Enum):
    """Logging levels."""

    DEBUG = "DEBUG"
    INFO = "INFO"
    WARNING = "WARNING"
    ERROR = "ERROR"
    CRITICAL = "CRITICAL"


class LogFormat(str, Enum):
    """Log output formats."""

    JSON = "json"
    KEY_VALUE = "key-value"


# (requests per day, new records per day) applied when a provider sets no caps.
# Covers every feed the desk has contracts with, not only the ones wired up here.
DEFAULT_PROVIDER_CAPS: Dict[str, Tuple[int, int]] = {
    "JSEARCH": (1600, 500),
    "ADZUNA": (80, 400),
    "JOOBLE": (100, 600),
    "CAREERJET": (100, 600),
    "ARBEITNOW": (200, 300),
}
FALLBACK_PROVIDER_CAPS: Tuple[int, int] = (50, 500)

DEFAULT_QUERIES: List[str] = [
    "C2C software engineer",
    "W2 contract developer",
    "Corp to Corp IT",
    "contract Java developer",
    "contract Python developer",
    "contract DevOps engineer",
    "contract cloud architect AWS",
    "contract data engineer",
    "contract cybersecurity analyst",
    "C2C React developer",
    "W2 .NET developer",
    "1099 IT consultant",
]


def default_caps_for(provider: str) -> Tuple[int, int]:
    """Return the default (daily request cap, daily new-record cap) for a provider."""
    return DEFAULT_PROVIDER_CAPS.get(provider.upper(), FALLBACK_PROVIDER_CAPS)


def _interval_seconds(value: str, label: str, min_seconds: int, max_seconds: int) -> int:
    try:
        seconds = parse_duration(value)
        validate_duration_range(seconds, min_seconds, max_seconds, label=label)
    except DurationParseError as e:
        raise ValueError(str(e)) from e
    return seconds


class ProviderConfig(BaseModel):
    """Configuration for a single job-feed provider."""

    type: ProviderType = Field(..., description="Provider type (ARBEITNOW, JSEARCH)")
    enabled: bool = Field(True, description="Whether to sync this provider")
    max_requests_per_day: Optional[int] = Field(
        None, ge=1, description="Daily request cap (defaults per provider type)"
    )
    max_new_records_per_day: Optional[int] = Field(
        None, ge=1, description="Daily cap on newly ingested records"
    )
    queries: List[str] = Field(
        default_factory=list, description="Search queries (defaults to the standard set)"
    )
    max_pages: int = Field(3, ge=1, le=10, description="Result pages to request per query")

    model_config = {"use_enum_values": True}

    @field_validator("type", mode="before")
    @classmethod
    def upper_type(cls, v):
        return v.strip().upper() if isinstance(v, str) else v

    @field_validator("queries")
    @classmethod
    def clean_queries(cls, v: List[str]) -> List[str]:
        """Strip queries and drop blanks while keeping their order."""
        cleaned = []
        for query in v:
            stripped = query.strip()
            if stripped and stripped not in cleaned:
                cleaned.append(stripped)
        return cleaned

    @model_validator(mode="after")
    def fill_default_caps(self):
        """Apply the per-type default caps where none were configured."""
        default_requests, default_records = default_caps_for(self.name)
        if self.max_requests_per_day is None:
            self.max_requests_per_day = default_requests
        if self.max_new_records_per_day is None:
            self.max_new_records_per_day = default_records
        return self

    @property
    def name(self) -> str:
        """Provider name used as the signal source and ledger key."""
        return str(self.type)

    def get_queries(self) -> List[str]:
        return list(self.queries) if self.queries else list(DEFAULT_QUERIES)


class LifecycleConfig(BaseModel):
    """Record lifecycle settings."""

    stale_after_days: int = Field(
        14, ge=1, le=365, description="Days without a sighting before ACTIVE becomes STALE"
    )


class ScoringConfig(BaseModel):
    """Tunable thresholds for the realness scorer."""

    freshness_tiers_hours: List[int] = Field(
        default_factory=lambda: [6, 24, 72],
        description="Upper bounds (hours) of the three freshness bonus tiers",
    )
    old_posting_days: int = Field(
        7, ge=1, le=90, description="Posting age after which the old-posting penalty applies"
    )

    @field_validator("freshness_tiers_hours")
    @classmethod
    def validate_tiers(cls, v: List[int]) -> List[int]:
        """Require exactly three positive, strictly increasing tiers."""
        if len(v) != 3:
            raise ValueError("freshness_tiers_hours must contain exactly three values")
        if any(hours <= 0 for hours in v):
            raise ValueError("freshness_tiers_hours values must be positive")
        if not (v[0] < v[1] < v[2]):
            raise ValueError("freshness_tiers_hours must be strictly increasing")
        return v


class QaConfig(BaseModel):
    """QA truth sampler settings."""

    enabled: bool = Field(True, description="Whether the scheduler runs the sampler")
    sample_size: int = Field(20, ge=1, le=500, description="Records drawn per QA run")


class UrlHealthConfig(BaseModel):
    """Apply-URL liveness checking settings."""

    enabled: bool = Field(True, description="Whether the scheduler runs URL checks")
    batch_size: int = Field(50, ge=1, le=1000, description="URLs probed per run")
    recheck_after_hours: int = Field(
        12, ge=1, le=168, description="Hours before a verified URL is probed again"
    )


class VendorConfig(BaseModel):
    """Vendor directory cache settings."""

    cache_ttl_seconds: int = Field(
        300, ge=1, le=86400, description="Seconds before the directory is reloaded"
    )


class SpendConfig(BaseModel):
    """Spend guard settings shared by all providers."""

    alert_threshold: float = Field(
        0.8, gt=0.0, le=1.0, description="Cap usage ratio that fires the daily alert"
    )


class LoggingConfig(BaseModel):
    """Logging configuration."""

    level: LogLevel = Field(LogLevel.INFO, description="Log level")
    format: LogFormat = Field(LogFormat.KEY_VALUE, description="json or key-value")

    model_config = {"use_enum_values": True}


class AdvancedConfig(BaseModel):
    """Advanced runtime settings."""

    http_request_timeout: int = Field(
        10, ge=1, le=300, description="Timeout for provider and probe HTTP calls (seconds)"
    )
    user_agent: str = Field(
        "MarketSignalPipeline/1.0", min_length=1, description="User-Agent for HTTP requests"
    )
    max_results_per_provider: int = Field(
        1000, ge=0, description="Maximum raw records kept per provider fetch (0 = unlimited)"
    )

    @field_validator("user_agent")
    @classmethod
    def strip_user_agent(cls, v: str) -> str:
        stripped = v.strip()
        if not stripped:
            raise ValueError("user_agent cannot be empty")
        return stripped


class AppConfig(BaseModel):
    """Root configuration object for the market signal pipeline."""

    providers: List[ProviderConfig] = Field(
        ..., min_length=1, description="Providers to sync, in processing order"
    )
    sync_interval: str = Field("1h", description="Interval between market syncs")
    url_check_interval: str = Field("2h", description="Interval between URL health checks")
    qa_interval: str = Field("24h", description="Interval between QA sampler runs")
    lifecycle: LifecycleConfig = Field(default_factory=LifecycleConfig)
    scoring: ScoringConfig = Field(default_factory=ScoringConfig)
    qa: QaConfig = Field(default_factory=QaConfig)
    url_health: UrlHealthConfig = Field(default_factory=UrlHealthConfig)
    vendors: VendorConfig = Field(default_factory=VendorConfig)
    spend: SpendConfig = Field(default_factory=SpendConfig)
    logging: LoggingConfig = Field(default_factory=LoggingConfig)
    advanced: AdvancedConfig = Field(default_factory=AdvancedConfig)

    # Computed fields
    sync_interval_seconds: Optional[int] = None
    url_check_interval_seconds: Optional[int] = None
    qa_interval_seconds: Optional[int] = None

    @model_validator(mode="after")
    def validate_providers_and_intervals(self):
        """Reject duplicate providers and compute interval seconds."""
        if not any(provider.enabled for provider in self.providers):
            raise ValueError(
                "At least one provider must be enabled. All providers have enabled=false."
            )

        seen = set()
        for provider in self.providers:
            if provider.name in seen:
                raise ValueError(f"Duplicate provider: {provider.name} appears multiple times")
            seen.add(provider.name)

        self.sync_interval_seconds = _interval_seconds(
            self.sync_interval, "sync_interval", 300, 86400
        )
        self.url_check_interval_seconds = _interval_seconds(
            self.url_check_interval, "url_check_interval", 300, 86400
        )
        self.qa_interval_seconds = _interval_seconds(
            self.qa_interval, "qa_interval", 3600, 7 * 86400
        )
        return self

    def get_enabled_providers(self) -> List[ProviderConfig]:
        return [provider for provider in self.providers if provider.enabled]

    def get_provider(self, name: str) -> Optional[ProviderConfig]:
        for provider in self.providers:
            if provider.name == name.upper():
                return provider
        return None
