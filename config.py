"""
WikiSubmission SDK - Configuration

Client settings, resolved once per client.
Uses environment variables with sensible defaults.
"""
import os
from dataclasses import asdict, dataclass, field, fields, replace
from typing import Any, Dict, Mapping

from dotenv import load_dotenv

from core.errors import ConfigError

# Load environment variables from .env file
load_dotenv()

DEFAULT_BASE_URL = "https://api.wikisubmission.org/quran"


def _env_bool(name: str, default: str) -> bool:
    return os.getenv(name, default).lower() == "true"


@dataclass
class APIConfig:
    """
    Connection and runtime settings for one client.

    Every field has a default; environment variables override the defaults,
    explicit arguments override both.
    """
    base_url: str = field(default_factory=lambda: os.getenv("WIKISUBMISSION_BASE_URL", DEFAULT_BASE_URL))
    timeout_ms: int = field(default_factory=lambda: int(os.getenv("WIKISUBMISSION_TIMEOUT_MS", "10000")))
    retry_count: int = field(default_factory=lambda: int(os.getenv("WIKISUBMISSION_RETRY_COUNT", "3")))
    retry_delay_ms: int = field(default_factory=lambda: int(os.getenv("WIKISUBMISSION_RETRY_DELAY_MS", "1000")))

    # Caching
    enable_caching: bool = field(default_factory=lambda: _env_bool("WIKISUBMISSION_ENABLE_CACHING", "false"))
    cache_max_age_ms: int = field(default_factory=lambda: int(os.getenv("WIKISUBMISSION_CACHE_MAX_AGE_MS", "300000")))
    enable_cache_sweep: bool = field(default_factory=lambda: _env_bool("WIKISUBMISSION_CACHE_SWEEP", "true"))
    cache_sweep_interval_ms: int = field(default_factory=lambda: int(os.getenv("WIKISUBMISSION_CACHE_SWEEP_INTERVAL_MS", "60000")))

    # Transport
    enable_request_logging: bool = field(default_factory=lambda: _env_bool("WIKISUBMISSION_REQUEST_LOGGING", "false"))
    headers: Dict[str, str] = field(default_factory=dict)

    def __post_init__(self) -> None:
        if not self.base_url:
            raise ConfigError("base_url must not be empty", config_key="base_url", actual_value=self.base_url)
        if self.timeout_ms <= 0:
            raise ConfigError("timeout_ms must be > 0", config_key="timeout_ms", actual_value=self.timeout_ms)
        if self.retry_count < 0:
            raise ConfigError("retry_count must be >= 0", config_key="retry_count", actual_value=self.retry_count)
        if self.retry_delay_ms < 0:
            raise ConfigError("retry_delay_ms must be >= 0", config_key="retry_delay_ms", actual_value=self.retry_delay_ms)
        if self.cache_max_age_ms <= 0:
            raise ConfigError("cache_max_age_ms must be > 0", config_key="cache_max_age_ms", actual_value=self.cache_max_age_ms)
        if self.cache_sweep_interval_ms <= 0:
            raise ConfigError(
                "cache_sweep_interval_ms must be > 0",
                config_key="cache_sweep_interval_ms",
                actual_value=self.cache_sweep_interval_ms,
            )
        self.headers = dict(self.headers or {})

    @classmethod
    def field_names(cls) -> frozenset:
        return frozenset(f.name for f in fields(cls))

    @classmethod
    def from_mapping(cls, values: Mapping[str, Any]) -> "APIConfig":
        """Build from a partial mapping; unspecified fields take their defaults."""
        unknown = set(values) - cls.field_names()
        if unknown:
            raise ConfigError(f"Unknown config option(s): {', '.join(sorted(unknown))}")
        return cls(**values)

    def updated(self, **changes: Any) -> "APIConfig":
        """Validated copy with ``changes`` applied."""
        unknown = set(changes) - self.field_names()
        if unknown:
            raise ConfigError(f"Unknown config option(s): {', '.join(sorted(unknown))}")
        return replace(self, **changes)

    @property
    def timeout_seconds(self) -> float:
        return self.timeout_ms / 1000

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary."""
        return asdict(self)
