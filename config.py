"""Configuration management with environment variable support."""

import os
import secrets
from dataclasses import dataclass, field

from shellgame.game.timing import RoundTiming


def _parse_cors_origins() -> list[str]:
    """Parse CORS_ORIGINS environment variable."""
    origins = os.getenv("CORS_ORIGINS", "http://localhost:8000")
    return [o.strip() for o in origins.split(",") if o.strip()]


def _env_float(name: str, default: float) -> float:
    return float(os.getenv(name, str(default)))


def _env_int(name: str, default: int) -> int:
    return int(os.getenv(name, str(default)))


@dataclass(frozen=True)
class CORSConfig:
    """CORS configuration."""

    allowed_origins: list[str] = field(default_factory=_parse_cors_origins)
    allow_credentials: bool = True
    allow_methods: list[str] = field(default_factory=lambda: ["*"])
    allow_headers: list[str] = field(default_factory=lambda: ["*"])


@dataclass(frozen=True)
class RateLimitConfig:
    """Rate limiting configuration."""

    enabled: bool = field(
        default_factory=lambda: os.getenv("RATE_LIMIT_ENABLED", "true").lower() == "true"
    )
    requests_per_minute: int = field(
        default_factory=lambda: int(os.getenv("RATE_LIMIT_RPM", "60"))
    )


@dataclass(frozen=True)
class SecurityConfig:
    """Security configuration."""

    secret_key: str = field(
        default_factory=lambda: os.getenv("SECRET_KEY", secrets.token_urlsafe(32))
    )


@dataclass(frozen=True)
class RedisConfig:
    """Redis connection configuration."""

    enabled: bool = field(
        default_factory=lambda: os.getenv("REDIS_ENABLED", "true").lower() == "true"
    )
    host: str = field(default_factory=lambda: os.getenv("REDIS_HOST", "localhost"))
    port: int = field(default_factory=lambda: int(os.getenv("REDIS_PORT", "6379")))
    db: int = field(default_factory=lambda: int(os.getenv("REDIS_DB", "0")))
    password: str | None = field(default_factory=lambda: os.getenv("REDIS_PASSWORD"))

    @property
    def url(self) -> str:
        """Build Redis connection URL."""
        auth = f":{self.password}@" if self.password else ""
        return f"redis://{auth}{self.host}:{self.port}/{self.db}"


@dataclass(frozen=True)
class LoggingConfig:
    """Logging configuration."""

    level: str = field(default_factory=lambda: os.getenv("LOG_LEVEL", "INFO").upper())
    format: str = field(
        default_factory=lambda: os.getenv(
            "LOG_FORMAT", "%(asctime)s %(levelname)s %(name)s: %(message)s"
        )
    )


@dataclass(frozen=True)
class GameConfig:
    """Round pacing, in seconds."""

    placing_dwell: float = field(default_factory=lambda: _env_float("SHELL_PLACING_DWELL", 1.5))
    shuffle_lead_in: float = field(default_factory=lambda: _env_float("SHELL_SHUFFLE_LEAD_IN", 0.3))
    step_interval: float = field(default_factory=lambda: _env_float("SHELL_STEP_INTERVAL", 0.2))
    swap_settle: float = field(default_factory=lambda: _env_float("SHELL_SWAP_SETTLE", 0.3))
    reveal_delay: float = field(default_factory=lambda: _env_float("SHELL_REVEAL_DELAY", 2.5))
    min_shuffles: int = field(default_factory=lambda: _env_int("SHELL_MIN_SHUFFLES", 3))
    max_shuffles: int = field(default_factory=lambda: _env_int("SHELL_MAX_SHUFFLES", 5))

    def timing(self) -> RoundTiming:
        """Build the engine timing for these settings."""
        return RoundTiming(
            placing_dwell=self.placing_dwell,
            shuffle_lead_in=self.shuffle_lead_in,
            step_interval=self.step_interval,
            swap_settle=self.swap_settle,
            reveal_delay=self.reveal_delay,
            min_shuffles=self.min_shuffles,
            max_shuffles=self.max_shuffles,
        )


@dataclass(frozen=True)
class AppConfig:
    """Application configuration."""

    debug: bool = field(default_factory=lambda: os.getenv("DEBUG", "false").lower() == "true")
    host: str = field(default_factory=lambda: os.getenv("HOST", "0.0.0.0"))
    port: int = field(default_factory=lambda: int(os.getenv("PORT", "8000")))
    session_ttl: int = 3600  # Session timeout in seconds

    redis: RedisConfig = field(default_factory=RedisConfig)
    game: GameConfig = field(default_factory=GameConfig)
    cors: CORSConfig = field(default_factory=CORSConfig)
    rate_limit: RateLimitConfig = field(default_factory=RateLimitConfig)
    security: SecurityConfig = field(default_factory=SecurityConfig)
    logging: LoggingConfig = field(default_factory=LoggingConfig)


# Global configuration instance
config = AppConfig()
