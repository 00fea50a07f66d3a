import os
from dataclasses import dataclass
from functools import lru_cache

import redis
from dotenv import load_dotenv

load_dotenv()


def _env_list(name: str) -> tuple[str, ...] | None:
    """Read a comma-separated environment variable, None when unset."""
    raw = os.getenv(name)
    if raw is None:
        return None
    return tuple(part.strip() for part in raw.split(",") if part.strip())


@dataclass(frozen=True)
class Settings:
    """Application settings loaded from environment variables."""

    # Redis
    redis_url: str = os.getenv("REDIS_URL", "redis://localhost:6379")
    redis_password: str | None = os.getenv("REDIS_PASSWORD")

    # Storage
    storage_backend: str = os.getenv("STORAGE_BACKEND", "redis")  # "redis" or "memory"
    key_prefix: str = os.getenv("KEY_PREFIX", "award_deposit")
    session_ttl: int = int(os.getenv("SESSION_TTL", "86400"))  # 1 day default
    session_cookie: str = os.getenv("SESSION_COOKIE", "session_id")
    max_upload_size: int = int(os.getenv("MAX_UPLOAD_SIZE", "16777216"))  # 16Mb

    # Locale
    # None or an empty list accepts every locale
    supported_locales: tuple[str, ...] | None = _env_list("SUPPORTED_LOCALES")
    default_locale: str = os.getenv("DEFAULT_LOCALE", "en")
    locale_attribute: str = os.getenv("LOCALE_ATTRIBUTE", "locale-attribute")
    locale_store_in_session: bool = os.getenv("LOCALE_STORE_IN_SESSION", "false").lower() == "true"
    locale_store_in_cookie: bool = os.getenv("LOCALE_STORE_IN_COOKIE", "false").lower() == "true"
    # Per-route "locale" pipeline parameters, as "<path prefix>=<tag>" pairs
    pipeline_locales: tuple[str, ...] | None = _env_list("PIPELINE_LOCALES")

    # API
    api_host: str = os.getenv("API_HOST", "0.0.0.0")
    api_port: int = int(os.getenv("API_PORT", "8000"))
    api_reload: bool = os.getenv("API_RELOAD", "true").lower() == "true"

    # Logging
    log_level: str = os.getenv("LOG_LEVEL", "INFO")

    @property
    def uses_memory_backend(self) -> bool:
        """Check if the in-process storage backend is configured.

        Returns:
            True for the memory backend, False for Redis
        """
        return self.storage_backend.lower() == "memory"

    def __post_init__(self) -> None:
        """Validate settings after initialization."""
        if self.storage_backend.lower() not in ("redis", "memory"):
            raise ValueError(
                f"STORAGE_BACKEND must be 'redis' or 'memory', got {self.storage_backend!r}"
            )

        if self.session_ttl <= 0:
            raise ValueError("SESSION_TTL must be a positive number of seconds")

        if not self.default_locale.strip():
            raise ValueError("DEFAULT_LOCALE must not be empty")


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()


# Global settings instance
settings = get_settings()


def get_redis_client() -> redis.Redis:
    """Create a Redis client instance."""
    return redis.from_url(
        settings.redis_url,
        password=settings.redis_password,
        decode_responses=False,
    )
