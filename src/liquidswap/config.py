"""Application configuration using pydantic-settings.

All process-wide configuration is read here once. Components receive
plain values from the factories instead of reading the environment.
"""

from functools import lru_cache

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # ======================
    # API
    # ======================
    api_host: str = Field(default="0.0.0.0", description="API server host")
    api_port: int = Field(default=8000, description="API server port")

    # ======================
    # Environment
    # ======================
    environment: str = Field(default="development", description="Runtime environment")
    debug: bool = Field(default=True, description="Enable debug mode")

    # ======================
    # Charms Prover
    # ======================
    charms_prove_api_url: str = Field(
        default="https://v8.charms.dev/spells/prove",
        description="Charms prover endpoint URL",
    )
    mock_mode: bool = Field(
        default=True, description="Fabricate proofs locally instead of calling the prover"
    )
    prove_timeout_seconds: float = Field(
        default=120.0, gt=0, description="Per-request timeout for a proving call"
    )
    prove_max_attempts: int = Field(
        default=3, ge=1, description="Proving attempts before giving up"
    )
    prove_initial_backoff_seconds: float = Field(
        default=2.0, ge=0, description="Backoff before the second attempt (doubles afterwards)"
    )

    def get_safe_dict(self) -> dict:
        """Return settings dict suitable for diagnostics output."""
        return {
            "environment": self.environment,
            "debug": self.debug,
            "api_host": self.api_host,
            "api_port": self.api_port,
            "prover": {
                "url": self._redact_url(self.charms_prove_api_url),
                "mock_mode": self.mock_mode,
                "timeout_seconds": self.prove_timeout_seconds,
                "max_attempts": self.prove_max_attempts,
                "initial_backoff_seconds": self.prove_initial_backoff_seconds,
            },
        }

    @staticmethod
    def _redact_url(url: str) -> str:
        """Redact credentials embedded in a URL."""
        if "://" in url and "@" in url:
            proto, rest = url.split("://", 1)
            if "@" in rest:
                creds, host = rest.rsplit("@", 1)
                if ":" in creds:
                    user, _ = creds.split(":", 1)
                    return f"{proto}://{user}:***@{host}"
        return url


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()
