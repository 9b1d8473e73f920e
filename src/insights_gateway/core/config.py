"""Configuration management for the insights gateway."""

import os

from pydantic import BaseModel, ConfigDict, Field, SecretStr

DEFAULT_BASE_URL = "https://api.langflow.astra.datastax.com"
DEFAULT_FLOW_ID = "5d664ca6-224d-4112-b143-d31786f9a046"
DEFAULT_FLOW_GROUP_ID = "aa552875-56d4-431d-94bd-389aa1c8d68f"


def _env_secret(name: str) -> SecretStr | None:
    """Get environment variable as SecretStr, returning None if empty or unset."""
    v = os.getenv(name)
    if v is None:
        return None
    v = v.strip()
    if not v:
        return None
    return SecretStr(v)


def _env_str(name: str, default: str) -> str:
    v = os.getenv(name)
    if v is None or not v.strip():
        return default
    return v.strip()


def _env_int(name: str, default: int) -> int:
    v = os.getenv(name)
    if v is None or not v.strip():
        return default
    try:
        return int(v)
    except ValueError:
        return default


def _env_float(name: str, default: float) -> float:
    v = os.getenv(name)
    if v is None or not v.strip():
        return default
    try:
        return float(v)
    except ValueError:
        return default


class GatewayConfig(BaseModel):
    """Process-wide gateway configuration, read once at startup."""

    model_config = ConfigDict(str_strip_whitespace=True, frozen=True, extra="forbid")

    model_token: SecretStr | None = Field(
        default=None, description="Bearer credential for the flow-execution API"
    )

    host: str = Field(default="0.0.0.0", description="Interface the gateway binds to")
    port: int = Field(default=3000, ge=1, le=65535, description="Port the gateway listens on")

    base_url: str = Field(default=DEFAULT_BASE_URL, description="Flow-execution API base URL")
    flow_id: str = Field(default=DEFAULT_FLOW_ID, min_length=1)
    flow_group_id: str = Field(default=DEFAULT_FLOW_GROUP_ID, min_length=1)

    request_timeout: float = Field(default=30.0, gt=0, description="Upstream request timeout")
    stream_idle_timeout: float = Field(
        default=30.0, gt=0, description="Seconds without a stream message before giving up"
    )

    cache_ttl_seconds: int = Field(default=3600, gt=0)

    rate_limit_max: int = Field(default=100, ge=1, description="Requests allowed per window")
    rate_limit_window_seconds: int = Field(default=60, ge=1)

    cors_max_age: int = Field(default=86400, ge=0)

    log_level: str = Field(default="info")

    @property
    def application_token(self) -> str | None:
        """Plain-text token for building request headers."""
        return self.model_token.get_secret_value() if self.model_token else None

    @classmethod
    def from_env(cls) -> "GatewayConfig":
        """Build the configuration from environment variables."""
        return cls(
            model_token=_env_secret("MODEL_TOKEN"),
            host=_env_str("HOST", "0.0.0.0"),
            port=_env_int("PORT", 3000),
            base_url=_env_str("LANGFLOW_BASE_URL", DEFAULT_BASE_URL),
            flow_id=_env_str("FLOW_ID", DEFAULT_FLOW_ID),
            flow_group_id=_env_str("FLOW_GROUP_ID", DEFAULT_FLOW_GROUP_ID),
            request_timeout=_env_float("REQUEST_TIMEOUT_SECONDS", 30.0),
            stream_idle_timeout=_env_float("STREAM_IDLE_TIMEOUT_SECONDS", 30.0),
            cache_ttl_seconds=_env_int("CACHE_TTL_SECONDS", 3600),
            rate_limit_max=_env_int("RATE_LIMIT_MAX", 100),
            rate_limit_window_seconds=_env_int("RATE_LIMIT_WINDOW_SECONDS", 60),
            log_level=_env_str("LOG_LEVEL", "info").lower(),
        )


def load_config() -> GatewayConfig:
    """Load the gateway configuration from the environment."""
    return GatewayConfig.from_env()
