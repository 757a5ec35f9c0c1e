"""Configuration models for the MUSH bridge."""

from typing import Literal

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator


class _FrozenModel(BaseModel):
    """Settings are read-only once loaded."""

    model_config = ConfigDict(frozen=True)


class MushConfig(_FrozenModel):
    """Remote MUSH connection settings."""

    host: str
    port: int = Field(4201, ge=1, le=65535)
    connect_command: str = ""
    encoding: str = "utf8"
    connect_timeout: float = Field(30.0, gt=0)
    settle_delay: float = Field(0.5, gt=0)
    read_size: int = Field(4096, gt=0)
    max_burst_size: int = Field(65536, gt=0)
    max_burst_time: float = Field(5.0, gt=0)

    @field_validator("host")
    @classmethod
    def validate_host(cls, v: str) -> str:
        """Reject an empty remote host."""
        if not v.strip():
            raise ValueError("MUSH host must not be empty")
        return v.strip()


class APIConfig(_FrozenModel):
    """HTTP snapshot server configuration."""

    host: str = "0.0.0.0"
    port: int = Field(8080, ge=0, le=65535)


class PollingConfig(_FrozenModel):
    """Polling scheduler configuration."""

    interval: float = Field(30.0, gt=0)


class ReconnectConfig(_FrozenModel):
    """Backoff between reconnection attempts."""

    enabled: bool = True
    base_delay: float = Field(5.0, ge=0)
    max_delay: float = Field(300.0, ge=0)

    @model_validator(mode="after")
    def validate_delays(self) -> "ReconnectConfig":
        """Make sure the cap is not below the base delay."""
        if self.max_delay < self.base_delay:
            raise ValueError("reconnect max_delay must be >= base_delay")
        return self


class LoggingConfig(_FrozenModel):
    """Logging configuration."""

    level: Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"] = "INFO"
    format: Literal["json", "console"] = "json"
    file: str | None = None

    @field_validator("level", mode="before")
    @classmethod
    def normalize_level(cls, v):
        if isinstance(v, str):
            return v.upper()
        return v


class DevelopmentConfig(_FrozenModel):
    """Development settings."""

    debug: bool = False


class Settings(_FrozenModel):
    """Main settings configuration."""

    mush: MushConfig
    api: APIConfig = Field(default_factory=APIConfig)
    polling: PollingConfig = Field(default_factory=PollingConfig)
    reconnect: ReconnectConfig = Field(default_factory=ReconnectConfig)
    logging: LoggingConfig = Field(default_factory=LoggingConfig)
    development: DevelopmentConfig = Field(default_factory=DevelopmentConfig)
