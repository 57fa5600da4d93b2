from pathlib import Path
from typing import Literal, Optional

from pydantic import Field, ValidationInfo, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_prefix="ROOTFS_",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    app_name: str = Field(default="rootfs", description="Application name")
    app_version: str = Field(default="0.1.0", description="Application version")
    environment: Literal["development", "staging", "production"] = Field(
        default="development", description="Environment mode"
    )

    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"] = Field(
        default="INFO", description="Logging level"
    )
    log_format: Literal["json", "console"] = Field(
        default="console", validate_default=True, description="Log output format"
    )

    root_path: Optional[Path] = Field(
        default=None, description="Default sandbox root for create_filesystem()"
    )
    create_root: bool = Field(
        default=True, description="Create the sandbox root on initialize() if missing"
    )
    suppress_fs_events: bool = Field(
        default=False, description="Mute events synthesized by filesystem operations"
    )

    watcher_settle_seconds: float = Field(
        default=0.2,
        ge=0,
        description="Window in which repeated watcher events for one path are merged",
    )
    watcher_use_polling: bool = Field(
        default=False, description="Use the polling observer instead of the native one"
    )
    watcher_poll_interval: float = Field(
        default=1.0, gt=0, description="Polling observer interval in seconds"
    )

    @field_validator("root_path", mode="before")
    @classmethod
    def validate_root_path(cls, v):
        if v is None or v == "":
            return None
        return Path(v).expanduser()

    @field_validator("log_format", mode="before")
    @classmethod
    def validate_log_format(cls, v, info: ValidationInfo):
        if info.data.get("environment") == "production":
            return "json"
        return v

    @property
    def is_production(self) -> bool:
        return self.environment == "production"

    @property
    def is_development(self) -> bool:
        return self.environment == "development"


_settings: Optional[Settings] = None


def get_settings() -> Settings:
    global _settings
    if _settings is None:
        _settings = Settings()
    return _settings


settings = get_settings()
