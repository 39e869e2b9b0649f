"""Configuration management for printpool."""

import logging
from pathlib import Path

import yaml
from pydantic import BaseModel, Field
from pydantic_settings import BaseSettings, SettingsConfigDict

from printpool.models.printer import DEFAULT_PRINTER_CLASS, PrinterTarget
from printpool.transport.tcp import DEFAULT_TIMEOUT_SECONDS

logger = logging.getLogger(__name__)


class AppConfig(BaseModel):
    """Printer pool, storage and delivery settings read from config.yaml."""

    storage_path: Path = Path("printpool.json")
    send_timeout_seconds: float = Field(default=DEFAULT_TIMEOUT_SECONDS, gt=0)
    job_retention_seconds: float = Field(default=300.0, ge=0)
    default_printer_class: str = DEFAULT_PRINTER_CLASS
    # Seed pool used when nothing has been stored yet
    printers: list[PrinterTarget] = Field(default_factory=list)

    def resolve_storage_path(self, base_dir: Path) -> Path:
        """Resolve a relative storage path against the config file's directory."""
        if self.storage_path.is_absolute():
            return self.storage_path
        return base_dir / self.storage_path


class Settings(BaseSettings):
    """Process settings taken from PRINTPOOL_* environment variables."""

    model_config = SettingsConfigDict(
        env_prefix="PRINTPOOL_",
        env_file=".env",
        extra="ignore",
    )

    config_file: Path = Path("config.yaml")
    debug: bool = False


def load_config(config_path: Path) -> AppConfig:
    """Load config.yaml, falling back to defaults when the file is absent."""
    if not config_path.exists():
        logger.debug(f"No config file at {config_path}, using defaults")
        return AppConfig()

    with open(config_path) as f:
        data = yaml.safe_load(f) or {}

    # YAML returns None for empty keys
    if data.get("printers") is None:
        data["printers"] = []

    return AppConfig.model_validate(data)


# Process-wide settings
settings = Settings()
