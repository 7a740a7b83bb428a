"""Configuration management for Taskflow."""

import logging
import os
from dataclasses import dataclass
from pathlib import Path

logger = logging.getLogger(__name__)

TASKFLOW_HOME = Path(os.environ.get("TASKFLOW_HOME", Path.home() / "taskflow"))
CONFIG_FILE = TASKFLOW_HOME / "config" / "taskflow.conf"


@dataclass
class Config:
    """Taskflow configuration."""

    api_base_url: str = "http://localhost:5000/api"
    api_token: str = ""
    tasks_file: str = ""
    timezone: str = "UTC"
    page_size: int = 100


def _unquote(value: str) -> str:
    """Strip quotes, or an inline comment from an unquoted value."""
    if value[:1] in ('"', "'"):
        quote = value[0]
        end_quote = value.find(quote, 1)
        return value[1:end_quote] if end_quote != -1 else value[1:]
    if "#" in value:
        return value.split("#")[0].strip()
    return value


def load_config(config_file: Path | None = None) -> Config:
    """Load configuration from taskflow.conf, then apply environment overrides."""
    config = Config()
    config_file = config_file or CONFIG_FILE

    if config_file.exists():
        for line in config_file.read_text().splitlines():
            line = line.strip()
            if not line or line.startswith("#"):
                continue

            if "=" not in line:
                continue

            key, _, value = line.partition("=")
            key = key.strip().lower()
            value = _unquote(value.strip())

            match key:
                case "api_base_url":
                    config.api_base_url = value.rstrip("/")
                case "api_token":
                    config.api_token = value
                case "tasks_file":
                    config.tasks_file = value
                case "timezone":
                    config.timezone = value
                case "page_size":
                    try:
                        config.page_size = int(value)
                    except ValueError:
                        logger.warning(f"Ignoring invalid PAGE_SIZE: {value!r}")
                case _:
                    logger.debug(f"Unknown config key: {key}")

    if os.environ.get("TASKFLOW_API_URL"):
        config.api_base_url = os.environ["TASKFLOW_API_URL"].rstrip("/")
    if os.environ.get("TASKFLOW_API_TOKEN"):
        config.api_token = os.environ["TASKFLOW_API_TOKEN"]

    return config
