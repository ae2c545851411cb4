from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import Optional

import yaml
from pydantic import BaseModel, Field, field_validator

CONFIG_FILENAME = "hourlyavg.yaml"
DEFAULT_ENDPOINT = "https://tsserv.tinkermode.dev/data"
VALID_LOG_LEVELS = ("CRITICAL", "ERROR", "WARNING", "INFO", "DEBUG")


class Settings(BaseModel):
    """Runtime knobs for a fetch-and-aggregate run."""

    endpoint: str = Field(
        default=DEFAULT_ENDPOINT,
        description="Data endpoint queried with ?begin=<start>&end=<end>.",
    )
    request_timeout: float = Field(
        default=100.0,
        gt=0,
        description="Seconds allowed for the whole HTTP request (connect + read).",
    )
    process_timeout: float = Field(
        default=300.0,
        gt=0,
        description="Seconds allowed for fetch plus aggregation before aborting.",
    )
    stream_threshold_bytes: int = Field(
        default=10 * 1024 * 1024,
        ge=0,
        description="Bodies declared larger than this are streamed instead of buffered.",
    )
    log_level: Optional[str] = Field(default=None, description="DEFAULT LOG LEVEL")

    @field_validator("endpoint")
    @classmethod
    def _validate_endpoint(cls, value: str) -> str:
        text = str(value).strip()
        if not text.startswith(("http://", "https://")):
            raise ValueError(f"endpoint must be an http(s) URL, got {value!r}")
        return text

    @field_validator("log_level", mode="before")
    @classmethod
    def _validate_log_level(cls, value: object) -> str | None:
        if value is None:
            return None
        name = str(value).strip().upper()
        if not name:
            return None
        if name not in VALID_LOG_LEVELS:
            raise ValueError(
                f"log_level must be one of {', '.join(VALID_LOG_LEVELS)}, got {value!r}"
            )
        return name


@dataclass
class SettingsContext:
    file_path: Optional[Path]
    settings: Settings


def _read_mapping(path: Path) -> dict:
    try:
        with path.open("r", encoding="utf-8") as f:
            data = yaml.safe_load(f)
    except FileNotFoundError as e:
        raise FileNotFoundError(f"config file not found: {path}") from e
    except yaml.YAMLError as e:
        raise ValueError(f"Invalid YAML in {path}: {e}") from e
    if data is None:
        return {}
    if not isinstance(data, dict):
        raise TypeError(f"{path} must define a mapping at the top level")
    return data


def find_config_file(start_dir: Optional[Path] = None) -> Optional[Path]:
    """Search from start_dir upward for hourlyavg.yaml."""
    directory = (start_dir or Path.cwd()).resolve()
    for path in [directory, *directory.parents]:
        candidate = path / CONFIG_FILENAME
        if candidate.is_file():
            return candidate
    return None


def load_settings(
    config_path: Optional[Path] = None,
    *,
    start_dir: Optional[Path] = None,
) -> SettingsContext:
    """Load settings from an explicit file, a discovered one, or defaults."""
    path = config_path or find_config_file(start_dir)
    if path is None:
        return SettingsContext(file_path=None, settings=Settings())
    data = _read_mapping(path)
    return SettingsContext(file_path=path, settings=Settings.model_validate(data))
