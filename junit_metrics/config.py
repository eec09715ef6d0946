"""Configuration for the uploader, the CLI and the HTTP service.

Loads from a YAML config file with environment variable overrides.
Pattern: CONFIG__{SECTION}__{KEY} overrides nested YAML keys.
Example: CONFIG__UPLOAD__BATCH_SIZE=500

CI action inputs are honoured as well (INPUT_INFLUX-URL, INPUT_RUNNER-NAME,
...), and the InfluxDB token can come from INFLUX_TOKEN.
"""

import os
from pathlib import Path
from typing import Any, Optional

import yaml
from pydantic import BaseModel, ConfigDict, Field

from .tags import parse_tags


class ConfigError(Exception):
    """Required settings are missing or invalid."""


class InfluxConfig(BaseModel):
    model_config = ConfigDict(validate_assignment=True)

    url: str = ""
    org: str = ""
    bucket: str = ""
    token: str = ""  # from env: INFLUX_TOKEN
    timeout_ms: int = Field(default=10_000, ge=1)
    verify_ssl: bool = True

    @property
    def is_configured(self) -> bool:
        return all((self.url, self.org, self.bucket, self.token))

    def missing(self) -> list[str]:
        return [
            name
            for name in ("url", "org", "bucket", "token")
            if not getattr(self, name)
        ]


class UploadConfig(BaseModel):
    model_config = ConfigDict(validate_assignment=True)

    junit_file: str = ""
    runner_name: str = ""
    tags: dict[str, Any] = {}
    batch_size: int = Field(default=100, ge=1, description="Points per write request")
    dry_run: bool = False


class Settings(BaseModel):
    influx: InfluxConfig = InfluxConfig()
    upload: UploadConfig = UploadConfig()
    log_level: str = "INFO"

    def require(self) -> None:
        """Raise ConfigError unless everything an upload needs is set."""
        missing = []
        if not self.upload.junit_file:
            missing.append("junit-file")
        if not self.upload.runner_name:
            missing.append("runner-name")
        if not self.upload.dry_run:
            missing.extend(f"influx-{name}" for name in self.influx.missing())
        if missing:
            raise ConfigError(f"Input required and not supplied: {', '.join(missing)}")


# action input name -> (section, key)
ACTION_INPUTS = {
    "junit-file": ("upload", "junit_file"),
    "runner-name": ("upload", "runner_name"),
    "tags": ("upload", "tags"),
    "batch-size": ("upload", "batch_size"),
    "influx-url": ("influx", "url"),
    "influx-org": ("influx", "org"),
    "influx-bucket": ("influx", "bucket"),
    "influx-token": ("influx", "token"),
}


def _apply_env_overrides(config_dict: dict, prefix: str = "CONFIG") -> dict:
    """Apply environment variable overrides to config dict.

    Pattern: CONFIG__SECTION__KEY=value maps to config[section][key] = value.
    Values stay strings; pydantic coerces them to the field types.
    """
    for key, value in os.environ.items():
        if not key.startswith(f"{prefix}__"):
            continue
        parts = key[len(prefix) + 2 :].lower().split("__")
        target = config_dict
        for part in parts[:-1]:
            target = target.setdefault(part, {})
        target[parts[-1]] = value
    return config_dict


def _apply_action_inputs(config_dict: dict) -> dict:
    """Map CI action inputs (INPUT_<NAME>) onto the config dict."""
    for name, (section, key) in ACTION_INPUTS.items():
        value = os.environ.get(f"INPUT_{name.upper()}", "").strip()
        if not value:
            continue
        if key == "tags":
            value = parse_tags(value)
        config_dict.setdefault(section, {})[key] = value
    return config_dict


def load_config(config_path: Optional[str] = None) -> Settings:
    """Load configuration from YAML file with env overrides.

    Priority: action inputs > CONFIG__ env vars > YAML file > defaults
    """
    config_dict: dict = {}

    # 1. Load YAML if exists
    if config_path is None:
        config_path = os.getenv("JUNIT_METRICS_CONFIG", "config/junit-metrics.yml")
    path = Path(config_path)
    if path.exists():
        with open(path) as f:
            config_dict = yaml.safe_load(f) or {}
    if not isinstance(config_dict, dict):
        raise ConfigError(f"Config file {path} must contain a mapping")

    # 2. Apply env overrides
    config_dict = _apply_env_overrides(config_dict)
    config_dict = _apply_action_inputs(config_dict)

    # 3. Token from dedicated env var
    influx = config_dict.setdefault("influx", {})
    if not influx.get("token"):
        influx["token"] = os.getenv("INFLUX_TOKEN", "")

    log_level = os.getenv("LOG_LEVEL")
    if log_level:
        config_dict["log_level"] = log_level

    return Settings(**config_dict)


# Singleton for the service
_config: Optional[Settings] = None


def get_config() -> Settings:
    global _config
    if _config is None:
        _config = load_config()
    return _config


def reload_config(config_path: Optional[str] = None) -> Settings:
    global _config
    _config = load_config(config_path)
    return _config
