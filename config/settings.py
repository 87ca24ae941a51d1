"""
Configuration loader for the department connect bot.
Reads settings from an optional YAML file with environment variable
substitution; the LUIS credentials come from the environment / .env file.
"""
from __future__ import annotations

import os
import re
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Optional

import yaml
from dotenv import load_dotenv

LUIS_ENV_VARS = ("LuisAppId", "LuisAPIKey", "LuisAPIHostName")


@dataclass
class LuisConfig:
    app_id: str = ""
    api_key: str = ""
    api_host_name: str = ""
    slot: str = "production"
    intent_threshold: float = 0.5       # top intent must score strictly above this
    timeout_seconds: float = 10.0

    @property
    def is_configured(self) -> bool:
        return bool(self.app_id and self.api_key and self.api_host_name)

    @property
    def missing(self) -> list[str]:
        values = dict(zip(LUIS_ENV_VARS, (self.app_id, self.api_key, self.api_host_name)))
        return [name for name, value in values.items() if not value]


@dataclass
class HostConfig:
    root_dialog: str = "mainDialog"
    log_transcripts: bool = True


@dataclass
class Settings:
    app_name: str = "DepartmentConnectBot"
    luis: LuisConfig = field(default_factory=LuisConfig)
    host: HostConfig = field(default_factory=HostConfig)


_settings: Optional[Settings] = None


def _substitute_env_vars(value: str) -> str:
    """Replace ${VAR_NAME} patterns with environment variable values."""
    pattern = re.compile(r'\$\{(\w+)\}')
    def replacer(match):
        return os.environ.get(match.group(1), "")
    return pattern.sub(replacer, value)


def _process_values(obj: Any) -> Any:
    """Recursively substitute env vars in all string values."""
    if isinstance(obj, str):
        return _substitute_env_vars(obj)
    elif isinstance(obj, dict):
        return {k: _process_values(v) for k, v in obj.items()}
    elif isinstance(obj, list):
        return [_process_values(v) for v in obj]
    return obj


def load_settings(config_path: str = None, env_file: str = None) -> Settings:
    """Load settings from the .env file, the environment and an optional YAML file."""
    global _settings

    load_dotenv(env_file, override=False)

    if config_path is None:
        config_path = os.environ.get(
            "DEPARTMENT_BOT_CONFIG",
            str(Path(__file__).parent / "settings.yaml"),
        )

    settings = Settings()
    settings.luis = LuisConfig(
        app_id=os.environ.get("LuisAppId", ""),
        api_key=os.environ.get("LuisAPIKey", ""),
        api_host_name=os.environ.get("LuisAPIHostName", ""),
    )

    if Path(config_path).exists():
        with open(config_path) as f:
            raw = yaml.safe_load(f) or {}
        raw = _process_values(raw)

        settings.app_name = raw.get("app_name", settings.app_name)

        if "luis" in raw:
            luis = raw["luis"]
            settings.luis = LuisConfig(
                app_id=luis.get("app_id") or settings.luis.app_id,
                api_key=luis.get("api_key") or settings.luis.api_key,
                api_host_name=luis.get("api_host_name") or settings.luis.api_host_name,
                slot=luis.get("slot", "production"),
                intent_threshold=float(luis.get("intent_threshold", 0.5)),
                timeout_seconds=float(luis.get("timeout_seconds", 10.0)),
            )

        if "host" in raw:
            host = raw["host"]
            settings.host = HostConfig(
                root_dialog=host.get("root_dialog", "mainDialog"),
                log_transcripts=host.get("log_transcripts", True),
            )

    _settings = settings
    return settings


def get_settings() -> Settings:
    """Return cached settings or load from default path."""
    global _settings
    if _settings is None:
        _settings = load_settings()
    return _settings


def reset_settings():
    global _settings
    _settings = None
