"""Configuration loading utilities for Helping ERLC."""
from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict

import yaml


DEFAULT_SETTINGS_PATH = Path(__file__).parent / "data" / "settings.yaml"
SETTINGS_ENV = "HELPING_ERLC_SETTINGS"


@dataclass(frozen=True)
class Settings:
    """Typed view over the settings YAML file."""

    command_prefix: str
    leaderboard_size: int
    panel_refresh_seconds: float
    category_name: str
    command_logs_channel: str
    join_logs_channel: str
    shift_logs_channel: str
    punishment_logs_channel: str
    roblox_lookup_url: str
    roblox_profile_url: str
    audit_url: str
    http_timeout: float
    colors: Dict[str, int]

    @property
    def log_channels(self) -> list[str]:
        return [
            self.command_logs_channel,
            self.join_logs_channel,
            self.shift_logs_channel,
            self.punishment_logs_channel,
        ]

    def color(self, name: str) -> int:
        return self.colors.get(name, self.colors.get("info", 0x0099FF))

    @staticmethod
    def from_dict(data: Dict[str, Any]) -> "Settings":
        commands_cfg = data.get("commands", {})
        duty_cfg = data.get("duty", {})
        channels = data.get("channels", {})
        roblox_cfg = data.get("roblox", {})
        erlc_cfg = data.get("erlc", {})
        http_cfg = data.get("http", {})
        colors = data.get("colors", {})
        return Settings(
            command_prefix=str(commands_cfg.get("prefix", ".")),
            leaderboard_size=int(commands_cfg.get("leaderboard_size", 10)),
            panel_refresh_seconds=float(duty_cfg.get("panel_refresh_seconds", 30)),
            category_name=str(channels.get("category", "helping erlc")),
            command_logs_channel=str(channels.get("command_logs", "command-logs")),
            join_logs_channel=str(channels.get("join_logs", "join-logs")),
            shift_logs_channel=str(channels.get("shift_logs", "shift-logs")),
            punishment_logs_channel=str(channels.get("punishment_logs", "punishment-logs")),
            roblox_lookup_url=str(roblox_cfg["lookup_url"]),
            roblox_profile_url=str(roblox_cfg["profile_url"]),
            audit_url=str(erlc_cfg["audit_url"]),
            http_timeout=float(http_cfg.get("timeout_seconds", 5.0)),
            colors={key: int(value) for key, value in colors.items()},
        )


class SettingsLoader:
    """Loads and caches settings from YAML configuration files."""

    def __init__(self, path: Path | None = None) -> None:
        env_path = os.environ.get(SETTINGS_ENV)
        self._path = path or (Path(env_path) if env_path else DEFAULT_SETTINGS_PATH)
        self._cache: Settings | None = None

    @property
    def path(self) -> Path:
        return self._path

    def load(self, force: bool = False) -> Settings:
        if self._cache is not None and not force:
            return self._cache
        with self._path.open("r", encoding="utf-8") as fh:
            data = yaml.safe_load(fh) or {}
        self._cache = Settings.from_dict(data)
        return self._cache


def get_settings() -> Settings:
    """Convenience accessor for default settings."""

    return SettingsLoader().load()


__all__ = ["Settings", "SettingsLoader", "get_settings"]
