"""Centralized configuration for pseudoshell.

All settings are loaded from environment variables with sensible defaults.
Use a .env file or export variables before running.

Example:
    export PSEUDOSHELL_USER=yyerf
    export PSEUDOSHELL_STORE_PATH=/tmp/best_time.json
"""

from __future__ import annotations

import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Optional

from dotenv import load_dotenv

load_dotenv()


def _get_env(key: str, default: str) -> str:
    """Get environment variable with fallback."""
    return os.environ.get(key, default)


def _get_env_int(key: str, default: int) -> int:
    """Get environment variable as integer with fallback."""
    try:
        return int(os.environ.get(key, str(default)))
    except ValueError:
        return default


def _get_env_float(key: str, default: float) -> float:
    """Get environment variable as float with fallback."""
    try:
        return float(os.environ.get(key, str(default)))
    except ValueError:
        return default


# Base paths
PROJECT_ROOT = Path(__file__).resolve().parents[1]
DEFAULT_DATA_DIR = Path(os.path.expanduser("~")) / ".pseudoshell"


def _data_dir() -> Path:
    """Per-user data directory, outside the installed package."""
    return Path(_get_env("PSEUDOSHELL_DATA_DIR", str(DEFAULT_DATA_DIR)))


@dataclass
class ShellConfig:
    """Prompt identity and history limits shared by both shells."""

    user: str = field(default_factory=lambda: _get_env("PSEUDOSHELL_USER", "yyerf"))
    host: str = field(
        default_factory=lambda: _get_env("PSEUDOSHELL_HOST", "portfolio")
    )
    max_history: int = field(
        default_factory=lambda: _get_env_int("PSEUDOSHELL_MAX_HISTORY", 1000)
    )


@dataclass
class PuzzleConfig:
    """CTF puzzle persistence settings."""

    best_time_key: str = field(
        default_factory=lambda: _get_env("PSEUDOSHELL_BEST_TIME_KEY", "ctf_best_time_ms")
    )
    store_path: Path = field(
        default_factory=lambda: Path(
            _get_env("PSEUDOSHELL_STORE_PATH", str(_data_dir() / "best_time.json"))
        )
    )


@dataclass
class VisualizerConfig:
    """Encryption visualizer settings."""

    max_plaintext: int = field(
        default_factory=lambda: _get_env_int("PSEUDOSHELL_MAX_PLAINTEXT", 120)
    )
    speed: float = field(
        default_factory=lambda: _get_env_float("PSEUDOSHELL_VISUALIZER_SPEED", 1.0)
    )


@dataclass
class DashboardConfig:
    """Streamlit dashboard configuration."""

    host: str = field(
        default_factory=lambda: _get_env("PSEUDOSHELL_DASHBOARD_HOST", "localhost")
    )
    port: int = field(
        default_factory=lambda: _get_env_int("PSEUDOSHELL_DASHBOARD_PORT", 8501)
    )


@dataclass
class LoggingConfig:
    """Logging configuration."""

    level: str = field(
        default_factory=lambda: _get_env("PSEUDOSHELL_LOG_LEVEL", "WARNING")
    )
    format: str = field(
        default_factory=lambda: _get_env(
            "PSEUDOSHELL_LOG_FORMAT",
            "%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        )
    )


@dataclass
class Config:
    """Main configuration container."""

    shell: ShellConfig = field(default_factory=ShellConfig)
    puzzle: PuzzleConfig = field(default_factory=PuzzleConfig)
    visualizer: VisualizerConfig = field(default_factory=VisualizerConfig)
    dashboard: DashboardConfig = field(default_factory=DashboardConfig)
    logging: LoggingConfig = field(default_factory=LoggingConfig)

    # Paths
    project_root: Path = PROJECT_ROOT
    data_dir: Path = field(default_factory=_data_dir)


# Global configuration instance
_config: Optional[Config] = None


def get_config() -> Config:
    """Get the global configuration instance.

    Creates a new instance if one doesn't exist.
    Configuration is loaded from environment variables.
    """
    global _config
    if _config is None:
        _config = Config()
    return _config


def reload_config() -> Config:
    """Force reload of configuration from environment.

    Useful for testing or dynamic reconfiguration.
    """
    global _config
    _config = Config()
    return _config
