"""
Runtime configuration.

Settings come from environment variables, optionally loaded from a
``.env`` file in the working directory:

    GRAPH_STORE_BACKEND          graph store backend (default: "networkx")
    APEXGRAPH_LOG_LEVEL          level used by configure_logging (default: "WARNING")
    APEXGRAPH_METHOD_SCAN_LINES  lines scanned when a method has no end line (default: 50)
    APEXGRAPH_BUILD_WORKERS      threads used for per-unit type resolution (default: 1)
"""

import logging
import os
from dataclasses import dataclass
from typing import Optional

import dotenv

dotenv.load_dotenv()

DEFAULT_BACKEND = "networkx"
DEFAULT_LOG_LEVEL = "WARNING"
DEFAULT_METHOD_SCAN_LINES = 50
DEFAULT_BUILD_WORKERS = 1

LOG_FORMAT = "%(asctime)s [%(levelname)s] %(name)s: %(message)s"


def _int_from_env(name: str, default: int, minimum: int = 1) -> int:
    raw = os.getenv(name)
    if raw is None or raw.strip() == "":
        return default
    try:
        value = int(raw)
    except ValueError:
        raise ValueError(f"{name} must be an integer, got '{raw}'")
    return max(value, minimum)


@dataclass(frozen=True)
class Settings:
    """Resolved engine settings."""
    graph_store_backend: str = DEFAULT_BACKEND
    log_level: str = DEFAULT_LOG_LEVEL
    method_scan_lines: int = DEFAULT_METHOD_SCAN_LINES
    build_workers: int = DEFAULT_BUILD_WORKERS

    @classmethod
    def from_env(cls) -> "Settings":
        """Read settings from the current environment."""
        return cls(
            graph_store_backend=os.getenv("GRAPH_STORE_BACKEND", DEFAULT_BACKEND).lower(),
            log_level=os.getenv("APEXGRAPH_LOG_LEVEL", DEFAULT_LOG_LEVEL).upper(),
            method_scan_lines=_int_from_env(
                "APEXGRAPH_METHOD_SCAN_LINES", DEFAULT_METHOD_SCAN_LINES
            ),
            build_workers=_int_from_env("APEXGRAPH_BUILD_WORKERS", DEFAULT_BUILD_WORKERS),
        )


_settings: Optional[Settings] = None


def get_settings() -> Settings:
    """Return the process-wide settings, reading the environment once."""
    global _settings
    if _settings is None:
        _settings = Settings.from_env()
    return _settings


def reset_settings() -> None:
    """Forget cached settings so the next call re-reads the environment."""
    global _settings
    _settings = None


def configure_logging(level: Optional[str] = None) -> None:
    """
    Install a basic stream handler for scripts.

    The library itself only creates module loggers; applications decide
    where records go.
    """
    level_name = (level or get_settings().log_level).upper()
    logging.basicConfig(level=getattr(logging, level_name, logging.WARNING), format=LOG_FORMAT)
