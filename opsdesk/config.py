"""
OpsDesk runtime settings.

Loaded from YAML (opsdesk.yaml by default, or $OPSDESK_CONFIG), falling
back to defaults for anything missing.
"""
import logging
import os
import sys
from dataclasses import dataclass, field, fields
from pathlib import Path
from typing import Any, Dict, Optional

import yaml

CONFIG_PATH = Path(__file__).parent.parent / "opsdesk.yaml"


class ConfigError(Exception):
    """Raised when the settings file is unreadable or invalid."""
    pass


def _pick(cls, data: Dict[str, Any]):
    """Build a dataclass from the keys it knows, ignoring the rest."""
    known = {f.name for f in fields(cls)}
    return cls(**{k: v for k, v in (data or {}).items() if k in known})


@dataclass
class GeneratorSettings:
    model: str = "gemini-2.0-flash"
    api_key_env: str = "GEMINI_API_KEY"
    base_url: str = "https://generativelanguage.googleapis.com"
    timeout: float = 60.0


@dataclass
class ServerSettings:
    host: str = "127.0.0.1"
    port: int = 3000


@dataclass
class Settings:
    """Runtime configuration for one OpsDesk process."""

    current_user: str = "u1"       # seeded AppUser acting when a request names none
    log_level: str = "INFO"
    generator: GeneratorSettings = field(default_factory=GeneratorSettings)
    server: ServerSettings = field(default_factory=ServerSettings)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Settings":
        if not isinstance(data, dict):
            raise ConfigError(f"Settings must be a mapping, got {type(data).__name__}")
        settings = cls(
            current_user=str(data.get("current_user", "u1")),
            log_level=str(data.get("log_level", "INFO")).upper(),
            generator=_pick(GeneratorSettings, data.get("generator")),
            server=_pick(ServerSettings, data.get("server")),
        )
        try:
            settings.generator.timeout = float(settings.generator.timeout)
            settings.server.port = int(settings.server.port)
        except (TypeError, ValueError) as e:
            raise ConfigError(f"Invalid numeric setting: {e}") from e
        return settings

    @classmethod
    def load(cls, path: Optional[str] = None) -> "Settings":
        """Load settings from YAML, falling back to defaults when the file is absent."""
        cfg_path = Path(path or os.environ.get("OPSDESK_CONFIG") or CONFIG_PATH)
        if cfg_path.exists():
            try:
                with open(cfg_path, "r") as f:
                    data = yaml.safe_load(f) or {}
            except (OSError, yaml.YAMLError) as e:
                raise ConfigError(f"Cannot read {cfg_path}: {e}") from e
            settings = cls.from_dict(data)
        else:
            settings = cls()

        port = os.environ.get("OPSDESK_PORT")
        if port:
            settings.server.port = int(port)
        return settings


def setup_logging(level: str = "INFO") -> None:
    logging.basicConfig(
        level=getattr(logging, level.upper(), logging.INFO),
        format="%(asctime)s [opsdesk] %(levelname)s: %(message)s",
        handlers=[logging.StreamHandler(sys.stdout)],
    )
