"""Configuration management — dataclass with config.json > env > defaults."""

import json
import logging
import os
from dataclasses import dataclass, fields
from pathlib import Path

from .constants import CHAIN_ID, CLOB_BASE_URL, GAMMA_BASE_URL
from .types import Credentials

logger = logging.getLogger(__name__)

_ENV_MAP = {
    "private_key": "POLY_PRIVATE_KEY",
    "creds_file": "POLY_CREDS_FILE",
    "clob_url": "POLY_CLOB_URL",
    "gamma_url": "POLY_GAMMA_URL",
    "chain_id": "POLY_CHAIN_ID",
    "request_timeout": "POLY_REQUEST_TIMEOUT",
    "log_level": "POLY_LOG_LEVEL",
}


@dataclass
class Config:
    # Auth
    private_key: str = ""
    creds_file: str = "creds.json"

    # Endpoints
    clob_url: str = CLOB_BASE_URL
    gamma_url: str = GAMMA_BASE_URL
    chain_id: int = CHAIN_ID
    request_timeout: float = 15.0

    # Logging
    log_level: str = "INFO"

    @classmethod
    def load(cls, config_dir: str) -> "Config":
        config_path = Path(config_dir) / "config.json"
        file_cfg: dict = {}
        if config_path.exists():
            try:
                with open(config_path) as f:
                    file_cfg = json.load(f)
            except (json.JSONDecodeError, IOError) as exc:
                logger.warning("Failed to load %s: %s", config_path, exc)

        kwargs: dict = {}
        field_types = {f.name: f.type for f in fields(cls)}

        for f in fields(cls):
            name = f.name
            if name in file_cfg:
                kwargs[name] = _coerce(file_cfg[name], field_types[name])
            elif name in _ENV_MAP:
                env_val = os.environ.get(_ENV_MAP[name])
                if env_val is not None:
                    kwargs[name] = _coerce(env_val, field_types[name])

        return cls(**kwargs)

    def save(self, config_dir: str) -> None:
        config_path = Path(config_dir) / "config.json"
        data = {f.name: getattr(self, f.name) for f in fields(self)}
        data.pop("private_key", None)  # Never persist the private key
        with open(config_path, "w") as f:
            json.dump(data, f, indent=2)
        logger.info("Config saved to %s", config_path)

    def load_credentials(self, config_dir: str = ".") -> Credentials | None:
        """Load API creds from creds_file if it exists."""
        for path in [self.creds_file, str(Path(config_dir) / self.creds_file)]:
            if path and os.path.exists(path):
                with open(path) as f:
                    creds = Credentials.from_dict(json.load(f))
                logger.info("Loaded API creds from %s", path)
                return creds
        return None

    def save_credentials(self, creds: Credentials, path: str | None = None) -> str:
        """Write creds as JSON (owner read/write only). Returns the path."""
        path = path or self.creds_file
        fd = os.open(path, os.O_WRONLY | os.O_CREAT | os.O_TRUNC, 0o600)
        with os.fdopen(fd, "w") as f:
            json.dump(creds.to_dict(), f, indent=2)
        logger.info("Saved API creds to %s", path)
        return path


def _coerce(value, type_hint):
    if type_hint == "int" or type_hint is int:
        return int(value)
    if type_hint == "float" or type_hint is float:
        return float(value)
    return str(value)
