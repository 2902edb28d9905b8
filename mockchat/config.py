import json
import logging
import os
from pathlib import Path
from typing import Literal, Optional

from pydantic import BaseModel, ValidationError

logger = logging.getLogger(__name__)


DEFAULT_TONE = "Default assistant behavior"
CONCISE_TONE = "Be concise and professional"
FRIENDLY_TONE = "Be friendly and casual"

_TONES: list[str] = [DEFAULT_TONE, CONCISE_TONE, FRIENDLY_TONE]

# Environments that expose the dev-only routes (store wipe)
DEV_ENVIRONMENTS = {"development", "dev", "local", "test"}


class AppConfig(BaseModel):
    host: str = "127.0.0.1"
    port: int = 4000
    api_base_url: str = "http://localhost:4000"  # Handed to the browser client
    environment: str = "development"
    store_scope: Literal["user", "global"] = "user"
    stream_interval_ms: int = 120  # Delay between streamed tokens
    cors_origins: list[str] = [
        "http://localhost:5173",     # Vite dev server
        "http://127.0.0.1:5173",
    ]
    log_level: str = "INFO"
    tones: list[str] = _TONES

    @property
    def is_dev(self) -> bool:
        return self.environment.lower() in DEV_ENVIRONMENTS

    @property
    def requires_user_id(self) -> bool:
        return self.store_scope == "user"


_config_dir = Path(os.environ.get("MOCKCHAT_CONFIG_DIR", Path.home() / ".mockchat"))
_config_file = _config_dir / "config.json"

# Environment variable -> config field
_ENV_OVERRIDES: dict[str, str] = {
    "HOST": "host",
    "PORT": "port",
    "API_BASE_URL": "api_base_url",
    "MOCKCHAT_ENV": "environment",
    "MOCKCHAT_STORE_SCOPE": "store_scope",
    "MOCKCHAT_STREAM_INTERVAL_MS": "stream_interval_ms",
    "LOG_LEVEL": "log_level",
}


def _read_config_file(path: Path) -> dict:
    if not path.exists():
        return {}
    try:
        data = json.loads(path.read_text(encoding="utf-8"))
    except (json.JSONDecodeError, OSError):
        logger.warning("Failed to load %s, using defaults", path)
        return {}
    if not isinstance(data, dict):
        logger.warning("Ignoring %s: expected a JSON object", path)
        return {}
    return data


def _apply_env_overrides(data: dict, environ: Optional[dict] = None) -> dict:
    environ = os.environ if environ is None else environ
    for env_name, field in _ENV_OVERRIDES.items():
        value = environ.get(env_name)
        if value:
            data[field] = value
    return data


def load_config(path: Optional[Path] = None, environ: Optional[dict] = None) -> AppConfig:
    """Build the config from config.json (if present) plus environment overrides."""
    data = _read_config_file(path or _config_file)
    data = _apply_env_overrides(data, environ)
    try:
        return AppConfig(**data)
    except ValidationError as e:
        logger.error("Invalid configuration, falling back to defaults: %s", e)
        return AppConfig()


_current_config: Optional[AppConfig] = None


def get_config() -> AppConfig:
    global _current_config
    if _current_config is None:
        _current_config = load_config()
    return _current_config
