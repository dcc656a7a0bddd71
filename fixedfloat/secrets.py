"""FixedFloat API key pair lookup.

``load_credentials`` checks, in order:
1. FF_API_KEY / FF_API_SECRET in the environment (both must be set)
2. the JSON file given as ``config_path``, else $FF_CONFIG_PATH,
   else ~/.fixedfloat_config.json

A file may hold only one half of the pair; the other half then comes from
the environment. Both clients expose this as ``from_env()``.
"""
import json
import os
from pathlib import Path
from typing import Any, Dict, NamedTuple, Optional

from .errors import ConfigurationError

KEY_ENV = "FF_API_KEY"
SECRET_ENV = "FF_API_SECRET"
PATH_ENV = "FF_CONFIG_PATH"
DEFAULT_FILENAME = ".fixedfloat_config.json"


class FixedFloatCredentials(NamedTuple):
    api_key: str
    api_secret: str


def default_config_path() -> str:
    return os.getenv(PATH_ENV) or str(Path.home() / DEFAULT_FILENAME)


def _read_file(path: Path) -> Dict[str, Any]:
    try:
        with path.open("r", encoding="utf-8") as f:
            cfg = json.load(f)
    except (OSError, ValueError) as e:
        raise ConfigurationError(f"Failed to load config from {path}: {e}") from e
    if not isinstance(cfg, dict):
        raise ConfigurationError(f"Failed to load config from {path}: expected a JSON object")
    return cfg


def load_credentials(config_path: Optional[str] = None) -> FixedFloatCredentials:
    """Find the API key pair.

    Raises:
        ConfigurationError: if the file is unreadable or no complete pair is found
    """
    api_key = os.getenv(KEY_ENV)
    api_secret = os.getenv(SECRET_ENV)
    if api_key and api_secret:
        return FixedFloatCredentials(api_key=api_key, api_secret=api_secret)

    path = Path(config_path or default_config_path())
    if path.exists():
        cfg = _read_file(path)
        api_key = cfg.get("api_key") or api_key
        api_secret = cfg.get("api_secret") or api_secret

    if not api_key or not api_secret:
        raise ConfigurationError(
            "Missing FixedFloat credentials. Provide via:\n"
            f"  - Environment: {KEY_ENV}, {SECRET_ENV}\n"
            f"  - Config file: {path}\n"
            f"  - {PATH_ENV} env var to override config location"
        )
    return FixedFloatCredentials(api_key=api_key, api_secret=api_secret)


def save_config(config_path: str, api_key: str, api_secret: str) -> None:
    """Write the key pair as JSON, readable by the owner only.

    The secret is stored in plaintext.
    """
    path = Path(config_path)
    path.parent.mkdir(parents=True, exist_ok=True)
    with path.open("w", encoding="utf-8") as f:
        json.dump({"api_key": api_key, "api_secret": api_secret}, f, indent=2)
    # no-op on Windows
    path.chmod(0o600)
