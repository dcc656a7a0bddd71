"""Configuration loader for the FixedFloat client.

Supports YAML format with environment variable interpolation.
"""
import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Optional

import yaml

from .api import BASE_URL, RATES_URL


@dataclass
class ApiConfig:
    """FixedFloat endpoint settings."""
    base_url: str = BASE_URL
    rates_url: str = RATES_URL
    timeout: Optional[float] = None  # seconds; None leaves requests unbounded


@dataclass
class LoggingConfig:
    """Log sink settings passed to setup_logging."""
    log_file: Optional[str] = "fixedfloat.log"
    log_level: str = "INFO"
    enable_console: bool = True


@dataclass
class ClientConfig:
    """Complete client configuration."""
    api: ApiConfig = field(default_factory=ApiConfig)
    logging: LoggingConfig = field(default_factory=LoggingConfig)

    @classmethod
    def from_yaml(cls, config_path: str) -> "ClientConfig":
        """Load configuration from YAML file with env var interpolation.

        Args:
            config_path: Path to YAML config file

        Returns:
            ClientConfig instance

        Example YAML:
            api:
              base_url: "${FF_BASE_URL}"
              timeout: 15
            logging:
              log_file: logs/fixedfloat.log
              log_level: DEBUG
        """
        config_file = Path(config_path)
        if not config_file.exists():
            raise FileNotFoundError(f"Config file not found: {config_path}")

        with config_file.open("r") as f:
            raw = f.read()

        # Interpolate environment variables: ${VAR_NAME}
        for key, value in os.environ.items():
            raw = raw.replace(f"${{{key}}}", value)

        data = yaml.safe_load(raw) or {}

        return cls(
            api=ApiConfig(**(data.get("api") or {})),
            logging=LoggingConfig(**(data.get("logging") or {})),
        )

    def to_yaml(self, output_path: str) -> None:
        """Save configuration to YAML file."""
        data = {
            "api": {
                "base_url": self.api.base_url,
                "rates_url": self.api.rates_url,
                "timeout": self.api.timeout,
            },
            "logging": {
                "log_file": self.logging.log_file,
                "log_level": self.logging.log_level,
                "enable_console": self.logging.enable_console,
            },
        }

        output_file = Path(output_path)
        output_file.parent.mkdir(parents=True, exist_ok=True)
        with output_file.open("w") as f:
            yaml.dump(data, f, default_flow_style=False, sort_keys=False)
