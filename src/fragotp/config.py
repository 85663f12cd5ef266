"""Configuration management for fragotp."""

import os
import tomllib
from pathlib import Path
from dataclasses import dataclass, fields
from typing import Optional
from xdg_base_dirs import xdg_config_home

from . import totp
from .exceptions import InvalidParameterError
from .otpauth import DEFAULT_QR_SERVICE_URL


@dataclass
class Config:
    """Application configuration."""

    time_step: int = 30
    digits: int = 6
    algorithm: str = "SHA1"
    issuer: str = "GitHub"
    qr_service_url: str = DEFAULT_QR_SERVICE_URL
    clipboard_command: str = "wl-copy"
    close_on_copy: bool = False
    frame_rate: int = 30
    log_level: str = "WARNING"

    @classmethod
    def load(cls, config_path: Optional[Path] = None) -> "Config":
        """Load configuration from file.

        Unknown keys are ignored; a missing file gives the defaults.

        Args:
            config_path: Path to config file, defaults to get_config_path()

        Returns:
            Config instance with loaded settings

        Raises:
            InvalidParameterError: If the file sets an unusable time_step
                or digits
        """
        if config_path is None:
            config_path = get_config_path()

        config = cls()

        if config_path.exists():
            with open(config_path, "rb") as f:
                data = tomllib.load(f)

            for field in fields(cls):
                if field.name in data:
                    setattr(config, field.name, data[field.name])

            try:
                config.validate()
            except InvalidParameterError as e:
                raise InvalidParameterError(f"{config_path}: {e}") from e

        return config

    def validate(self) -> None:
        """Check the code settings.

        Raises:
            InvalidParameterError: If time_step or digits is out of range
        """
        totp.check_time_step(self.time_step)
        totp.check_digits(self.digits)

    @property
    def frame_interval(self) -> float:
        """Seconds between two countdown frames."""
        return 1 / max(self.frame_rate, 1)


def get_config_path() -> Path:
    """Get the config file path.

    Lookup order:
    1. FRAGOTP_CONFIG environment variable
    2. XDG_CONFIG_HOME/fragotp/config.toml

    Returns:
        Path of the config file, which may not exist
    """
    env_config = os.environ.get("FRAGOTP_CONFIG")
    if env_config:
        return Path(env_config)

    return xdg_config_home() / "fragotp" / "config.toml"
