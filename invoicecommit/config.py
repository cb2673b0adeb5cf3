"""
Configuration module for invoicecommit.

Centralizes client configuration with environment variable support.
Command line flags override these values.
"""

import os
from dataclasses import dataclass
from pathlib import Path
from typing import Optional, Union

from .errors import ConfigurationError

# ============================================================
# Environment Configuration
# ============================================================

DEFAULT_HOST = "https://127.0.0.1:4443"
DEFAULT_IDENTITY_PATH = str(Path.home() / ".invoicecommit" / "identity.json")

ENV_PREFIX = "INVOICECOMMIT_"

LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")


def _env(name: str, default: str) -> str:
    return os.getenv(ENV_PREFIX + name, default)


def _env_flag(name: str, default: bool) -> bool:
    value = os.getenv(ENV_PREFIX + name)
    if value is None:
        return default
    return value.lower() in ("1", "true", "yes")


def _env_float(name: str, default: float) -> float:
    value = os.getenv(ENV_PREFIX + name)
    if value is None:
        return default
    try:
        return float(value)
    except ValueError:
        raise ConfigurationError(f"{ENV_PREFIX}{name} is not a number: {value!r}")


@dataclass
class Settings:
    """Resolved client settings."""
    host: str = DEFAULT_HOST
    identity_path: str = DEFAULT_IDENTITY_PATH
    timeout: float = 30.0
    ca_cert_path: Optional[str] = None
    skip_verify: bool = False
    log_level: str = "WARNING"
    log_json: bool = False

    @classmethod
    def from_env(cls) -> 'Settings':
        """
        Read settings from the environment at call time.

        Raises:
            ConfigurationError: a variable holds an unusable value
        """
        settings = cls(
            host=_env("HOST", DEFAULT_HOST),
            identity_path=_env("IDENTITY", DEFAULT_IDENTITY_PATH),
            timeout=_env_float("TIMEOUT", 30.0),
            ca_cert_path=_env("CA_CERT", "") or None,
            skip_verify=_env_flag("SKIP_VERIFY", False),
            log_level=_env("LOG_LEVEL", "WARNING"),
            log_json=_env_flag("LOG_JSON", False),
        )
        settings.validate()
        return settings

    def validate(self) -> None:
        """
        Raises:
            ConfigurationError: timeout or log level out of range
        """
        if not self.timeout > 0:
            raise ConfigurationError(f"timeout must be positive, got {self.timeout}")
        if self.log_level.upper() not in LOG_LEVELS:
            raise ConfigurationError(
                f"unknown log level {self.log_level!r}; expected one of {', '.join(LOG_LEVELS)}"
            )

    @property
    def tls_verify(self) -> Union[bool, str]:
        """Value for requests' verify argument."""
        if self.skip_verify:
            return False
        return self.ca_cert_path or True
