"""
Configuration loader module.

Loads the optional ``dcshield.json`` file into a validated ShieldConfig.
A missing file yields the defaults; command-line options override values
afterwards.
"""

from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, SecretStr, ValidationError, field_validator

from dcshield.domain.errors import PrerequisiteError

logger = logging.getLogger(__name__)

DEFAULT_CONFIG_FILE = Path("config") / "dcshield.json"


class ShieldConfig(BaseModel):
    """
    Run configuration.

    Secrets are kept as SecretStr so they never end up in logs.
    """

    model_config = ConfigDict(extra="forbid")

    target_host: str = Field(
        default="localhost",
        description="Domain controller to run PowerShell on (localhost = this machine)",
    )
    username: str | None = Field(default=None, description="WinRM user (DOMAIN\\user)")
    password: SecretStr | None = Field(default=None, description="WinRM password")
    operation_timeout_sec: int = Field(
        default=120,
        description="Timeout in seconds for each PowerShell script",
        ge=10,
        le=1800,
    )
    verify_ssl: bool = Field(
        default=True,
        description="Reject WinRM HTTPS endpoints with untrusted certificates",
    )
    log_file: Path = Field(default=Path("output") / "dcshield.log", description="Run log")
    report_dir: Path = Field(default=Path("output"), description="Directory for JSON reports")

    @field_validator("target_host")
    @classmethod
    def validate_target_host(cls, v: str) -> str:
        """Validate host is not empty."""
        if not v or not v.strip():
            raise ValueError("target_host cannot be empty")
        return v.strip()

    def get_password(self) -> str | None:
        """Get the plain text password."""
        return self.password.get_secret_value() if self.password else None  # pylint: disable=no-member


class ConfigLoader:
    """Load and validate the configuration file."""

    def __init__(self, config_file: Path | str | None = None) -> None:
        self.config_file = Path(config_file) if config_file else DEFAULT_CONFIG_FILE

    def load(self, overrides: dict[str, Any] | None = None) -> ShieldConfig:
        """
        Load configuration and apply overrides.

        Args:
            overrides: Values from the command line; None entries are ignored

        Raises:
            PrerequisiteError: The file is unreadable or fails validation
        """
        data: dict[str, Any] = {}
        if self.config_file.exists():
            try:
                with open(self.config_file, "r", encoding="utf-8") as f:
                    data = json.load(f)
            except (OSError, json.JSONDecodeError) as e:
                raise PrerequisiteError(f"Cannot read config {self.config_file}: {e}") from e
            if not isinstance(data, dict):
                raise PrerequisiteError(f"Config {self.config_file} must contain a JSON object")
            logger.debug("Loaded config from %s", self.config_file)
        else:
            logger.debug("Config %s not found, using defaults", self.config_file)

        for key, value in (overrides or {}).items():
            if value is not None:
                data[key] = value

        try:
            return ShieldConfig.model_validate(data)
        except ValidationError as e:
            raise PrerequisiteError(f"Invalid configuration in {self.config_file}: {e}") from e
