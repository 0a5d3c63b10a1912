"""
Infrastructure layer package.

Contains all I/O and external system integrations:
- PowerShell execution, local or over WinRM (powershell/)
- Resultant policy export and parsing
- Directory queries and policy object store
- Configuration file loading
- Logging setup
"""

from dcshield.infrastructure.config_loader import ConfigLoader, ShieldConfig
from dcshield.infrastructure.logging_config import setup_logging

__all__ = [
    "ConfigLoader",
    "ShieldConfig",
    "setup_logging",
]
