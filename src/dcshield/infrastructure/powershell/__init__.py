"""
PowerShell execution and script templates.
"""

from dcshield.infrastructure.powershell.client import ConnectionConfig, PowerShellClient, PSResult
from dcshield.infrastructure.powershell.runner import ScriptRunner, ps_quote, ps_value

__all__ = [
    "ConnectionConfig",
    "PowerShellClient",
    "PSResult",
    "ScriptRunner",
    "ps_quote",
    "ps_value",
]
