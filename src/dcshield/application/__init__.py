"""
Application layer package.

Snapshot collection, posture evaluation, the remediation catalog and the
controllers that drive it. Depends on collaborator protocols, not on
PowerShell.
"""

from dcshield.application.shield_service import ShieldService

__all__ = [
    "ShieldService",
]
