"""
Remediation catalog and controllers.
"""

from dcshield.application.remediation.catalog import (
    RemediationAction,
    PasswordPolicyAction,
    LogonRestrictionAction,
    NullSessionAction,
    CredentialCachingAction,
    build_catalog,
)
from dcshield.application.remediation.confirm import AlwaysConfirm, ScriptedConfirmer
from dcshield.application.remediation.controller import (
    RemediationController,
    UndoController,
    RunSummary,
)

__all__ = [
    "RemediationAction",
    "PasswordPolicyAction",
    "LogonRestrictionAction",
    "NullSessionAction",
    "CredentialCachingAction",
    "build_catalog",
    "AlwaysConfirm",
    "ScriptedConfirmer",
    "RemediationController",
    "UndoController",
    "RunSummary",
]
