"""
Domain layer for DCShield.

Pure data structures, enums, constants and errors. No I/O.
"""

from dcshield.domain.errors import (
    DCShieldError,
    PrerequisiteError,
    CollectionError,
    RemediationActionError,
    PolicyObjectNotFoundError,
    ScriptExecutionError,
)
from dcshield.domain.models import (
    Severity,
    CheckId,
    Finding,
    PrivilegedAccount,
    AdminGroupMember,
    DomainSnapshot,
    DomainInfo,
    ActionOutcome,
    ActionResult,
    ObjectKind,
    ManagedObjectRef,
    ManagedObjectState,
    RunMode,
)

__all__ = [
    "DCShieldError",
    "PrerequisiteError",
    "CollectionError",
    "RemediationActionError",
    "PolicyObjectNotFoundError",
    "ScriptExecutionError",
    "Severity",
    "CheckId",
    "Finding",
    "PrivilegedAccount",
    "AdminGroupMember",
    "DomainSnapshot",
    "DomainInfo",
    "ActionOutcome",
    "ActionResult",
    "ObjectKind",
    "ManagedObjectRef",
    "ManagedObjectState",
    "RunMode",
]
