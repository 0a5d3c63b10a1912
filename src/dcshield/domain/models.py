"""
Domain models for DCShield.

This module contains the core entities that represent:
- The point-in-time domain snapshot evaluated by the finding engine
- Graded findings produced by the engine
- Outcomes of remediation actions
- Handles to the directory/policy objects the tool itself manages

These models are pure data structures with no I/O dependencies.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum

# Relative identifiers of the domain groups the tool resolves by SID
PRIVILEGED_GROUP_RID = 512   # Domain Admins
ENTERPRISE_GROUP_RID = 519   # Enterprise Admins, forest root domain


# ============================================================================
# Enumerations
# ============================================================================

class Severity(str, Enum):
    """Grade of a finding or action outcome."""
    SUCCESS = "Success"
    WARNING = "Warning"
    ERROR = "Error"

    def is_discrepant(self) -> bool:
        """Check if this severity needs operator attention."""
        return self in (Severity.WARNING, Severity.ERROR)


class CheckId(str, Enum):
    """
    Identifiers of the fixed check set.

    Declaration order is the order findings are emitted in.
    """
    PRIVILEGED_ACCOUNT_COUNT = "privileged-account-count"
    PASSWORD_HISTORY = "password-history"
    LOCKOUT_THRESHOLD = "lockout-threshold"
    PASSWORD_COMPLEXITY = "password-complexity"
    MIN_PASSWORD_LENGTH = "min-password-length"
    LOGON_RESTRICTION = "logon-restriction"
    NULL_SESSIONS = "null-sessions"
    ANONYMOUS_SID_TRANSLATION = "anonymous-sid-translation"
    ADMIN_GROUP_MEMBERSHIP = "admin-group-membership"


class ActionOutcome(str, Enum):
    """Closed set of results for a remediation ensure/remove call."""
    APPLIED = "applied"      # Directory/policy state was changed
    UNCHANGED = "unchanged"  # Already in the desired state, nothing written
    SKIPPED = "skipped"      # Operator declined, nothing written
    FAILED = "failed"


class ObjectKind(str, Enum):
    """Kind of managed policy object."""
    PASSWORD_POLICY = "password_policy"  # Fine-grained password policy (PSO)
    GROUP_POLICY = "group_policy"        # Group Policy Object (GPO)


class RunMode(str, Enum):
    """Mode selected on the command line."""
    EVALUATE = "evaluate"
    REMEDIATE = "remediate"
    FORCED = "deathblossom"
    UNDO = "undo"
    HELP = "help"


# ============================================================================
# Snapshot
# ============================================================================

def short_host_name(host: str) -> str:
    """Lowercased host name with any domain suffix stripped."""
    return host.strip().split(".", 1)[0].lower()


@dataclass(frozen=True)
class PrivilegedAccount:
    """
    Member of the domain's highest-privilege group.

    Attributes:
        account_name: sAMAccountName of the account
        allowed_logon_targets: Hosts the account may log on to.
            Empty means unrestricted.
    """
    account_name: str
    allowed_logon_targets: frozenset[str] = frozenset()

    @property
    def is_unrestricted(self) -> bool:
        return not self.allowed_logon_targets

    def short_logon_targets(self) -> frozenset[str]:
        return frozenset(short_host_name(h) for h in self.allowed_logon_targets if h.strip())


@dataclass(frozen=True)
class AdminGroupMember:
    """Member of the built-in Administrators group."""
    account_name: str
    is_well_known_administrator: bool = False
    is_member_of_privileged_or_enterprise_group: bool = False

    @property
    def is_expected(self) -> bool:
        return (
            self.is_well_known_administrator
            or self.is_member_of_privileged_or_enterprise_group
        )


@dataclass(frozen=True)
class DomainSnapshot:
    """
    Immutable facts captured once at the start of a run.

    Numeric policy fields and the two security options are ``None`` when the
    resultant policy did not contain them or they could not be parsed.
    """
    min_password_age: int | None = None
    lockout_threshold: int | None = None
    min_password_length: int | None = None
    complexity_enabled: bool | None = None
    password_history_size: int | None = None
    privileged_accounts: tuple[PrivilegedAccount, ...] = ()
    domain_controllers: frozenset[str] = frozenset()
    null_sessions_restricted: bool | None = None
    anonymous_sid_translation_restricted: bool | None = None
    admin_group_members: tuple[AdminGroupMember, ...] = ()

    def short_domain_controllers(self) -> frozenset[str]:
        return frozenset(short_host_name(h) for h in self.domain_controllers if h.strip())


@dataclass(frozen=True)
class DomainInfo:
    """Facts about the domain resolved by the prerequisite probe."""
    dns_root: str
    distinguished_name: str
    domain_sid: str
    domain_controllers_container: str
    pdc_emulator: str = ""
    forest_root_sid: str = ""

    @property
    def privileged_group_sid(self) -> str:
        return f"{self.domain_sid}-{PRIVILEGED_GROUP_RID}"

    @property
    def enterprise_group_sid(self) -> str:
        # Enterprise Admins lives in the forest root domain
        return f"{self.forest_root_sid or self.domain_sid}-{ENTERPRISE_GROUP_RID}"


# ============================================================================
# Findings and outcomes
# ============================================================================

@dataclass(frozen=True)
class Finding:
    """Graded result of one check."""
    severity: Severity
    check_id: CheckId
    message: str


@dataclass(frozen=True)
class ActionResult:
    """
    Result of a single remediation ensure/remove call.

    Use the constructors (``applied_change``, ``unchanged``, ``skipped_by_operator``,
    ``failure``) rather than building instances by hand.
    """
    outcome: ActionOutcome
    message: str = ""
    error: str | None = None

    @property
    def applied(self) -> bool:
        return self.outcome is ActionOutcome.APPLIED

    @property
    def skipped(self) -> bool:
        return self.outcome is ActionOutcome.SKIPPED

    @property
    def failed(self) -> bool:
        return self.outcome is ActionOutcome.FAILED

    @classmethod
    def applied_change(cls, message: str) -> ActionResult:
        return cls(ActionOutcome.APPLIED, message)

    @classmethod
    def unchanged(cls, message: str) -> ActionResult:
        return cls(ActionOutcome.UNCHANGED, message)

    @classmethod
    def skipped_by_operator(cls, message: str) -> ActionResult:
        return cls(ActionOutcome.SKIPPED, message)

    @classmethod
    def failure(cls, message: str, error: str) -> ActionResult:
        return cls(ActionOutcome.FAILED, message, error)


# ============================================================================
# Managed objects
# ============================================================================

@dataclass(frozen=True)
class ManagedObjectRef:
    """Handle to a directory/policy object created by this tool, located by name."""
    kind: ObjectKind
    name: str


@dataclass
class ManagedObjectState:
    """
    Current state of a managed object as read back from the store.

    Attributes:
        ref: Handle of the object
        values: Named settings currently stored in the object
        links: Link targets (group for a PSO, container DN for a GPO)
    """
    ref: ManagedObjectRef
    values: dict[str, object] = field(default_factory=dict)
    links: set[str] = field(default_factory=set)

    def is_linked_to(self, target: str) -> bool:
        return target.lower() in {link.lower() for link in self.links}
