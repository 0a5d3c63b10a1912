"""
Fixed names, thresholds and desired settings.

Managed object names are derived from TOOL_PREFIX and are never configurable:
removal relocates objects by name alone.
"""

from dcshield.domain.models import ManagedObjectRef, ObjectKind

TOOL_PREFIX = "DCShield"

PASSWORD_POLICY_REF = ManagedObjectRef(
    ObjectKind.PASSWORD_POLICY, f"{TOOL_PREFIX}-PrivilegedAccounts-PSO"
)
DC_POLICY_REF = ManagedObjectRef(
    ObjectKind.GROUP_POLICY, f"{TOOL_PREFIX}-DomainControllers-Hardening"
)

# Well-known SIDs / RIDs
BUILTIN_ADMINISTRATORS_SID = "S-1-5-32-544"
WELL_KNOWN_ADMINISTRATOR_RID = 500

# ----------------------------------------------------------------------------
# Finding thresholds
# ----------------------------------------------------------------------------
MIN_PRIVILEGED_ACCOUNTS = 2
MAX_PRIVILEGED_ACCOUNTS = 10
MIN_PASSWORD_HISTORY = 10
MAX_LOCKOUT_THRESHOLD = 10
ERROR_BELOW_PASSWORD_LENGTH = 9
WARNING_BELOW_PASSWORD_LENGTH = 12

# ----------------------------------------------------------------------------
# Fine-grained password policy applied to privileged accounts
# ----------------------------------------------------------------------------
PASSWORD_POLICY_PRECEDENCE = 1
PASSWORD_POLICY_SETTINGS: dict[str, object] = {
    "MinPasswordLength": 12,
    "ComplexityEnabled": True,
    "LockoutThreshold": 5,
    "LockoutObservationWindow": "1.00:00:00",
    # Ten years: locked accounts stay locked until an administrator unlocks them
    "LockoutDuration": "3650.00:00:00",
    "PasswordHistoryCount": 10,
    "MinPasswordAge": "3.00:00:00",
    "MaxPasswordAge": "30.00:00:00",
    "ReversibleEncryptionEnabled": False,
}

# ----------------------------------------------------------------------------
# Registry-based settings written into the DC policy object
# ----------------------------------------------------------------------------
LANMAN_PARAMETERS_KEY = r"HKLM\System\CurrentControlSet\Services\LanManServer\Parameters"
LSA_KEY = r"HKLM\System\CurrentControlSet\Control\Lsa"

NULL_SESSION_SETTINGS: dict[str, int] = {
    rf"{LANMAN_PARAMETERS_KEY}\RestrictNullSessAccess": 1,
    rf"{LSA_KEY}\RestrictAnonymousSAM": 1,
    rf"{LSA_KEY}\RestrictAnonymous": 1,
}

CREDENTIAL_CACHING_SETTINGS: dict[str, int] = {
    rf"{LSA_KEY}\DisableDomainCreds": 1,
}

POLICY_REFRESH_NOTICE = (
    "Changes take effect after the next Group Policy refresh cycle "
    "(run 'gpupdate /force' on the domain controllers to apply them now)."
)
