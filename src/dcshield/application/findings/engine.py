"""
Finding Engine - stateless posture evaluation.

Grades a DomainSnapshot against the fixed check set. Every check emits exactly
one finding, in declaration order. Unknown snapshot fields never raise: they
are graded as a failing condition.
"""

from __future__ import annotations

import logging
from typing import Callable

from dcshield.domain.constants import (
    ERROR_BELOW_PASSWORD_LENGTH,
    MAX_LOCKOUT_THRESHOLD,
    MAX_PRIVILEGED_ACCOUNTS,
    MIN_PASSWORD_HISTORY,
    MIN_PRIVILEGED_ACCOUNTS,
    WARNING_BELOW_PASSWORD_LENGTH,
)
from dcshield.domain.models import CheckId, DomainSnapshot, Finding, Severity

logger = logging.getLogger(__name__)


class FindingEngine:
    """
    Rule evaluator over a domain snapshot.

    The engine holds no state between calls; the same snapshot always yields
    the same findings.
    """

    def __init__(self) -> None:
        self._checks: list[Callable[[DomainSnapshot], Finding]] = [
            self.check_privileged_account_count,
            self.check_password_history,
            self.check_lockout_threshold,
            self.check_password_complexity,
            self.check_min_password_length,
            self.check_logon_restriction,
            self.check_null_sessions,
            self.check_anonymous_sid_translation,
            self.check_admin_group_membership,
        ]

    def evaluate(self, snapshot: DomainSnapshot) -> list[Finding]:
        """
        Evaluate all checks.

        Args:
            snapshot: Facts captured at run start

        Returns:
            One finding per check, in the fixed check order
        """
        findings = [check(snapshot) for check in self._checks]
        discrepant = sum(1 for f in findings if f.severity.is_discrepant())
        logger.debug("Evaluated %d checks, %d discrepant", len(findings), discrepant)
        return findings

    # ------------------------------------------------------------------
    # Password / account policy
    # ------------------------------------------------------------------

    def check_privileged_account_count(self, snapshot: DomainSnapshot) -> Finding:
        count = len(snapshot.privileged_accounts)
        check = CheckId.PRIVILEGED_ACCOUNT_COUNT
        if count < MIN_PRIVILEGED_ACCOUNTS:
            return Finding(
                Severity.WARNING, check,
                f"Only {count} privileged account(s) found. Keep at least "
                f"{MIN_PRIVILEGED_ACCOUNTS} so a locked-out administrator can be recovered.",
            )
        if count > MAX_PRIVILEGED_ACCOUNTS:
            return Finding(
                Severity.WARNING, check,
                f"{count} privileged accounts found. More than {MAX_PRIVILEGED_ACCOUNTS} "
                "widens the credential-theft surface; review group membership.",
            )
        return Finding(Severity.SUCCESS, check, f"{count} privileged accounts found.")

    def check_password_history(self, snapshot: DomainSnapshot) -> Finding:
        history = snapshot.password_history_size
        threshold = snapshot.lockout_threshold
        check = CheckId.PASSWORD_HISTORY
        if history is None:
            return Finding(
                Severity.WARNING, check,
                "Password history size could not be determined from the resultant policy.",
            )
        if threshold is None:
            return Finding(
                Severity.WARNING, check,
                f"Password history is {history}, but it cannot be compared with an "
                "unknown lockout threshold.",
            )
        # First match wins: the two warnings are never reported together
        if history < threshold:
            return Finding(
                Severity.WARNING, check,
                f"Password history ({history}) is lower than the lockout threshold "
                f"({threshold}); previous passwords can be cycled back in.",
            )
        if history < MIN_PASSWORD_HISTORY:
            return Finding(
                Severity.WARNING, check,
                f"Password history is {history}; at least {MIN_PASSWORD_HISTORY} "
                "remembered passwords are recommended.",
            )
        return Finding(Severity.SUCCESS, check, f"Password history is {history}.")

    def check_lockout_threshold(self, snapshot: DomainSnapshot) -> Finding:
        threshold = snapshot.lockout_threshold
        check = CheckId.LOCKOUT_THRESHOLD
        if threshold is None:
            return Finding(
                Severity.ERROR, check,
                "Account lockout threshold could not be determined; "
                "treating lockout as disabled.",
            )
        if threshold == 0:
            return Finding(
                Severity.ERROR, check,
                "Account lockout is disabled (threshold 0); passwords can be "
                "brute-forced without limit.",
            )
        if threshold > MAX_LOCKOUT_THRESHOLD:
            return Finding(
                Severity.WARNING, check,
                f"Account lockout threshold is {threshold}; more than "
                f"{MAX_LOCKOUT_THRESHOLD} attempts allows password spraying.",
            )
        return Finding(
            Severity.SUCCESS, check, f"Account lockout threshold is {threshold}."
        )

    def check_password_complexity(self, snapshot: DomainSnapshot) -> Finding:
        check = CheckId.PASSWORD_COMPLEXITY
        if snapshot.complexity_enabled is True:
            return Finding(Severity.SUCCESS, check, "Password complexity is enabled.")
        if snapshot.complexity_enabled is None:
            return Finding(
                Severity.WARNING, check,
                "Password complexity setting could not be determined.",
            )
        return Finding(Severity.WARNING, check, "Password complexity is disabled.")

    def check_min_password_length(self, snapshot: DomainSnapshot) -> Finding:
        length = snapshot.min_password_length
        check = CheckId.MIN_PASSWORD_LENGTH
        if length is None:
            return Finding(
                Severity.ERROR, check,
                "Minimum password length could not be determined.",
            )
        if length < ERROR_BELOW_PASSWORD_LENGTH:
            return Finding(
                Severity.ERROR, check,
                f"Minimum password length is {length}; passwords shorter than "
                f"{ERROR_BELOW_PASSWORD_LENGTH} characters are trivially cracked.",
            )
        if length < WARNING_BELOW_PASSWORD_LENGTH:
            return Finding(
                Severity.WARNING, check,
                f"Minimum password length is {length}; "
                f"{WARNING_BELOW_PASSWORD_LENGTH} or more is recommended.",
            )
        return Finding(
            Severity.SUCCESS, check, f"Minimum password length is {length}."
        )

    # ------------------------------------------------------------------
    # Privileged account exposure
    # ------------------------------------------------------------------

    def check_logon_restriction(self, snapshot: DomainSnapshot) -> Finding:
        check = CheckId.LOGON_RESTRICTION
        dc_hosts = snapshot.short_domain_controllers()
        offenders = [
            account.account_name
            for account in snapshot.privileged_accounts
            if account.is_unrestricted or account.short_logon_targets() != dc_hosts
        ]
        if offenders:
            return Finding(
                Severity.ERROR, check,
                "Privileged accounts able to log on to hosts other than the domain "
                f"controllers: {', '.join(offenders)}",
            )
        return Finding(
            Severity.SUCCESS, check,
            "All privileged accounts are restricted to the domain controllers.",
        )

    # ------------------------------------------------------------------
    # Domain controller exposure
    # ------------------------------------------------------------------

    def check_null_sessions(self, snapshot: DomainSnapshot) -> Finding:
        check = CheckId.NULL_SESSIONS
        restricted = snapshot.null_sessions_restricted
        if restricted is None:
            return Finding(
                Severity.ERROR, check,
                "Anonymous access to named pipes and shares is not restricted by policy.",
            )
        if restricted:
            return Finding(
                Severity.SUCCESS, check,
                "Anonymous access to named pipes and shares is restricted.",
            )
        return Finding(
            Severity.ERROR, check,
            "Null sessions are allowed: anonymous access to named pipes and "
            "shares is not restricted.",
        )

    def check_anonymous_sid_translation(self, snapshot: DomainSnapshot) -> Finding:
        check = CheckId.ANONYMOUS_SID_TRANSLATION
        restricted = snapshot.anonymous_sid_translation_restricted
        if restricted is None:
            return Finding(
                Severity.WARNING, check,
                "Anonymous SID/Name translation is not configured by policy.",
            )
        if restricted:
            return Finding(
                Severity.SUCCESS, check, "Anonymous SID/Name translation is disabled."
            )
        return Finding(
            Severity.WARNING, check,
            "Anonymous SID/Name translation is enabled; account names can be "
            "enumerated without credentials.",
        )

    def check_admin_group_membership(self, snapshot: DomainSnapshot) -> Finding:
        check = CheckId.ADMIN_GROUP_MEMBERSHIP
        offenders = [
            member.account_name
            for member in snapshot.admin_group_members
            if not member.is_expected
        ]
        if offenders:
            return Finding(
                Severity.WARNING, check,
                "Built-in Administrators contains members outside the privileged "
                f"and enterprise-privileged groups: {', '.join(offenders)}",
            )
        return Finding(
            Severity.SUCCESS, check,
            "Built-in Administrators membership is limited to expected accounts.",
        )
