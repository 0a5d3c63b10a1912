"""
Prerequisite probe.

One script checks connectivity, elevation, the required modules and
domain reachability before anything is read or written.
"""

from __future__ import annotations

import logging

from dcshield.domain.errors import PrerequisiteError, ScriptExecutionError
from dcshield.domain.models import DomainInfo
from dcshield.infrastructure.powershell.runner import ScriptRunner

logger = logging.getLogger(__name__)


class PrerequisiteChecker:
    """Gates every run mode."""

    def __init__(self, runner: ScriptRunner) -> None:
        self.runner = runner

    def check(self) -> DomainInfo:
        """
        Verify prerequisites and resolve the domain.

        Raises:
            PrerequisiteError: Any prerequisite is not met
        """
        try:
            data = self.runner.run_json("prerequisites")
        except ScriptExecutionError as e:
            raise PrerequisiteError(f"PowerShell host not reachable or probe failed: {e}") from e

        if not isinstance(data, dict):
            raise PrerequisiteError("Prerequisite probe returned no data")

        problems = []
        if not data.get("isAdmin"):
            problems.append("not running as an elevated administrator")
        if not data.get("hasActiveDirectoryModule"):
            problems.append("ActiveDirectory PowerShell module is not installed")
        if not data.get("hasGroupPolicyModule"):
            problems.append("GroupPolicy PowerShell module is not installed")
        domain = data.get("domain")
        if data.get("hasActiveDirectoryModule") and not domain:
            problems.append(f"domain not reachable: {data.get('domainError') or 'unknown error'}")

        if problems:
            raise PrerequisiteError("; ".join(problems))

        info = DomainInfo(
            dns_root=domain["dnsRoot"],
            distinguished_name=domain["distinguishedName"],
            domain_sid=domain["domainSid"],
            domain_controllers_container=domain["domainControllersContainer"],
            pdc_emulator=domain.get("pdcEmulator") or "",
            forest_root_sid=domain.get("forestRootSid") or "",
        )
        logger.info("Prerequisites met for domain %s (%s)", info.dns_root, info.domain_sid)
        return info
