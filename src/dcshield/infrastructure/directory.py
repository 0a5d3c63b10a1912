"""
PowerShell-backed directory queries and per-account writes.

Groups are resolved by well-known SID so the queries work on domains with
localized group names.
"""

from __future__ import annotations

import logging

from dcshield.domain.constants import BUILTIN_ADMINISTRATORS_SID, WELL_KNOWN_ADMINISTRATOR_RID
from dcshield.domain.models import AdminGroupMember, DomainInfo, PrivilegedAccount
from dcshield.infrastructure.powershell.runner import ScriptRunner, as_list

logger = logging.getLogger(__name__)


def parse_logon_workstations(value: str | None) -> frozenset[str]:
    """``userWorkstations`` is a comma-separated host list; empty means unrestricted."""
    if not value:
        return frozenset()
    return frozenset(h.strip() for h in value.split(",") if h.strip())


class PowerShellDirectory:
    """DirectoryQuery and DirectoryWriter over the ActiveDirectory module."""

    def __init__(self, runner: ScriptRunner, domain: DomainInfo) -> None:
        self.runner = runner
        self.domain = domain

    def privileged_accounts(self) -> list[PrivilegedAccount]:
        rows = as_list(self.runner.run_json(
            "directory_query",
            query="privileged_accounts",
            group_sid=self.domain.privileged_group_sid,
        ))
        accounts = [
            PrivilegedAccount(
                account_name=row.get("name", ""),
                allowed_logon_targets=parse_logon_workstations(row.get("logonWorkstations")),
            )
            for row in rows
        ]
        # Recursive expansion can list a user once per nested path
        unique = list({a.account_name.lower(): a for a in accounts}.values())
        return sorted(unique, key=lambda a: a.account_name.lower())

    def domain_controllers(self) -> list[str]:
        rows = as_list(self.runner.run_json("directory_query", query="domain_controllers"))
        return sorted(str(host) for host in rows if host)

    def admin_group_members(self) -> list[AdminGroupMember]:
        rows = as_list(self.runner.run_json(
            "directory_query",
            query="admin_group_members",
            admin_group_sid=BUILTIN_ADMINISTRATORS_SID,
            privileged_sids=[self.domain.privileged_group_sid, self.domain.enterprise_group_sid],
        ))
        administrator_sid = f"{self.domain.domain_sid}-{WELL_KNOWN_ADMINISTRATOR_RID}"
        return [
            AdminGroupMember(
                account_name=row.get("name") or row.get("sid", ""),
                is_well_known_administrator=row.get("sid") == administrator_sid,
                is_member_of_privileged_or_enterprise_group=bool(row.get("privilegedMember")),
            )
            for row in rows
        ]

    def set_logon_targets(self, account_name: str, hosts: list[str]) -> None:
        logger.info("Setting logon targets of %s to %s", account_name, ",".join(hosts))
        self.runner.run_json("set_logon_targets", account=account_name, hosts=hosts)
