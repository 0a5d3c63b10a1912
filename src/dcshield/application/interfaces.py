"""
Collaborator interfaces consumed by the application layer.

The application code depends only on these protocols. PowerShell-backed
implementations live in ``dcshield.infrastructure``; in-memory ones are used
by the tests.
"""

from __future__ import annotations

from typing import Any, Protocol

from dcshield.domain.models import (
    AdminGroupMember,
    ManagedObjectRef,
    ManagedObjectState,
    PrivilegedAccount,
    Severity,
)


class SnapshotSource(Protocol):
    """Captures the resultant security policy of the domain controller."""

    def export(self) -> str:
        """Produce the resultant-policy document."""
        ...

    def parse(self, document: str) -> dict[str, Any]:
        """Extract snapshot policy fields from an exported document."""
        ...


class DirectoryQuery(Protocol):
    """Read access to directory membership and hosts."""

    def privileged_accounts(self) -> list[PrivilegedAccount]:
        ...

    def domain_controllers(self) -> list[str]:
        ...

    def admin_group_members(self) -> list[AdminGroupMember]:
        ...


class DirectoryWriter(Protocol):
    """Per-account mutations."""

    def set_logon_targets(self, account_name: str, hosts: list[str]) -> None:
        ...


class PolicyObjectStore(Protocol):
    """
    Managed password-policy and group-policy objects.

    ``delete`` raises PolicyObjectNotFoundError when the object does not exist.
    """

    def find(self, ref: ManagedObjectRef) -> ManagedObjectState | None:
        ...

    def create(
        self,
        ref: ManagedObjectRef,
        values: dict[str, Any],
        link_target: str | None = None,
    ) -> ManagedObjectState:
        ...

    def link(self, ref: ManagedObjectRef, target: str) -> None:
        ...

    def set_value(self, ref: ManagedObjectRef, name: str, value: Any) -> None:
        ...

    def delete(self, ref: ManagedObjectRef) -> None:
        ...


class Reporter(Protocol):
    """Single sink for findings and action outcomes."""

    def record(self, severity: Severity, message: str) -> None:
        ...

    def info(self, message: str) -> None:
        ...


class Confirmer(Protocol):
    """Yes/no decision capability injected into the controllers."""

    def ask(self, title: str, help_text: str) -> bool:
        ...
