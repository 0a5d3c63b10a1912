"""
Remediation Catalog.

The fixed set of hardening actions. Each action exposes an idempotent
``ensure`` and, where the change is an object the tool owns, a ``remove``
that relocates that object by its fixed name.
"""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from typing import Any, ClassVar

from dcshield.application.interfaces import (
    Confirmer,
    DirectoryWriter,
    PolicyObjectStore,
)
from dcshield.domain.constants import (
    CREDENTIAL_CACHING_SETTINGS,
    DC_POLICY_REF,
    NULL_SESSION_SETTINGS,
    PASSWORD_POLICY_REF,
    PASSWORD_POLICY_SETTINGS,
)
from dcshield.domain.errors import PolicyObjectNotFoundError, RemediationActionError
from dcshield.domain.models import (
    ActionResult,
    DomainInfo,
    DomainSnapshot,
    ManagedObjectRef,
    PrivilegedAccount,
)

logger = logging.getLogger(__name__)


class RemediationAction(ABC):
    """
    Abstract base for catalog actions.

    Subclasses set ``action_id``, ``title`` and the two help texts, and
    ``managed_ref`` when the action owns a policy object.
    """

    action_id: ClassVar[str]
    title: ClassVar[str]
    help_yes: ClassVar[str]
    help_no: ClassVar[str]
    managed_ref: ClassVar[ManagedObjectRef | None] = None

    def __init__(self, store: PolicyObjectStore, domain: DomainInfo) -> None:
        self.store = store
        self.domain = domain

    @property
    def reversible(self) -> bool:
        return self.managed_ref is not None

    def help_text(self) -> str:
        """Help shown before the operator answers."""
        return f"[Yes] {self.help_yes}\n[No]  {self.help_no}"

    @abstractmethod
    def ensure(self, confirm: bool, confirmer: Confirmer | None = None) -> ActionResult:
        """
        Converge the domain to the desired state.

        Args:
            confirm: Ask nested questions through ``confirmer`` where the action has any
            confirmer: Decision capability used when ``confirm`` is True

        Raises:
            RemediationActionError: The action cannot be applied safely
        """

    def remove(self) -> ActionResult:
        """Delete the managed object. Absence counts as success."""
        if self.managed_ref is None:
            return ActionResult.unchanged(f"{self.title}: no managed object to remove")

        try:
            self.store.delete(self.managed_ref)
        except PolicyObjectNotFoundError:
            logger.info("Managed object %s not present", self.managed_ref.name)
            return ActionResult.unchanged(f"{self.managed_ref.name} not present, nothing to remove")
        logger.info("Deleted managed object %s", self.managed_ref.name)
        return ActionResult.applied_change(f"Removed {self.managed_ref.name}")


class PasswordPolicyAction(RemediationAction):
    """Fine-grained password policy applied to the privileged-accounts group."""

    action_id = "privileged-password-policy"
    title = "Privileged account password policy"
    help_yes = (
        "Create the fine-grained password policy "
        f"'{PASSWORD_POLICY_REF.name}' (minimum length 12, complexity on, lockout "
        "after 5 attempts in 24h until an administrator unlocks, history 10, "
        "minimum age 3 days, maximum age 30 days, no reversible encryption) and "
        "apply it to the privileged-accounts group."
    )
    help_no = "Leave privileged accounts on the domain-wide password policy."
    managed_ref = PASSWORD_POLICY_REF

    link_help = (
        "Apply the policy to the privileged-accounts group now. Answering no "
        "deletes the policy object that was just created."
    )

    def ensure(self, confirm: bool, confirmer: Confirmer | None = None) -> ActionResult:
        ref = self.managed_ref
        group = self.domain.privileged_group_sid
        state = self.store.find(ref)
        created = state is None
        changed: list[str] = []

        if state is None:
            state = self.store.create(ref, dict(PASSWORD_POLICY_SETTINGS))
            logger.info("Created password policy %s", ref.name)
        else:
            for name, desired in PASSWORD_POLICY_SETTINGS.items():
                if state.values.get(name) != desired:
                    self.store.set_value(ref, name, desired)
                    changed.append(name)

        linked = False
        if not state.is_linked_to(group):
            if confirm and confirmer is not None:
                if not confirmer.ask(f"Link {ref.name} to the privileged-accounts group?", self.link_help):
                    if created:
                        self.store.delete(ref)
                        return ActionResult.skipped_by_operator(
                            f"Linking declined; removed newly created {ref.name}"
                        )
                    return ActionResult.skipped_by_operator(
                        f"Linking declined; {ref.name} left unlinked"
                    )
            self.store.link(ref, group)
            linked = True

        if created:
            return ActionResult.applied_change(
                f"Created {ref.name} and applied it to the privileged-accounts group"
            )
        if changed or linked:
            parts = []
            if changed:
                parts.append(f"updated {', '.join(changed)}")
            if linked:
                parts.append("linked to the privileged-accounts group")
            return ActionResult.applied_change(f"{ref.name}: {'; '.join(parts)}")
        return ActionResult.unchanged(f"{ref.name} already configured")


class LogonRestrictionAction(RemediationAction):
    """
    Restrict every privileged account to logging on to domain controllers only.

    Not reversible by undo: the previous per-account values are written to the
    run log before being overwritten.

    Accounts and domain controllers come from the snapshot collected at run
    start. Accounts written by this action are tracked so a repeated ensure
    is a no-op.
    """

    action_id = "logon-restriction"
    title = "Privileged account logon restriction"
    help_yes = (
        "Set 'Log On To' of every privileged account to exactly the domain "
        "controllers. Previous values are written to the run log; undo does not "
        "restore them."
    )
    help_no = "Privileged accounts keep their current logon targets."

    def __init__(
        self,
        store: PolicyObjectStore,
        domain: DomainInfo,
        writer: DirectoryWriter,
        snapshot: DomainSnapshot | None,
    ) -> None:
        super().__init__(store, domain)
        self.writer = writer
        self.snapshot = snapshot
        self._accounts = list(snapshot.privileged_accounts) if snapshot is not None else []

    def ensure(self, confirm: bool, confirmer: Confirmer | None = None) -> ActionResult:
        if self.snapshot is None:
            raise RemediationActionError(
                self.action_id, "no domain snapshot collected; logon targets are only changed from one"
            )
        controllers = sorted(self.snapshot.short_domain_controllers())
        if not controllers:
            raise RemediationActionError(
                self.action_id, "no domain controllers found; refusing to lock privileged accounts out"
            )

        desired = frozenset(controllers)
        changed: list[str] = []
        for index, account in enumerate(self._accounts):
            if not account.is_unrestricted and account.short_logon_targets() == desired:
                continue
            previous = ",".join(sorted(account.allowed_logon_targets)) or "<unrestricted>"
            logger.warning(
                "Logon targets of %s before change: %s", account.account_name, previous
            )
            self.writer.set_logon_targets(account.account_name, controllers)
            self._accounts[index] = PrivilegedAccount(account.account_name, desired)
            changed.append(account.account_name)

        if changed:
            return ActionResult.applied_change(
                f"Restricted {', '.join(changed)} to {', '.join(controllers)}"
            )
        return ActionResult.unchanged("All privileged accounts already restricted")


class DcPolicyAction(RemediationAction):
    """
    Registry-based settings in the dedicated domain-controller policy object.

    The object is found by name or created and linked to the domain
    controllers container in one step.
    """

    managed_ref = DC_POLICY_REF
    settings: ClassVar[dict[str, Any]] = {}

    def ensure(self, confirm: bool, confirmer: Confirmer | None = None) -> ActionResult:
        ref = self.managed_ref
        container = self.domain.domain_controllers_container
        state = self.store.find(ref)

        if state is None:
            self.store.create(ref, dict(self.settings), link_target=container)
            logger.info("Created %s linked to %s", ref.name, container)
            return ActionResult.applied_change(
                f"Created {ref.name} linked to {container} with {len(self.settings)} setting(s)"
            )

        actions: list[str] = []
        if not state.is_linked_to(container):
            self.store.link(ref, container)
            actions.append(f"linked to {container}")

        for path, desired in self.settings.items():
            if state.values.get(path) != desired:
                self.store.set_value(ref, path, desired)
                value_name = path.rsplit("\\", 1)[-1]
                actions.append(f"set {value_name}={desired}")

        if actions:
            return ActionResult.applied_change(f"{ref.name}: {'; '.join(actions)}")
        return ActionResult.unchanged(f"{ref.name} already contains {self.title.lower()} settings")


class NullSessionAction(DcPolicyAction):
    """Anonymous enumeration lockdown on domain controllers."""

    action_id = "null-session-lockdown"
    title = "Null session lockdown"
    help_yes = (
        f"Restrict anonymous access to named pipes and shares and disallow "
        f"anonymous SAM enumeration in '{DC_POLICY_REF.name}', linked to the "
        "Domain Controllers container."
    )
    help_no = "Anonymous enumeration settings on domain controllers stay unchanged."
    settings = NULL_SESSION_SETTINGS


class CredentialCachingAction(DcPolicyAction):
    """Disable storage of domain credentials for network authentication."""

    action_id = "credential-caching-lockdown"
    title = "Credential caching lockdown"
    help_yes = (
        "Do not allow storage of passwords and credentials for network "
        f"authentication on domain controllers (set in '{DC_POLICY_REF.name}')."
    )
    help_no = "Credential caching on domain controllers stays unchanged."
    settings = CREDENTIAL_CACHING_SETTINGS


def build_catalog(
    store: PolicyObjectStore,
    writer: DirectoryWriter,
    domain: DomainInfo,
    snapshot: DomainSnapshot | None = None,
) -> list[RemediationAction]:
    """
    Catalog actions in execution order.

    ``snapshot`` is the collection that gated the run; undo builds the
    catalog without one.
    """
    return [
        PasswordPolicyAction(store, domain),
        LogonRestrictionAction(store, domain, writer, snapshot),
        NullSessionAction(store, domain),
        CredentialCachingAction(store, domain),
    ]
