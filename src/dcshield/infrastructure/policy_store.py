"""
PowerShell-backed store for the managed policy objects.

Fine-grained password policies go through the ActiveDirectory module,
group policy objects through the GroupPolicy module. Objects are always
located by their fixed name.
"""

from __future__ import annotations

import logging
from typing import Any

from dcshield.domain.constants import (
    CREDENTIAL_CACHING_SETTINGS,
    NULL_SESSION_SETTINGS,
    PASSWORD_POLICY_PRECEDENCE,
    PASSWORD_POLICY_SETTINGS,
)
from dcshield.domain.errors import PolicyObjectNotFoundError
from dcshield.domain.models import ManagedObjectRef, ManagedObjectState, ObjectKind
from dcshield.infrastructure.powershell.runner import ScriptRunner, as_list, split_registry_path

logger = logging.getLogger(__name__)

KNOWN_REGISTRY_PATHS = [*NULL_SESSION_SETTINGS, *CREDENTIAL_CACHING_SETTINGS]


def _registry_setting(path: str, value: Any = None) -> dict[str, Any]:
    key, value_name = split_registry_path(path)
    return {"path": path, "key": key, "value_name": value_name, "value": value}


def _check_password_setting(name: str) -> None:
    if name not in PASSWORD_POLICY_SETTINGS:
        raise ValueError(f"Unknown password policy setting: {name}")


class PowerShellPolicyStore:
    """
    PolicyObjectStore implementation.

    Args:
        runner: Script runner for the target host
        link_candidates: Containers whose GPO links are read back by ``find``
    """

    def __init__(self, runner: ScriptRunner, link_candidates: list[str]) -> None:
        self.runner = runner
        self.link_candidates = list(link_candidates)

    @staticmethod
    def _template(ref: ManagedObjectRef) -> str:
        if ref.kind is ObjectKind.PASSWORD_POLICY:
            return "password_policy"
        return "group_policy"

    def find(self, ref: ManagedObjectRef) -> ManagedObjectState | None:
        if ref.kind is ObjectKind.PASSWORD_POLICY:
            data = self.runner.run_json("password_policy", operation="find", name=ref.name)
        else:
            data = self.runner.run_json(
                "group_policy",
                operation="find",
                name=ref.name,
                settings=[_registry_setting(p) for p in KNOWN_REGISTRY_PATHS],
                link_candidates=self.link_candidates,
            )
        if not data:
            return None

        values = {k: v for k, v in (data.get("values") or {}).items() if v is not None}
        return ManagedObjectState(ref=ref, values=values, links=set(as_list(data.get("links"))))

    def create(
        self,
        ref: ManagedObjectRef,
        values: dict[str, Any],
        link_target: str | None = None,
    ) -> ManagedObjectState:
        logger.info("Creating %s %s", ref.kind.value, ref.name)
        if ref.kind is ObjectKind.PASSWORD_POLICY:
            for name in values:
                _check_password_setting(name)
            self.runner.run_json(
                "password_policy",
                operation="create",
                name=ref.name,
                precedence=PASSWORD_POLICY_PRECEDENCE,
                values=values,
                link_target=link_target,
            )
        else:
            self.runner.run_json(
                "group_policy",
                operation="create",
                name=ref.name,
                settings=[_registry_setting(p, v) for p, v in values.items()],
                link_target=link_target,
            )
        return ManagedObjectState(
            ref=ref,
            values=dict(values),
            links={link_target} if link_target else set(),
        )

    def link(self, ref: ManagedObjectRef, target: str) -> None:
        logger.info("Linking %s to %s", ref.name, target)
        self.runner.run_json(self._template(ref), operation="link", name=ref.name, target=target)

    def set_value(self, ref: ManagedObjectRef, name: str, value: Any) -> None:
        logger.info("Setting %s in %s to %r", name, ref.name, value)
        if ref.kind is ObjectKind.PASSWORD_POLICY:
            _check_password_setting(name)
            self.runner.run_json(
                "password_policy", operation="set", name=ref.name, setting=name, value=value
            )
        else:
            self.runner.run_json(
                "group_policy",
                operation="set",
                name=ref.name,
                setting=_registry_setting(name, value),
            )

    def delete(self, ref: ManagedObjectRef) -> None:
        data = self.runner.run_json(self._template(ref), operation="delete", name=ref.name)
        if not (data and data.get("deleted")):
            raise PolicyObjectNotFoundError(ref.name)
        logger.info("Deleted %s", ref.name)
