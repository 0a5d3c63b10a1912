"""
Exception hierarchy for DCShield.

Fatal errors (prerequisites, collection) stop a run before any mutation.
Action errors are recovered by the controllers and reported per action.
"""

from __future__ import annotations


class DCShieldError(Exception):
    """Base class for all tool errors."""


class PrerequisiteError(DCShieldError):
    """Missing capability, insufficient privilege, wrong role or no connectivity."""


class CollectionError(DCShieldError):
    """The domain snapshot could not be produced or parsed."""


class RemediationActionError(DCShieldError):
    """A single remediation action failed to ensure or remove its target."""

    def __init__(self, action_id: str, message: str) -> None:
        super().__init__(f"[{action_id}] {message}")
        self.action_id = action_id


class PolicyObjectNotFoundError(DCShieldError):
    """A managed policy object does not exist. Removal treats this as success."""

    def __init__(self, name: str) -> None:
        super().__init__(f"Policy object not found: {name}")
        self.name = name


class ScriptExecutionError(DCShieldError):
    """A PowerShell script failed or did not emit a parsable JSON document."""

    def __init__(self, script_name: str, message: str) -> None:
        super().__init__(f"{script_name}: {message}")
        self.script_name = script_name
