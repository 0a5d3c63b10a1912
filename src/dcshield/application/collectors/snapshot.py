"""
Snapshot Collector.

Builds the immutable DomainSnapshot once per run from the resultant-policy
export and three directory queries. Any failure is fatal to the run:
partial snapshots are never evaluated.
"""

from __future__ import annotations

import logging

from dcshield.application.interfaces import DirectoryQuery, SnapshotSource
from dcshield.domain.errors import CollectionError, DCShieldError
from dcshield.domain.models import DomainSnapshot

logger = logging.getLogger(__name__)

POLICY_FIELDS = (
    "min_password_age",
    "lockout_threshold",
    "min_password_length",
    "complexity_enabled",
    "password_history_size",
    "null_sessions_restricted",
    "anonymous_sid_translation_restricted",
)


class SnapshotCollector:
    """Read-only collection of the facts the finding engine needs."""

    def __init__(self, source: SnapshotSource, directory: DirectoryQuery) -> None:
        self.source = source
        self.directory = directory

    def collect(self) -> DomainSnapshot:
        """
        Collect a complete snapshot.

        Raises:
            CollectionError: Export, parsing or a directory query failed
        """
        policy = self._collect_policy()

        try:
            accounts = self.directory.privileged_accounts()
            controllers = self.directory.domain_controllers()
            admin_members = self.directory.admin_group_members()
        except DCShieldError as e:
            raise CollectionError(f"Directory query failed: {e}") from e

        snapshot = DomainSnapshot(
            **{name: policy.get(name) for name in POLICY_FIELDS},
            privileged_accounts=tuple(accounts),
            domain_controllers=frozenset(controllers),
            admin_group_members=tuple(admin_members),
        )
        logger.info(
            "Snapshot collected: %d privileged accounts, %d domain controllers, "
            "%d administrators members",
            len(snapshot.privileged_accounts),
            len(snapshot.domain_controllers),
            len(snapshot.admin_group_members),
        )
        return snapshot

    def _collect_policy(self) -> dict:
        try:
            document = self.source.export()
        except DCShieldError as e:
            raise CollectionError(f"Resultant policy export failed: {e}") from e

        if not document or not document.strip():
            raise CollectionError("Resultant policy export produced an empty document")

        try:
            return self.source.parse(document)
        except (ValueError, KeyError) as e:
            raise CollectionError(f"Resultant policy document could not be parsed: {e}") from e
