"""
Run context.

Everything a single run needs, built once after the prerequisite checks and
handed explicitly to the services. Nothing here is module-level state.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any

from dcshield.application.interfaces import (
    Confirmer,
    DirectoryQuery,
    DirectoryWriter,
    PolicyObjectStore,
    Reporter,
    SnapshotSource,
)
from dcshield.domain.models import DomainInfo, DomainSnapshot
from dcshield.infrastructure.config_loader import ShieldConfig
from dcshield.infrastructure.directory import PowerShellDirectory
from dcshield.infrastructure.policy_store import PowerShellPolicyStore
from dcshield.infrastructure.powershell.client import ConnectionConfig, PowerShellClient
from dcshield.infrastructure.powershell.runner import ScriptRunner
from dcshield.infrastructure.prerequisites import PrerequisiteChecker
from dcshield.infrastructure.rsop import RsopSnapshotSource

logger = logging.getLogger(__name__)


@dataclass
class RunContext:
    """Collaborators owned by one run."""

    config: ShieldConfig
    domain: DomainInfo
    source: SnapshotSource
    directory: DirectoryQuery
    writer: DirectoryWriter
    store: PolicyObjectStore
    reporter: Reporter
    confirmer: Confirmer
    client: Any = None
    # Set once by the collection that gates evaluation or remediation
    snapshot: DomainSnapshot | None = None

    def close(self) -> None:
        if self.client is not None:
            self.client.close()


def build_run_context(
    config: ShieldConfig,
    reporter: Reporter,
    confirmer: Confirmer,
) -> RunContext:
    """
    Connect to the target host, check prerequisites and wire the collaborators.

    Raises:
        PrerequisiteError: The host is unreachable or a prerequisite is missing
    """
    client = PowerShellClient(ConnectionConfig(
        hostname=config.target_host,
        username=config.username,
        password=config.get_password(),
        operation_timeout_sec=config.operation_timeout_sec,
        verify_ssl=config.verify_ssl,
    ))
    logger.info(
        "Target host: %s (%s)",
        config.target_host,
        "local" if client.is_localhost else "WinRM",
    )

    runner = ScriptRunner(client)
    try:
        domain = PrerequisiteChecker(runner).check()
    except Exception:
        client.close()
        raise
    directory = PowerShellDirectory(runner, domain)

    return RunContext(
        config=config,
        domain=domain,
        source=RsopSnapshotSource(runner),
        directory=directory,
        writer=directory,
        store=PowerShellPolicyStore(runner, [domain.domain_controllers_container]),
        reporter=reporter,
        confirmer=confirmer,
        client=client,
    )
