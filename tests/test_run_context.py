"""
Tests for wiring the run context.
"""

import pytest

from shared.fakes import DC_CONTAINER, DOMAIN_SID, FakePowerShellClient, envelope

from dcshield.application import run_context
from dcshield.domain.errors import PrerequisiteError
from dcshield.infrastructure.config_loader import ShieldConfig
from dcshield.infrastructure.directory import PowerShellDirectory
from dcshield.infrastructure.rsop import RsopSnapshotSource

PROBE_OK = {
    "isAdmin": True,
    "hasActiveDirectoryModule": True,
    "hasGroupPolicyModule": True,
    "domain": {
        "dnsRoot": "corp.example",
        "distinguishedName": "DC=corp,DC=example",
        "domainSid": DOMAIN_SID,
        "domainControllersContainer": DC_CONTAINER,
        "pdcEmulator": "DC01.corp.example",
        "forestRootSid": DOMAIN_SID,
    },
    "domainError": None,
}


@pytest.fixture
def fake_client(monkeypatch):
    """Replace the PowerShell client the context builds."""
    client = FakePowerShellClient()
    client.is_localhost = True
    monkeypatch.setattr(run_context, "PowerShellClient", lambda config: client)
    return client


class TestBuildRunContext:

    def test_wires_collaborators(self, fake_client, reporter):
        fake_client.queue(envelope(PROBE_OK))

        ctx = run_context.build_run_context(ShieldConfig(), reporter, confirmer=None)

        assert ctx.domain.dns_root == "corp.example"
        assert isinstance(ctx.directory, PowerShellDirectory)
        assert ctx.writer is ctx.directory
        assert isinstance(ctx.source, RsopSnapshotSource)
        assert ctx.snapshot is None
        assert ctx.client is fake_client

        ctx.close()
        assert fake_client.closed

    def test_failed_prerequisites_close_the_client(self, fake_client, reporter):
        fake_client.queue(envelope(dict(PROBE_OK, isAdmin=False)))

        with pytest.raises(PrerequisiteError, match="elevated"):
            run_context.build_run_context(ShieldConfig(), reporter, confirmer=None)

        assert fake_client.closed

    def test_unreachable_host_closes_the_client(self, fake_client, reporter):
        fake_client.queue(envelope(ok=False, error="WinRM connection refused"))

        with pytest.raises(PrerequisiteError, match="not reachable"):
            run_context.build_run_context(ShieldConfig(), reporter, confirmer=None)

        assert fake_client.closed
