"""
Tests for snapshot collection and resultant policy parsing.
"""

import pytest

from shared.fakes import FakeDirectory, FakePowerShellClient, StaticSnapshotSource, envelope

from dcshield.application.collectors import SnapshotCollector
from dcshield.domain.errors import CollectionError, ScriptExecutionError
from dcshield.domain.models import AdminGroupMember, PrivilegedAccount
from dcshield.infrastructure.powershell.runner import ScriptRunner
from dcshield.infrastructure.rsop import RsopSnapshotSource

SEC = "http://www.microsoft.com/GroupPolicy/Settings/Security"
REG = "http://www.microsoft.com/GroupPolicy/Settings/Registry"


def _account(name, precedence, number=None, boolean=None):
    value = (
        f"<q1:SettingNumber>{number}</q1:SettingNumber>" if number is not None
        else f"<q1:SettingBoolean>{boolean}</q1:SettingBoolean>"
    )
    return (
        f"<q1:Account><q1:Precedence>{precedence}</q1:Precedence>"
        f"<q1:Name>{name}</q1:Name>{value}<q1:Type>Password</q1:Type></q1:Account>"
    )


def rsop_document(security="", registry=""):
    return f"""<?xml version="1.0" encoding="utf-16"?>
<Rsop xmlns="http://www.microsoft.com/GroupPolicy/Rsop">
  <ComputerResults>
    <ExtensionData>
      <Extension xmlns:q1="{SEC}">{security}</Extension>
    </ExtensionData>
    <ExtensionData>
      <Extension xmlns:q2="{REG}">{registry}</Extension>
    </ExtensionData>
  </ComputerResults>
</Rsop>"""


FULL_SECURITY = "".join([
    _account("MinimumPasswordAge", 1, number=1),
    _account("MinimumPasswordLength", 1, number=14),
    _account("PasswordHistorySize", 1, number=24),
    _account("LockoutBadCount", 1, number=5),
    _account("PasswordComplexity", 1, boolean="true"),
    "<q1:SecurityOptions><q1:Precedence>1</q1:Precedence>"
    "<q1:KeyName>MACHINE\\System\\CurrentControlSet\\Services\\LanManServer\\Parameters\\RestrictNullSessAccess</q1:KeyName>"
    "<q1:SettingNumber>1</q1:SettingNumber></q1:SecurityOptions>",
    "<q1:SystemAccess><q1:Precedence>1</q1:Precedence>"
    "<q1:Name>LSAAnonymousNameLookup</q1:Name><q1:SettingNumber>0</q1:SettingNumber></q1:SystemAccess>",
])


@pytest.fixture
def rsop():
    return RsopSnapshotSource(ScriptRunner(FakePowerShellClient()))


class TestRsopParse:
    """Field extraction from gpresult XML."""

    def test_all_fields(self, rsop):
        fields = rsop.parse(rsop_document(FULL_SECURITY))

        assert fields == {
            "min_password_age": 1,
            "min_password_length": 14,
            "password_history_size": 24,
            "lockout_threshold": 5,
            "complexity_enabled": True,
            "null_sessions_restricted": True,
            "anonymous_sid_translation_restricted": True,
        }

    def test_missing_fields_are_unknown(self, rsop):
        fields = rsop.parse(rsop_document(_account("MinimumPasswordLength", 1, number=8)))

        assert fields["min_password_length"] == 8
        assert fields["lockout_threshold"] is None
        assert fields["complexity_enabled"] is None
        assert fields["null_sessions_restricted"] is None
        assert fields["anonymous_sid_translation_restricted"] is None

    def test_lowest_precedence_wins(self, rsop):
        security = _account("LockoutBadCount", 2, number=0) + _account("LockoutBadCount", 1, number=7)
        assert rsop.parse(rsop_document(security))["lockout_threshold"] == 7

    def test_unparsable_number_is_unknown(self, rsop):
        fields = rsop.parse(rsop_document(_account("PasswordHistorySize", 1, number="lots")))
        assert fields["password_history_size"] is None

    def test_enabled_settings_are_not_restricted(self, rsop):
        security = (
            "<q1:SecurityOptions><q1:Precedence>1</q1:Precedence>"
            "<q1:KeyName>MACHINE\\System\\CurrentControlSet\\Services\\LanManServer\\Parameters\\RestrictNullSessAccess</q1:KeyName>"
            "<q1:SettingNumber>0</q1:SettingNumber></q1:SecurityOptions>"
            "<q1:SystemAccess><q1:Precedence>1</q1:Precedence>"
            "<q1:Name>LSAAnonymousNameLookup</q1:Name><q1:SettingNumber>1</q1:SettingNumber></q1:SystemAccess>"
        )
        fields = rsop.parse(rsop_document(security))
        assert fields["null_sessions_restricted"] is False
        assert fields["anonymous_sid_translation_restricted"] is False

    def test_registry_policy_fallback(self, rsop):
        registry = (
            "<q2:RegistrySetting><q2:Precedence>1</q2:Precedence>"
            "<q2:KeyPath>SYSTEM\\CurrentControlSet\\Services\\LanManServer\\Parameters</q2:KeyPath>"
            "<q2:Value><q2:Name>RestrictNullSessAccess</q2:Name><q2:Number>1</q2:Number></q2:Value>"
            "</q2:RegistrySetting>"
        )
        assert rsop.parse(rsop_document(registry=registry))["null_sessions_restricted"] is True

    def test_byte_order_mark_is_ignored(self, rsop):
        fields = rsop.parse("\ufeff" + rsop_document(FULL_SECURITY))
        assert fields["lockout_threshold"] == 5

    def test_malformed_document(self, rsop):
        with pytest.raises(CollectionError):
            rsop.parse("<Rsop><ComputerResults>")


class TestRsopExport:
    """gpresult export through the script runner."""

    def test_returns_xml(self):
        client = FakePowerShellClient([envelope({"xml": "<Rsop/>"})])
        assert RsopSnapshotSource(ScriptRunner(client)).export() == "<Rsop/>"
        assert "gpresult.exe /scope computer /x" in client.scripts[0]

    def test_script_failure_is_collection_error(self):
        client = FakePowerShellClient([envelope(ok=False, error="gpresult did not produce")])
        with pytest.raises(CollectionError, match="gpresult"):
            RsopSnapshotSource(ScriptRunner(client)).export()

    def test_empty_export_is_collection_error(self):
        client = FakePowerShellClient([envelope({"xml": None})])
        with pytest.raises(CollectionError):
            RsopSnapshotSource(ScriptRunner(client)).export()


class TestSnapshotCollector:
    """Snapshot assembly and fatal collection failures."""

    def test_builds_snapshot(self):
        source = StaticSnapshotSource({"lockout_threshold": 5, "complexity_enabled": True})
        directory = FakeDirectory(
            accounts=[PrivilegedAccount("alice.adm")],
            admin_members=[AdminGroupMember("Administrator", is_well_known_administrator=True)],
        )

        snapshot = SnapshotCollector(source, directory).collect()

        assert snapshot.lockout_threshold == 5
        assert snapshot.complexity_enabled is True
        assert snapshot.min_password_length is None
        assert snapshot.privileged_accounts == (PrivilegedAccount("alice.adm"),)
        assert snapshot.short_domain_controllers() == {"dc01", "dc02"}
        assert len(snapshot.admin_group_members) == 1

    def test_export_failure(self):
        source = StaticSnapshotSource()
        source.export_error = CollectionError("gpresult failed")
        with pytest.raises(CollectionError):
            SnapshotCollector(source, FakeDirectory()).collect()

    def test_empty_document(self):
        source = StaticSnapshotSource(document="   ")
        with pytest.raises(CollectionError, match="empty"):
            SnapshotCollector(source, FakeDirectory()).collect()

    def test_directory_failure(self):
        directory = FakeDirectory()
        directory.fail_queries = ScriptExecutionError("directory_query", "server down")
        with pytest.raises(CollectionError, match="Directory query failed"):
            SnapshotCollector(StaticSnapshotSource(), directory).collect()
