"""
Tests for the remediation catalog actions.

Idempotence, ensure/remove round-trips, nested confirmation on the password
policy and the logon restriction writes.
"""

import pytest

from shared.fakes import DC_CONTAINER, make_snapshot, restricted_account

from dcshield.application.remediation import (
    CredentialCachingAction,
    LogonRestrictionAction,
    NullSessionAction,
    PasswordPolicyAction,
    ScriptedConfirmer,
    build_catalog,
)
from dcshield.domain.constants import (
    CREDENTIAL_CACHING_SETTINGS,
    DC_POLICY_REF,
    NULL_SESSION_SETTINGS,
    PASSWORD_POLICY_REF,
    PASSWORD_POLICY_SETTINGS,
)
from dcshield.domain.errors import RemediationActionError
from dcshield.domain.models import ActionOutcome, PrivilegedAccount


def _unrestricted(*names):
    return make_snapshot(privileged_accounts=tuple(PrivilegedAccount(n) for n in names))


@pytest.fixture
def catalog(store, directory, domain):
    return build_catalog(store, directory, domain, _unrestricted("alice.adm", "bob.adm"))


class TestCatalogShape:
    """Catalog order and reversibility."""

    def test_order(self, catalog):
        assert [type(a) for a in catalog] == [
            PasswordPolicyAction,
            LogonRestrictionAction,
            NullSessionAction,
            CredentialCachingAction,
        ]

    def test_only_logon_restriction_is_irreversible(self, catalog):
        assert [a.reversible for a in catalog] == [True, False, True, True]

    def test_managed_names_share_tool_prefix(self):
        assert PASSWORD_POLICY_REF.name.startswith("DCShield-")
        assert DC_POLICY_REF.name.startswith("DCShield-")
        assert PASSWORD_POLICY_REF.name != DC_POLICY_REF.name

    def test_help_text_covers_both_answers(self, catalog):
        for action in catalog:
            text = action.help_text()
            assert "[Yes]" in text and "[No]" in text


class TestIdempotence:
    """A second unattended ensure changes nothing and creates no duplicate."""

    def test_every_action(self, catalog, store, directory):
        first = [a.ensure(confirm=False) for a in catalog]
        creates_after_first = store.operations().count("create")
        second = [a.ensure(confirm=False) for a in catalog]

        assert all(r.outcome is ActionOutcome.APPLIED for r in first)
        assert all(r.outcome is ActionOutcome.UNCHANGED for r in second), second
        assert store.operations().count("create") == creates_after_first == 2
        assert len(store.objects) == 2


class TestPasswordPolicyAction:
    """Fine-grained password policy lifecycle."""

    def test_creates_and_links(self, store, domain):
        result = PasswordPolicyAction(store, domain).ensure(confirm=False)

        assert result.applied
        state = store.objects[PASSWORD_POLICY_REF.name]
        assert state.values == PASSWORD_POLICY_SETTINGS
        assert state.links == {domain.privileged_group_sid}

    def test_converges_drifted_values(self, store, domain):
        action = PasswordPolicyAction(store, domain)
        action.ensure(confirm=False)
        store.objects[PASSWORD_POLICY_REF.name].values["MinPasswordLength"] = 8

        result = action.ensure(confirm=False)

        assert result.applied
        assert "MinPasswordLength" in result.message
        assert store.objects[PASSWORD_POLICY_REF.name].values["MinPasswordLength"] == 12
        assert store.operations().count("create") == 1

    def test_nested_confirm_yes_links(self, store, domain):
        confirmer = ScriptedConfirmer([True])
        result = PasswordPolicyAction(store, domain).ensure(confirm=True, confirmer=confirmer)

        assert result.applied
        assert len(confirmer.asked) == 1
        assert store.objects[PASSWORD_POLICY_REF.name].is_linked_to(domain.privileged_group_sid)

    def test_nested_confirm_no_deletes_new_object(self, store, domain):
        confirmer = ScriptedConfirmer([False])
        result = PasswordPolicyAction(store, domain).ensure(confirm=True, confirmer=confirmer)

        assert result.skipped
        assert PASSWORD_POLICY_REF.name not in store.objects
        assert store.operations() == ["find", "create", "delete"]

    def test_nested_confirm_no_keeps_existing_object(self, store, domain):
        store.create(PASSWORD_POLICY_REF, dict(PASSWORD_POLICY_SETTINGS))
        confirmer = ScriptedConfirmer([False])

        result = PasswordPolicyAction(store, domain).ensure(confirm=True, confirmer=confirmer)

        assert result.skipped
        assert PASSWORD_POLICY_REF.name in store.objects
        assert "delete" not in store.operations()

    def test_already_linked_asks_nothing(self, store, domain):
        action = PasswordPolicyAction(store, domain)
        action.ensure(confirm=False)
        confirmer = ScriptedConfirmer([])

        result = action.ensure(confirm=True, confirmer=confirmer)

        assert result.outcome is ActionOutcome.UNCHANGED
        assert confirmer.asked == []

    def test_round_trip(self, store, domain):
        action = PasswordPolicyAction(store, domain)
        action.ensure(confirm=False)

        assert action.remove().applied
        assert store.find(PASSWORD_POLICY_REF) is None
        assert action.remove().outcome is ActionOutcome.UNCHANGED


class TestLogonRestrictionAction:
    """Per-account logon targets, driven by the collected snapshot."""

    def test_restricts_to_short_controller_names(self, store, domain, directory):
        snapshot = make_snapshot(privileged_accounts=(PrivilegedAccount("alice.adm"), restricted_account("bob.adm")))
        action = LogonRestrictionAction(store, domain, directory, snapshot)

        result = action.ensure(confirm=False)

        assert result.applied
        assert directory.writes == [("alice.adm", ["dc01", "dc02"])]
        assert action.ensure(confirm=False).outcome is ActionOutcome.UNCHANGED

    def test_does_not_query_the_directory(self, store, domain, directory):
        directory.accounts = [PrivilegedAccount("mallory.adm")]
        directory.controllers = ["DC09.corp.example"]
        action = LogonRestrictionAction(store, domain, directory, _unrestricted("alice.adm"))

        action.ensure(confirm=False)

        assert directory.queries == []
        assert directory.writes == [("alice.adm", ["dc01", "dc02"])]

    def test_logs_previous_targets(self, store, domain, directory, caplog):
        snapshot = make_snapshot(privileged_accounts=(PrivilegedAccount("alice.adm", frozenset({"ws042"})),))
        action = LogonRestrictionAction(store, domain, directory, snapshot)

        with caplog.at_level("WARNING"):
            action.ensure(confirm=False)

        assert "ws042" in caplog.text

    def test_no_controllers_fails_without_writes(self, store, domain, directory):
        snapshot = make_snapshot(privileged_accounts=(PrivilegedAccount("alice.adm"),), domain_controllers=frozenset())

        with pytest.raises(RemediationActionError, match="no domain controllers"):
            LogonRestrictionAction(store, domain, directory, snapshot).ensure(confirm=False)
        assert directory.writes == []

    def test_without_snapshot_fails_without_writes(self, store, domain, directory):
        with pytest.raises(RemediationActionError):
            LogonRestrictionAction(store, domain, directory, None).ensure(confirm=False)
        assert directory.writes == []

    def test_remove_is_a_no_op(self, store, domain, directory):
        result = LogonRestrictionAction(store, domain, directory, None).remove()
        assert result.outcome is ActionOutcome.UNCHANGED
        assert store.calls == []


class TestDcPolicyActions:
    """Shared domain-controller policy object."""

    def test_first_action_creates_linked_object(self, store, domain):
        result = NullSessionAction(store, domain).ensure(confirm=False)

        assert result.applied
        state = store.objects[DC_POLICY_REF.name]
        assert state.links == {DC_CONTAINER}
        assert state.values == NULL_SESSION_SETTINGS

    def test_second_action_reuses_object(self, store, domain):
        NullSessionAction(store, domain).ensure(confirm=False)
        result = CredentialCachingAction(store, domain).ensure(confirm=False)

        assert result.applied
        assert "DisableDomainCreds" in result.message
        assert store.operations(DC_POLICY_REF.name).count("create") == 1
        assert store.objects[DC_POLICY_REF.name].values == {
            **NULL_SESSION_SETTINGS,
            **CREDENTIAL_CACHING_SETTINGS,
        }

    def test_relinks_unlinked_object(self, store, domain):
        store.create(DC_POLICY_REF, dict(NULL_SESSION_SETTINGS))

        result = NullSessionAction(store, domain).ensure(confirm=False)

        assert result.applied
        assert store.objects[DC_POLICY_REF.name].is_linked_to(DC_CONTAINER.upper())

    def test_shared_remove_tolerates_second_delete(self, store, domain):
        null_sessions = NullSessionAction(store, domain)
        caching = CredentialCachingAction(store, domain)
        null_sessions.ensure(confirm=False)
        caching.ensure(confirm=False)

        assert null_sessions.remove().applied
        assert caching.remove().outcome is ActionOutcome.UNCHANGED
        assert store.find(DC_POLICY_REF) is None
