"""
Remediation and undo controllers.

RemediationController runs catalog actions in interactive or forced mode.
UndoController removes the objects the catalog owns. Both recover per-action
errors locally: a failing action is reported and the run moves on.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Callable

from dcshield.application.interfaces import Confirmer, Reporter
from dcshield.application.remediation.catalog import RemediationAction
from dcshield.domain.constants import POLICY_REFRESH_NOTICE
from dcshield.domain.errors import DCShieldError, RemediationActionError
from dcshield.domain.models import ActionOutcome, ActionResult, RunMode, Severity

logger = logging.getLogger(__name__)

FORCED_CONFIRM_TITLE = "Apply ALL remediation actions without further prompts?"


@dataclass
class RunSummary:
    """Per-action outcomes of a remediation or undo run."""

    results: list[tuple[str, ActionResult]] = field(default_factory=list)
    cancelled: bool = False

    def add(self, action_id: str, result: ActionResult) -> None:
        self.results.append((action_id, result))

    def count(self, outcome: ActionOutcome) -> int:
        return sum(1 for _, r in self.results if r.outcome is outcome)

    def result_for(self, action_id: str) -> ActionResult | None:
        for aid, result in self.results:
            if aid == action_id:
                return result
        return None

    def describe(self) -> str:
        return (
            f"{self.count(ActionOutcome.APPLIED)} applied, "
            f"{self.count(ActionOutcome.UNCHANGED)} unchanged, "
            f"{self.count(ActionOutcome.SKIPPED)} skipped, "
            f"{self.count(ActionOutcome.FAILED)} failed"
        )


def _report_result(reporter: Reporter, title: str, result: ActionResult) -> None:
    if result.failed:
        reporter.record(Severity.ERROR, f"{title}: {result.message} ({result.error})")
    elif result.skipped:
        reporter.record(Severity.WARNING, f"{title}: skipped - {result.message}")
    else:
        reporter.record(Severity.SUCCESS, f"{title}: {result.message}")


def _guarded(call: Callable[[], ActionResult], action: RemediationAction) -> ActionResult:
    """Run an ensure/remove call, converting tool errors to a failed result."""
    try:
        return call()
    except RemediationActionError as e:
        logger.error("Action %s refused: %s", action.action_id, e)
        return ActionResult.failure(f"{action.title} failed", str(e))
    except DCShieldError as e:
        logger.exception("Action %s failed", action.action_id)
        return ActionResult.failure(f"{action.title} failed", str(e))
    except Exception as e:  # pylint: disable=broad-except
        logger.exception("Unexpected error in action %s", action.action_id)
        return ActionResult.failure(f"{action.title} failed", str(e))


class RemediationController:
    """
    Mode state machine over the remediation catalog.

    Interactive: one yes/no per action, nested questions allowed.
    Forced: one top-level confirmation, then every action without prompts.
    """

    def __init__(
        self,
        catalog: list[RemediationAction],
        reporter: Reporter,
        confirmer: Confirmer,
    ) -> None:
        self.catalog = catalog
        self.reporter = reporter
        self.confirmer = confirmer

    def run(self, mode: RunMode) -> RunSummary:
        if mode is RunMode.REMEDIATE:
            return self.remediate_interactive()
        if mode is RunMode.FORCED:
            return self.remediate_forced()
        raise ValueError(f"RemediationController cannot run mode {mode.value}")

    def remediate_interactive(self) -> RunSummary:
        summary = RunSummary()
        for action in self.catalog:
            if not self.confirmer.ask(action.title, action.help_text()):
                result = ActionResult.skipped_by_operator("declined by operator")
            else:
                result = _guarded(
                    lambda a=action: a.ensure(confirm=True, confirmer=self.confirmer), action
                )
            summary.add(action.action_id, result)
            _report_result(self.reporter, action.title, result)
        self._finish(summary)
        return summary

    def remediate_forced(self) -> RunSummary:
        summary = RunSummary()
        titles = "\n".join(f"  - {a.title}" for a in self.catalog)
        if not self.confirmer.ask(
            FORCED_CONFIRM_TITLE, f"The following actions will run unattended:\n{titles}"
        ):
            summary.cancelled = True
            self.reporter.info("Forced remediation cancelled; no changes were made.")
            return summary

        for action in self.catalog:
            result = _guarded(lambda a=action: a.ensure(confirm=False), action)
            summary.add(action.action_id, result)
            _report_result(self.reporter, action.title, result)
        self._finish(summary)
        return summary

    def _finish(self, summary: RunSummary) -> None:
        logger.info("Remediation finished: %s", summary.describe())
        self.reporter.info(f"Remediation finished: {summary.describe()}")
        self.reporter.info(POLICY_REFRESH_NOTICE)


class UndoController:
    """
    Removes every managed object the catalog owns, once per object.

    "Not found" is success. Other errors are reported and the next removal
    still runs. The logon-restriction change is not reversed.
    """

    def __init__(self, catalog: list[RemediationAction], reporter: Reporter) -> None:
        self.catalog = catalog
        self.reporter = reporter

    def run(self) -> RunSummary:
        summary = RunSummary()
        seen = set()
        for action in self.catalog:
            if not action.reversible:
                logger.info("Skipping irreversible action %s", action.action_id)
                continue
            if action.managed_ref in seen:
                continue
            seen.add(action.managed_ref)

            result = _guarded(action.remove, action)
            summary.add(action.action_id, result)
            _report_result(self.reporter, f"Undo {action.managed_ref.name}", result)

        self.reporter.info(
            "Logon restrictions on privileged accounts are not reverted; "
            "previous values are in the run log of the remediation run."
        )
        logger.info("Undo finished: %s", summary.describe())
        return summary
