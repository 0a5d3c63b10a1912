"""
Shield Service - mode dispatch for one run.

Evaluate: collect -> finding engine -> reporter.
Remediate / forced: collect (a failed collection stops the run before any
mutation) -> remediation controller.
Undo: undo controller.
"""

from __future__ import annotations

import json
import logging
from datetime import datetime, timezone
from pathlib import Path

from dcshield import __version__
from dcshield.application.collectors import SnapshotCollector
from dcshield.application.findings import FindingEngine
from dcshield.application.remediation import (
    RemediationController,
    RunSummary,
    UndoController,
    build_catalog,
)
from dcshield.application.run_context import RunContext
from dcshield.domain.models import DomainSnapshot, Finding, RunMode, Severity

logger = logging.getLogger(__name__)


class ShieldService:
    """Runs one mode against a prepared RunContext."""

    def __init__(self, context: RunContext, engine: FindingEngine | None = None) -> None:
        self.context = context
        self.engine = engine or FindingEngine()

    def _catalog(self):
        ctx = self.context
        return build_catalog(ctx.store, ctx.writer, ctx.domain, ctx.snapshot)

    def collect(self) -> DomainSnapshot:
        """Collect the run's snapshot once and keep it on the context."""
        ctx = self.context
        ctx.snapshot = SnapshotCollector(ctx.source, ctx.directory).collect()
        return ctx.snapshot

    def evaluate(self, json_path: Path | None = None) -> list[Finding]:
        """Collect, grade and report. Never mutates the domain."""
        ctx = self.context
        findings = self.engine.evaluate(self.collect())

        for finding in findings:
            ctx.reporter.record(finding.severity, finding.message)

        errors = sum(1 for f in findings if f.severity is Severity.ERROR)
        warnings = sum(1 for f in findings if f.severity is Severity.WARNING)
        ctx.reporter.info(
            f"Evaluation of {ctx.domain.dns_root} finished: "
            f"{len(findings)} checks, {errors} error(s), {warnings} warning(s)"
        )

        if json_path is not None:
            self.write_findings(findings, json_path)
        return findings

    def remediate(self, mode: RunMode) -> RunSummary:
        ctx = self.context
        # Collection failure is fatal here and nothing has been written yet
        self.collect()
        controller = RemediationController(self._catalog(), ctx.reporter, ctx.confirmer)
        return controller.run(mode)

    def undo(self) -> RunSummary:
        ctx = self.context
        return UndoController(self._catalog(), ctx.reporter).run()

    def run(self, mode: RunMode, json_path: Path | None = None) -> list[Finding] | RunSummary:
        if mode is RunMode.EVALUATE:
            return self.evaluate(json_path)
        if mode in (RunMode.REMEDIATE, RunMode.FORCED):
            return self.remediate(mode)
        if mode is RunMode.UNDO:
            return self.undo()
        raise ValueError(f"Mode {mode.value} does not run against the domain")

    def write_findings(self, findings: list[Finding], json_path: Path) -> Path:
        """Write findings as a JSON report."""
        payload = {
            "tool": "DCShield",
            "version": __version__,
            "domain": self.context.domain.dns_root,
            "generated_at": datetime.now(timezone.utc).isoformat(),
            "findings": [
                {
                    "check_id": f.check_id.value,
                    "severity": f.severity.value,
                    "message": f.message,
                }
                for f in findings
            ],
        }
        json_path = Path(json_path)
        json_path.parent.mkdir(parents=True, exist_ok=True)
        with open(json_path, "w", encoding="utf-8") as f:
            json.dump(payload, f, indent=2)
        logger.info("Findings written to %s", json_path)
        self.context.reporter.info(f"Findings written to {json_path}")
        return json_path
