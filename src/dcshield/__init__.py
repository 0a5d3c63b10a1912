"""
DCShield - Domain Controller & Privileged Account Hardening Tool.

Evaluates a directory domain's privileged-account policy and domain-controller
exposure, and applies reviewable, reversible remediations.

Usage:
    # CLI (recommended)
    python main.py evaluate
    python main.py remediate

    # Programmatic
    from dcshield.application.findings.engine import FindingEngine

    findings = FindingEngine().evaluate(snapshot)
"""

__version__ = "0.1.0"
__author__ = "DCShield Team"

from dcshield.application.findings.engine import FindingEngine

__all__ = ["FindingEngine", "__version__"]
