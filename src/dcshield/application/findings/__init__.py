"""
Posture evaluation.
"""

from dcshield.application.findings.engine import FindingEngine

__all__ = ["FindingEngine"]
