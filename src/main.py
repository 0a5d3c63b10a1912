"""
DCShield - Domain Controller & Privileged Account Hardening Tool

Evaluates privileged-account policy and domain-controller exposure, and
applies reversible remediations.
"""

from dcshield.interface.cli import main


if __name__ == "__main__":
    main()
