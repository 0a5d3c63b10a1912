"""
Snapshot collection.
"""

from dcshield.application.collectors.snapshot import SnapshotCollector

__all__ = ["SnapshotCollector"]
