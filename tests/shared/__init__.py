"""
Shared test support - in-memory collaborators and snapshot builders.
"""
