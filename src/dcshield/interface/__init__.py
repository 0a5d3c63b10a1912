"""
Interface layer: CLI, help and console output.
"""
