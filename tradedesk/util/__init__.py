# Utilities
"""Runtime configuration helpers."""
