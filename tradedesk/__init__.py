"""Trade pairing and performance analytics for broker order snapshots."""

__version__ = "0.1.0"
