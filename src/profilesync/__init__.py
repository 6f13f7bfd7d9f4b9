"""profilesync - offline-first profile synchronization."""

__version__ = "0.1.0"
