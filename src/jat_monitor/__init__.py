"""JAT Monitor: activity state classification for supervised agent sessions."""

__version__ = "0.1.0"
