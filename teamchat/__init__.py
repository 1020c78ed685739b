"""Real-time group messaging service."""

__version__ = "1.0.0"
