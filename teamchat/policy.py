"""Capability policy."""


def is_admin(username: str) -> bool:
    """Any identity whose username contains "admin" (any case) is an admin."""
    return "admin" in (username or "").lower()
