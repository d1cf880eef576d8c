"""Combat evaluation per fight: casts, buff applies, breakbar damage and condition transfers."""

__version__ = "0.7.1"

__all__ = ["buddy", "combat", "data", "history", "panels", "skills", "transfer", "views"]