"""Song of the Week Slack bot backend."""

__version__ = "0.1.0"

# Re-export the common database helpers for convenience.
from .database import Base, SessionLocal, engine, get_db  # noqa: E402,F401

__all__ = ["Base", "SessionLocal", "engine", "get_db", "__version__"]
