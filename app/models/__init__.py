"""ORM models; importing this package registers every table with ``Base``."""

from app.models.competition import Competition
from app.models.song import Song
from app.models.vote import Vote

__all__ = ["Competition", "Song", "Vote"]
