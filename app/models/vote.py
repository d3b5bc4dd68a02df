import uuid

from sqlalchemy import Column, DateTime, ForeignKey, String, Uuid

from app.database import Base
from app.models.competition import utcnow


class Vote(Base):
    """Append-only; a voter may vote for the same song more than once."""

    __tablename__ = "votes"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    user_id = Column(String, nullable=False)
    user_name = Column(String, nullable=False, default="")
    song_id = Column(Uuid, ForeignKey("songs.id", ondelete="CASCADE"), nullable=False, index=True)
    cast_at = Column(DateTime(timezone=True), nullable=False, default=utcnow)

    def __repr__(self) -> str:
        return f"<Vote id={self.id} user={self.user_id} song={self.song_id}>"
