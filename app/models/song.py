import uuid

from sqlalchemy import Column, DateTime, ForeignKey, String, UniqueConstraint, Uuid

from app.database import Base
from app.models.competition import utcnow


class Song(Base):
    __tablename__ = "songs"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    user_id = Column(String, nullable=False)
    user_name = Column(String, nullable=False, default="")
    song_uri = Column(String, nullable=False)
    competition_id = Column(
        Uuid, ForeignKey("competitions.id", ondelete="CASCADE"), nullable=False, index=True
    )
    submitted_at = Column(DateTime(timezone=True), nullable=False, default=utcnow)

    __table_args__ = (
        # One submission per user and competition; resubmitting replaces the row.
        UniqueConstraint("competition_id", "user_id", name="uq_songs_competition_user"),
    )

    def __repr__(self) -> str:
        return f"<Song id={self.id} user={self.user_id} competition={self.competition_id}>"
