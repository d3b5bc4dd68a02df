import uuid
from datetime import datetime, timezone

from sqlalchemy import Boolean, Column, DateTime, Index, String, Uuid, text

from app.database import Base


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


class Competition(Base):
    __tablename__ = "competitions"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    description = Column(String, nullable=False)
    user_id = Column(String, nullable=False, index=True)
    user_name = Column(String, nullable=False, default="")
    started = Column(DateTime(timezone=True), nullable=False, default=utcnow)
    ended = Column(DateTime(timezone=True), nullable=True)
    is_active = Column(Boolean, nullable=False, default=False)

    __table_args__ = (
        # At most one row may carry is_active = true, across every service instance.
        Index(
            "uq_competitions_single_active",
            "is_active",
            unique=True,
            postgresql_where=text("is_active"),
            sqlite_where=text("is_active = 1"),
        ),
    )

    def __repr__(self) -> str:
        return f"<Competition id={self.id} owner={self.user_id} active={self.is_active}>"
