from datetime import datetime, timezone

from sqlalchemy import Column, Integer, String, Text, DateTime, UniqueConstraint
from database import Base


class GardenBlob(Base):
    """One serialized garden collection (tasks, plants, ...) for one owner."""
    __tablename__ = "garden_state"

    id = Column(Integer, primary_key=True, autoincrement=True)
    user_id = Column(String(64), nullable=False, index=True)  # "public" for the shared feed
    key = Column(String(50), nullable=False)  # tasks/plants/sessions/profile/achievements/settings/feed
    payload = Column(Text, nullable=False)  # JSON — {"version": 1, "items": ...}
    updated_at = Column(
        DateTime,
        default=lambda: datetime.now(timezone.utc),
        onupdate=lambda: datetime.now(timezone.utc),
    )

    __table_args__ = (
        UniqueConstraint("user_id", "key", name="uq_garden_state_user_key"),
    )
