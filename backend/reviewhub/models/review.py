"""Google reviews mirrored from connected stores."""
import uuid
from datetime import datetime, timezone
from sqlalchemy import Column, Integer, String, DateTime, Text, ForeignKey, Boolean
from sqlalchemy.orm import relationship
from reviewhub.core.database import Base


class Review(Base):
    __tablename__ = "reviews"

    id = Column(String, primary_key=True, default=lambda: uuid.uuid4().hex)
    user_id = Column(String, nullable=False, index=True)
    store_id = Column(String, ForeignKey("stores.id"), nullable=False, index=True)
    google_review_id = Column(String, nullable=True, unique=True)

    rating = Column(Integer, nullable=False)  # 1-5
    text = Column(Text, nullable=False, default="")
    author_name = Column(String, nullable=True)

    created_at = Column(DateTime(timezone=True), default=lambda: datetime.now(timezone.utc), nullable=False)

    # Reply state (one-way: once replied, never reset)
    replied = Column(Boolean, default=False, nullable=False, index=True)
    reply_text = Column(Text, nullable=True)
    replied_at = Column(DateTime(timezone=True), nullable=True)

    store = relationship("Store", foreign_keys=[store_id])
