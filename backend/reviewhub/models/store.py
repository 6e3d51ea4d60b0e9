"""Store (Google Business Profile location) model."""
import uuid
from sqlalchemy import Column, String, DateTime
from sqlalchemy.sql import func
from reviewhub.core.database import Base


class Store(Base):
    """A business location connected to a dashboard user."""
    __tablename__ = "stores"

    id = Column(String, primary_key=True, default=lambda: uuid.uuid4().hex)
    user_id = Column(String, nullable=False, index=True)
    google_location_id = Column(String, nullable=True)

    display_name = Column(String, nullable=False)
    category = Column(String, nullable=True)  # e.g. "カフェ", "美容室"
    address = Column(String, nullable=True)

    # Public "write a review" page, e.g. https://search.google.com/local/writereview?placeid=...
    google_review_url = Column(String, nullable=True)

    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), onupdate=func.now())
