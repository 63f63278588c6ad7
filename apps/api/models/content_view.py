"""ContentView model tracking which IPs consumed an IP-restricted item."""

import uuid

from sqlalchemy import Column, DateTime, ForeignKey, String, UniqueConstraint
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func

from database import Base


class ContentView(Base):
    """One view of an IP-restricted content item from one address."""

    __tablename__ = "content_views"
    __table_args__ = (
        UniqueConstraint("content_id", "ip_address", name="uq_content_views_content_ip"),
    )

    id = Column(String, primary_key=True, default=lambda: str(uuid.uuid4()))
    content_id = Column(String, ForeignKey("contents.id"), nullable=False, index=True)
    ip_address = Column(String, nullable=False)
    viewed_at = Column(DateTime(timezone=True), server_default=func.now())

    content = relationship("Content", back_populates="views")
