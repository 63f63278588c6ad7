"""Content model for shared, self-destructing items."""

import uuid

from sqlalchemy import BigInteger, Boolean, Column, DateTime, String, Text
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func

from database import Base


CONTENT_KINDS = ("text", "link", "file")


class Content(Base):
    """A shared text, link or file with its expiration policy flags."""

    __tablename__ = "contents"

    id = Column(String, primary_key=True, default=lambda: str(uuid.uuid4()))
    public_id = Column(String, nullable=False, unique=True, index=True)
    kind = Column(String, nullable=False)  # text, link, file
    content = Column(Text, nullable=True)
    file_path = Column(String, nullable=True)
    file_name = Column(String, nullable=True)
    mime_type = Column(String, nullable=True)
    auto_delete = Column(Boolean, nullable=False, default=False)
    delete_after_minutes = Column(BigInteger, nullable=False, default=1)
    burn_after_read = Column(Boolean, nullable=False, default=False)
    ip_restriction = Column(Boolean, nullable=False, default=False)
    # Set once, on the first successful view while auto_delete is on.
    first_viewed_at = Column(DateTime(timezone=True), nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    deleted = Column(Boolean, nullable=False, default=False, index=True)

    views = relationship("ContentView", back_populates="content")
