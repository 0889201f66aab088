from uuid import uuid4

from sqlalchemy import Column, DateTime, String, Text, func
from sqlalchemy.orm import relationship

from linkportal.database.base import Base, utcnow


class Link(Base):
    __tablename__ = "links"

    id = Column(String(36), primary_key=True, default=lambda: str(uuid4()))
    title = Column(String, nullable=False)
    url = Column(String, nullable=False)
    category = Column(String, nullable=False, index=True)
    description = Column(Text, nullable=True)
    created_at = Column(DateTime(timezone=True), default=utcnow, server_default=func.now(), nullable=False)

    assignments = relationship(
        "Assignment",
        back_populates="link",
        cascade="all, delete-orphan",
        passive_deletes=True,
    )
