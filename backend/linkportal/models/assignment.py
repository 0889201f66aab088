from uuid import uuid4

from sqlalchemy import Column, DateTime, ForeignKey, String, UniqueConstraint, func
from sqlalchemy.orm import relationship

from linkportal.database.base import Base, utcnow


class Assignment(Base):
    __tablename__ = "user_link_assignments"
    __table_args__ = (
        UniqueConstraint("user_id", "link_id", name="uq_assignment_user_link"),
    )

    id = Column(String(36), primary_key=True, default=lambda: str(uuid4()))
    user_id = Column(String(36), ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    link_id = Column(String(36), ForeignKey("links.id", ondelete="CASCADE"), nullable=False, index=True)
    assigned_at = Column(DateTime(timezone=True), default=utcnow, server_default=func.now(), nullable=False)

    user = relationship("User", back_populates="assignments")
    link = relationship("Link", back_populates="assignments")
