from uuid import uuid4

from sqlalchemy import Column, DateTime, String, func
from sqlalchemy.orm import relationship

from linkportal.database.base import Base, utcnow


class User(Base):
    __tablename__ = "users"

    id = Column(String(36), primary_key=True, default=lambda: str(uuid4()))
    username = Column(String, unique=True, nullable=False, index=True)
    password_hash = Column(String, nullable=False)
    role = Column(String, nullable=False, default="user")
    created_at = Column(DateTime(timezone=True), default=utcnow, server_default=func.now(), nullable=False)

    assignments = relationship(
        "Assignment",
        back_populates="user",
        cascade="all, delete-orphan",
        passive_deletes=True,
    )
