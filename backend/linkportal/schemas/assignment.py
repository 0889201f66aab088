from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field

from linkportal.schemas.link import LinkOut
from linkportal.schemas.user import UserOut


class AssignmentRef(BaseModel):
    """Request body naming a (user, link) pair; accepts camelCase keys."""

    model_config = ConfigDict(populate_by_name=True)

    user_id: Optional[str] = Field(default=None, alias="userId")
    link_id: Optional[str] = Field(default=None, alias="linkId")


class AssignmentOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    user_id: str
    link_id: str
    assigned_at: Optional[datetime] = None


class AssignmentWithLink(AssignmentOut):
    link: Optional[LinkOut] = None


class AssignmentWithUser(AssignmentOut):
    user: Optional[UserOut] = None


class AssignmentDetail(AssignmentOut):
    user: Optional[UserOut] = None
    link: Optional[LinkOut] = None


class UserLinksGroup(BaseModel):
    user: Optional[UserOut]
    links: List[LinkOut]


class LinkUsersGroup(BaseModel):
    link: Optional[LinkOut]
    users: List[UserOut]
