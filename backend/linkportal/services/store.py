import logging
from abc import ABC, abstractmethod
from typing import Optional

from linkportal.core.config import PROTECTED_USERNAME
from linkportal.core.errors import Forbidden, NotFound, ValidationError
from linkportal.core.security import get_password_hash
from linkportal.schemas.assignment import (
    AssignmentDetail,
    AssignmentOut,
    AssignmentWithLink,
    AssignmentWithUser,
)
from linkportal.schemas.link import CategoryGroups, LinkOut
from linkportal.schemas.user import UserOut, UserRecord
from linkportal.services.grouping import group_by_category

logger = logging.getLogger(__name__)

VALID_ROLES = {"admin", "user"}
LINK_FIELDS = ("title", "url", "category", "description")
REQUIRED_LINK_FIELDS = ("title", "url", "category")


def normalize_role(role: Optional[str]) -> str:
    value = str(role or "").strip()
    return value if value in VALID_ROLES else "user"


def clean_link_fields(data: dict, partial: bool = False) -> dict:
    """Keep known link fields, strip text and reject blank required values."""
    cleaned = {}
    for key in LINK_FIELDS:
        if key not in data:
            continue
        value = data[key]
        if isinstance(value, str):
            value = value.strip()
        if key in REQUIRED_LINK_FIELDS:
            if value is None and partial:
                continue
            if not value:
                raise ValidationError(f"{key} is required")
        cleaned[key] = value
    if not partial:
        missing = [key for key in REQUIRED_LINK_FIELDS if key not in cleaned]
        if missing:
            raise ValidationError(f"Missing required fields: {', '.join(missing)}")
    return cleaned


class PortalStore(ABC):
    """Users, links and the assignment ledger that joins them.

    Backends implement the row-level primitives; the business rules
    (role normalisation, password hashing, protected admin, reference
    checks before assigning) live here so every backend shares them.
    """

    def __init__(self, protected_username: Optional[str] = PROTECTED_USERNAME):
        self.protected_username = protected_username

    # --- Credential store -------------------------------------------------

    @abstractmethod
    def list_users(self) -> list[UserOut]:
        ...

    @abstractmethod
    def get_user_by_username(self, username: str) -> Optional[UserRecord]:
        ...

    @abstractmethod
    def get_user_by_id(self, user_id: str) -> Optional[UserOut]:
        ...

    @abstractmethod
    def _insert_user(self, username: str, password_hash: str, role: str) -> UserOut:
        """Insert a user row, raising DuplicateUsername if the name is taken."""

    @abstractmethod
    def _delete_user_cascade(self, user_id: str) -> None:
        """Remove the user row together with every assignment referencing it."""

    def create_user(self, username: Optional[str], password: Optional[str], role: Optional[str] = "user") -> UserOut:
        username = str(username or "").strip()
        if not username or not password:
            raise ValidationError("username and password are required")
        user = self._insert_user(username, get_password_hash(password), normalize_role(role))
        logger.info("Created user %s (%s) with role %s", user.username, user.id, user.role)
        return user

    def delete_user(self, user_id: str) -> None:
        user = self.get_user_by_id(user_id)
        if user is None:
            raise NotFound("User not found")
        if self.protected_username and user.username == self.protected_username:
            raise Forbidden("The bootstrap admin account cannot be deleted")
        self._delete_user_cascade(user_id)
        logger.info("Deleted user %s (%s) and its assignments", user.username, user_id)

    # --- Link catalog -----------------------------------------------------

    @abstractmethod
    def list_links(self) -> list[LinkOut]:
        ...

    @abstractmethod
    def get_link(self, link_id: str) -> Optional[LinkOut]:
        ...

    @abstractmethod
    def _insert_link(self, fields: dict) -> LinkOut:
        ...

    @abstractmethod
    def _update_link(self, link_id: str, fields: dict) -> Optional[LinkOut]:
        """Merge fields over the stored link; None when the link is absent."""

    @abstractmethod
    def _delete_link_cascade(self, link_id: str) -> bool:
        """Remove the link and its assignments; False when the link is absent."""

    def list_links_by_category(self) -> CategoryGroups:
        return group_by_category(self.list_links())

    def create_link(self, fields: dict) -> LinkOut:
        link = self._insert_link(clean_link_fields(fields))
        logger.info("Created link %s in category %s", link.id, link.category)
        return link

    def update_link(self, link_id: str, fields: dict) -> LinkOut:
        link = self._update_link(link_id, clean_link_fields(fields, partial=True))
        if link is None:
            raise NotFound("Link not found")
        logger.info("Updated link %s", link_id)
        return link

    def delete_link(self, link_id: str) -> None:
        if not self._delete_link_cascade(link_id):
            raise NotFound("Link not found")
        logger.info("Deleted link %s and its assignments", link_id)

    # --- Assignment ledger ------------------------------------------------

    @abstractmethod
    def _insert_assignment(self, user_id: str, link_id: str) -> AssignmentOut:
        """Insert the pair, raising AlreadyAssigned if it already exists."""

    @abstractmethod
    def _delete_assignment(self, user_id: str, link_id: str) -> int:
        ...

    @abstractmethod
    def get_user_assignments(self, user_id: str) -> list[AssignmentWithLink]:
        ...

    @abstractmethod
    def get_link_assignments(self, link_id: str) -> list[AssignmentWithUser]:
        ...

    @abstractmethod
    def get_all_assignments(self) -> list[AssignmentDetail]:
        ...

    def assign_link_to_user(self, user_id: Optional[str], link_id: Optional[str]) -> AssignmentOut:
        if not user_id or not link_id:
            raise ValidationError("userId and linkId are required")
        if self.get_user_by_id(user_id) is None:
            raise NotFound("User not found")
        if self.get_link(link_id) is None:
            raise NotFound("Link not found")
        assignment = self._insert_assignment(user_id, link_id)
        logger.info("Assigned link %s to user %s", link_id, user_id)
        return assignment

    def unassign_link_from_user(self, user_id: Optional[str], link_id: Optional[str]) -> None:
        if not user_id or not link_id:
            raise ValidationError("userId and linkId are required")
        removed = self._delete_assignment(user_id, link_id)
        logger.info("Unassigned link %s from user %s (%s rows)", link_id, user_id, removed)

    def get_user_assigned_links(self, user_id: str) -> CategoryGroups:
        assigned_ids = {item.link_id for item in self.get_user_assignments(user_id)}
        if not assigned_ids:
            return {}
        return group_by_category(link for link in self.list_links() if link.id in assigned_ids)
