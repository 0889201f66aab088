import logging
from contextlib import contextmanager
from typing import Optional

from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session, joinedload

from linkportal.core.config import PROTECTED_USERNAME
from linkportal.core.errors import (
    AlreadyAssigned,
    DuplicateUsername,
    NotFound,
    PortalError,
    StoreUnavailable,
)
from linkportal.models.assignment import Assignment
from linkportal.models.link import Link
from linkportal.models.user import User
from linkportal.schemas.assignment import (
    AssignmentDetail,
    AssignmentOut,
    AssignmentWithLink,
    AssignmentWithUser,
)
from linkportal.schemas.link import LinkOut
from linkportal.schemas.user import UserOut, UserRecord
from linkportal.services.store import PortalStore

logger = logging.getLogger(__name__)


class SqlPortalStore(PortalStore):
    """PortalStore backed by a SQLAlchemy session (one per request)."""

    def __init__(self, db: Session, protected_username: Optional[str] = PROTECTED_USERNAME):
        super().__init__(protected_username)
        self.db = db

    @contextmanager
    def _guard(self, action: str):
        try:
            yield
        except PortalError:
            raise
        except SQLAlchemyError as exc:
            self.db.rollback()
            logger.exception("Database failure while trying to %s", action)
            raise StoreUnavailable(f"Failed to {action}: {exc}") from exc

    # --- Credential store -------------------------------------------------

    def list_users(self) -> list[UserOut]:
        with self._guard("list users"):
            rows = self.db.query(User).order_by(User.created_at.desc()).all()
            return [UserOut.model_validate(row) for row in rows]

    def get_user_by_username(self, username: str) -> Optional[UserRecord]:
        with self._guard("load user"):
            user = self.db.query(User).filter(User.username == username).first()
            return UserRecord.model_validate(user) if user else None

    def get_user_by_id(self, user_id: str) -> Optional[UserOut]:
        with self._guard("load user"):
            user = self.db.query(User).filter(User.id == user_id).first()
            return UserOut.model_validate(user) if user else None

    def _insert_user(self, username: str, password_hash: str, role: str) -> UserOut:
        with self._guard("create user"):
            existing = self.db.query(User).filter(User.username == username).first()
            if existing:
                raise DuplicateUsername()
            user = User(username=username, password_hash=password_hash, role=role)
            self.db.add(user)
            try:
                self.db.commit()
            except IntegrityError as exc:
                self.db.rollback()
                raise DuplicateUsername() from exc
            self.db.refresh(user)
            return UserOut.model_validate(user)

    def _delete_user_cascade(self, user_id: str) -> None:
        with self._guard("delete user"):
            self.db.query(Assignment).filter(Assignment.user_id == user_id).delete(synchronize_session=False)
            self.db.query(User).filter(User.id == user_id).delete(synchronize_session=False)
            self.db.commit()

    # --- Link catalog -----------------------------------------------------

    def list_links(self) -> list[LinkOut]:
        with self._guard("list links"):
            rows = self.db.query(Link).order_by(Link.created_at.asc()).all()
            return [LinkOut.model_validate(row) for row in rows]

    def get_link(self, link_id: str) -> Optional[LinkOut]:
        with self._guard("load link"):
            link = self.db.query(Link).filter(Link.id == link_id).first()
            return LinkOut.model_validate(link) if link else None

    def _insert_link(self, fields: dict) -> LinkOut:
        with self._guard("create link"):
            link = Link(**fields)
            self.db.add(link)
            self.db.commit()
            self.db.refresh(link)
            return LinkOut.model_validate(link)

    def _update_link(self, link_id: str, fields: dict) -> Optional[LinkOut]:
        with self._guard("update link"):
            link = self.db.query(Link).filter(Link.id == link_id).first()
            if not link:
                return None
            for key, value in fields.items():
                setattr(link, key, value)
            self.db.commit()
            self.db.refresh(link)
            return LinkOut.model_validate(link)

    def _delete_link_cascade(self, link_id: str) -> bool:
        with self._guard("delete link"):
            link = self.db.query(Link).filter(Link.id == link_id).first()
            if not link:
                return False
            self.db.query(Assignment).filter(Assignment.link_id == link_id).delete(synchronize_session=False)
            self.db.query(Link).filter(Link.id == link_id).delete(synchronize_session=False)
            self.db.commit()
            return True

    # --- Assignment ledger ------------------------------------------------

    def _insert_assignment(self, user_id: str, link_id: str) -> AssignmentOut:
        with self._guard("assign link to user"):
            assignment = Assignment(user_id=user_id, link_id=link_id)
            self.db.add(assignment)
            try:
                self.db.commit()
            except IntegrityError as exc:
                # Either the pair already exists or a referenced row vanished meanwhile.
                self.db.rollback()
                if self.db.query(User.id).filter(User.id == user_id).first() is None:
                    raise NotFound("User not found") from exc
                if self.db.query(Link.id).filter(Link.id == link_id).first() is None:
                    raise NotFound("Link not found") from exc
                raise AlreadyAssigned() from exc
            self.db.refresh(assignment)
            return AssignmentOut.model_validate(assignment)

    def _delete_assignment(self, user_id: str, link_id: str) -> int:
        with self._guard("unassign link from user"):
            removed = (
                self.db.query(Assignment)
                .filter(Assignment.user_id == user_id, Assignment.link_id == link_id)
                .delete(synchronize_session=False)
            )
            self.db.commit()
            return removed

    def get_user_assignments(self, user_id: str) -> list[AssignmentWithLink]:
        with self._guard("load user assignments"):
            rows = (
                self.db.query(Assignment)
                .options(joinedload(Assignment.link))
                .filter(Assignment.user_id == user_id)
                .order_by(Assignment.assigned_at.asc())
                .all()
            )
            return [AssignmentWithLink.model_validate(row) for row in rows]

    def get_link_assignments(self, link_id: str) -> list[AssignmentWithUser]:
        with self._guard("load link assignments"):
            rows = (
                self.db.query(Assignment)
                .options(joinedload(Assignment.user))
                .filter(Assignment.link_id == link_id)
                .order_by(Assignment.assigned_at.asc())
                .all()
            )
            return [AssignmentWithUser.model_validate(row) for row in rows]

    def get_all_assignments(self) -> list[AssignmentDetail]:
        with self._guard("load assignments"):
            rows = (
                self.db.query(Assignment)
                .options(joinedload(Assignment.user), joinedload(Assignment.link))
                .order_by(Assignment.assigned_at.desc())
                .all()
            )
            return [AssignmentDetail.model_validate(row) for row in rows]
