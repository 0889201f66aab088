import json
import logging
from pathlib import Path
from typing import Optional, Union
from uuid import uuid4

from linkportal.core.config import PROTECTED_USERNAME
from linkportal.core.errors import AlreadyAssigned, DuplicateUsername, StoreUnavailable
from linkportal.database.base import utcnow
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

USERS_FILE = "users.json"
LINKS_FILE = "links.json"
ASSIGNMENTS_FILE = "user-link-assignments.json"


class JsonPortalStore(PortalStore):
    """Local development store: three JSON documents rewritten on every mutation.

    There is no locking, so only one process may write to a data directory.
    Cascades are sequential rewrites and are not atomic.
    """

    def __init__(self, data_dir: Union[str, Path], protected_username: Optional[str] = PROTECTED_USERNAME):
        super().__init__(protected_username)
        self.data_dir = Path(data_dir)

    def _read(self, name: str) -> list[dict]:
        path = self.data_dir / name
        if not path.exists():
            return []
        try:
            with path.open("r", encoding="utf-8") as handle:
                rows = json.load(handle)
        except (OSError, json.JSONDecodeError) as exc:
            logger.exception("Error reading file %s", path)
            raise StoreUnavailable(f"Failed to read {name}: {exc}") from exc
        if not isinstance(rows, list):
            raise StoreUnavailable(f"Failed to read {name}: expected a JSON array")
        return rows

    def _write(self, name: str, rows: list[dict]) -> None:
        path = self.data_dir / name
        try:
            self.data_dir.mkdir(parents=True, exist_ok=True)
            with path.open("w", encoding="utf-8") as handle:
                json.dump(rows, handle, indent=2, ensure_ascii=False)
        except OSError as exc:
            logger.exception("Error writing file %s", path)
            raise StoreUnavailable(f"Failed to write {name}: {exc}") from exc

    @staticmethod
    def _now() -> str:
        return utcnow().isoformat()

    # --- Credential store -------------------------------------------------

    def list_users(self) -> list[UserOut]:
        rows = sorted(self._read(USERS_FILE), key=lambda row: row.get("created_at") or "", reverse=True)
        return [UserOut.model_validate(row) for row in rows]

    def get_user_by_username(self, username: str) -> Optional[UserRecord]:
        for row in self._read(USERS_FILE):
            if row.get("username") == username:
                return UserRecord.model_validate(row)
        return None

    def get_user_by_id(self, user_id: str) -> Optional[UserOut]:
        for row in self._read(USERS_FILE):
            if row.get("id") == user_id:
                return UserOut.model_validate(row)
        return None

    def _insert_user(self, username: str, password_hash: str, role: str) -> UserOut:
        users = self._read(USERS_FILE)
        if any(row.get("username") == username for row in users):
            raise DuplicateUsername()
        row = {
            "id": str(uuid4()),
            "username": username,
            "password_hash": password_hash,
            "role": role,
            "created_at": self._now(),
        }
        users.append(row)
        self._write(USERS_FILE, users)
        return UserOut.model_validate(row)

    def _delete_user_cascade(self, user_id: str) -> None:
        assignments = [row for row in self._read(ASSIGNMENTS_FILE) if row.get("user_id") != user_id]
        users = [row for row in self._read(USERS_FILE) if row.get("id") != user_id]
        self._write(ASSIGNMENTS_FILE, assignments)
        self._write(USERS_FILE, users)

    # --- Link catalog -----------------------------------------------------

    def list_links(self) -> list[LinkOut]:
        return [LinkOut.model_validate(row) for row in self._read(LINKS_FILE)]

    def get_link(self, link_id: str) -> Optional[LinkOut]:
        for row in self._read(LINKS_FILE):
            if row.get("id") == link_id:
                return LinkOut.model_validate(row)
        return None

    def _insert_link(self, fields: dict) -> LinkOut:
        links = self._read(LINKS_FILE)
        row = {"id": str(uuid4()), "description": None, **fields, "created_at": self._now()}
        links.append(row)
        self._write(LINKS_FILE, links)
        return LinkOut.model_validate(row)

    def _update_link(self, link_id: str, fields: dict) -> Optional[LinkOut]:
        links = self._read(LINKS_FILE)
        for index, row in enumerate(links):
            if row.get("id") == link_id:
                links[index] = {**row, **fields}
                self._write(LINKS_FILE, links)
                return LinkOut.model_validate(links[index])
        return None

    def _delete_link_cascade(self, link_id: str) -> bool:
        links = self._read(LINKS_FILE)
        remaining = [row for row in links if row.get("id") != link_id]
        if len(remaining) == len(links):
            return False
        assignments = [row for row in self._read(ASSIGNMENTS_FILE) if row.get("link_id") != link_id]
        self._write(ASSIGNMENTS_FILE, assignments)
        self._write(LINKS_FILE, remaining)
        return True

    # --- Assignment ledger ------------------------------------------------

    def _insert_assignment(self, user_id: str, link_id: str) -> AssignmentOut:
        assignments = self._read(ASSIGNMENTS_FILE)
        if any(row.get("user_id") == user_id and row.get("link_id") == link_id for row in assignments):
            raise AlreadyAssigned()
        row = {
            "id": str(uuid4()),
            "user_id": user_id,
            "link_id": link_id,
            "assigned_at": self._now(),
        }
        assignments.append(row)
        self._write(ASSIGNMENTS_FILE, assignments)
        return AssignmentOut.model_validate(row)

    def _delete_assignment(self, user_id: str, link_id: str) -> int:
        assignments = self._read(ASSIGNMENTS_FILE)
        remaining = [
            row for row in assignments
            if not (row.get("user_id") == user_id and row.get("link_id") == link_id)
        ]
        self._write(ASSIGNMENTS_FILE, remaining)
        return len(assignments) - len(remaining)

    def _public_users(self) -> dict[str, UserOut]:
        return {row["id"]: UserOut.model_validate(row) for row in self._read(USERS_FILE)}

    def _links(self) -> dict[str, LinkOut]:
        return {link.id: link for link in self.list_links()}

    def get_user_assignments(self, user_id: str) -> list[AssignmentWithLink]:
        links = self._links()
        return [
            AssignmentWithLink(**row, link=links.get(row["link_id"]))
            for row in self._read(ASSIGNMENTS_FILE)
            if row.get("user_id") == user_id
        ]

    def get_link_assignments(self, link_id: str) -> list[AssignmentWithUser]:
        users = self._public_users()
        return [
            AssignmentWithUser(**row, user=users.get(row["user_id"]))
            for row in self._read(ASSIGNMENTS_FILE)
            if row.get("link_id") == link_id
        ]

    def get_all_assignments(self) -> list[AssignmentDetail]:
        users = self._public_users()
        links = self._links()
        rows = sorted(self._read(ASSIGNMENTS_FILE), key=lambda row: row.get("assigned_at") or "", reverse=True)
        return [
            AssignmentDetail(**row, user=users.get(row["user_id"]), link=links.get(row["link_id"]))
            for row in rows
        ]
