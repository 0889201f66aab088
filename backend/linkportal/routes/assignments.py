from typing import Literal, Optional, Union

from fastapi import APIRouter, Body, Depends, status

from linkportal.core.auth import get_current_admin
from linkportal.core.errors import NotFound
from linkportal.database.deps import get_store
from linkportal.schemas.assignment import (
    AssignmentDetail,
    AssignmentOut,
    AssignmentRef,
    AssignmentWithLink,
    AssignmentWithUser,
    LinkUsersGroup,
    UserLinksGroup,
)
from linkportal.schemas.user import UserOut
from linkportal.services.grouping import group_assignments_by_link, group_assignments_by_user
from linkportal.services.store import PortalStore

router = APIRouter(prefix="/assignments", tags=["Assignments"])


@router.get(
    "",
    response_model=Union[list[AssignmentDetail], list[UserLinksGroup], list[LinkUsersGroup]],
)
def list_assignments(
    group_by: Optional[Literal["user", "link"]] = None,
    store: PortalStore = Depends(get_store),
    current_user: UserOut = Depends(get_current_admin),
):
    assignments = store.get_all_assignments()
    if group_by == "user":
        return group_assignments_by_user(assignments)
    if group_by == "link":
        return group_assignments_by_link(assignments)
    return assignments


@router.get("/users/{user_id}", response_model=list[AssignmentWithLink])
def list_user_assignments(
    user_id: str,
    store: PortalStore = Depends(get_store),
    current_user: UserOut = Depends(get_current_admin),
):
    if store.get_user_by_id(user_id) is None:
        raise NotFound("User not found")
    return store.get_user_assignments(user_id)


@router.get("/links/{link_id}", response_model=list[AssignmentWithUser])
def list_link_assignments(
    link_id: str,
    store: PortalStore = Depends(get_store),
    current_user: UserOut = Depends(get_current_admin),
):
    if store.get_link(link_id) is None:
        raise NotFound("Link not found")
    return store.get_link_assignments(link_id)


@router.post("", response_model=AssignmentOut, status_code=status.HTTP_201_CREATED)
def create_assignment(
    payload: AssignmentRef,
    store: PortalStore = Depends(get_store),
    current_user: UserOut = Depends(get_current_admin),
):
    return store.assign_link_to_user(payload.user_id, payload.link_id)


@router.delete("")
def delete_assignment(
    payload: AssignmentRef = Body(...),
    store: PortalStore = Depends(get_store),
    current_user: UserOut = Depends(get_current_admin),
):
    store.unassign_link_from_user(payload.user_id, payload.link_id)
    return {"message": "Link unassigned successfully"}


@router.delete("/{user_id}/{link_id}")
def delete_assignment_by_path(
    user_id: str,
    link_id: str,
    store: PortalStore = Depends(get_store),
    current_user: UserOut = Depends(get_current_admin),
):
    store.unassign_link_from_user(user_id, link_id)
    return {"message": "Assignment removed successfully"}
