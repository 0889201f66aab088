from typing import Union

from fastapi import APIRouter, Depends, status
from fastapi.responses import RedirectResponse

from linkportal.core.auth import get_current_admin, get_current_user
from linkportal.core.config import API_PREFIX, SUGGESTED_CATEGORIES
from linkportal.database.deps import get_store
from linkportal.schemas.link import CategoryGroups, LinkCreate, LinkOut, LinkUpdate
from linkportal.schemas.user import UserOut
from linkportal.services.store import PortalStore

router = APIRouter(prefix="/links", tags=["Links"])


@router.get("", response_model=Union[CategoryGroups, list[LinkOut]])
def list_links(
    grouped: bool = False,
    store: PortalStore = Depends(get_store),
):
    if grouped:
        return store.list_links_by_category()
    return store.list_links()


@router.get("/categories", response_model=list[str])
def list_categories():
    return SUGGESTED_CATEGORIES


@router.get("/user-assigned", response_model=CategoryGroups)
def list_user_assigned_links(
    store: PortalStore = Depends(get_store),
    current_user: UserOut = Depends(get_current_user),
):
    if current_user.role == "admin":
        return RedirectResponse(url=f"{API_PREFIX}/links?grouped=true", status_code=status.HTTP_307_TEMPORARY_REDIRECT)
    return store.get_user_assigned_links(current_user.id)


@router.post("", response_model=LinkOut, status_code=status.HTTP_201_CREATED)
def create_link(
    payload: LinkCreate,
    store: PortalStore = Depends(get_store),
    current_user: UserOut = Depends(get_current_admin),
):
    return store.create_link(payload.model_dump())


@router.put("/{link_id}", response_model=LinkOut)
def update_link(
    link_id: str,
    payload: LinkUpdate,
    store: PortalStore = Depends(get_store),
    current_user: UserOut = Depends(get_current_admin),
):
    return store.update_link(link_id, payload.model_dump(exclude_unset=True))


@router.delete("/{link_id}")
def delete_link(
    link_id: str,
    store: PortalStore = Depends(get_store),
    current_user: UserOut = Depends(get_current_admin),
):
    store.delete_link(link_id)
    return {"message": "Link deleted successfully"}
