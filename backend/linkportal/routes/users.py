from fastapi import APIRouter, Depends, status

from linkportal.core.auth import get_current_admin
from linkportal.database.deps import get_store
from linkportal.schemas.user import UserCreate, UserOut
from linkportal.services.store import PortalStore

router = APIRouter(prefix="/users", tags=["Users"])


@router.get("", response_model=list[UserOut])
def list_users(
    store: PortalStore = Depends(get_store),
    current_user: UserOut = Depends(get_current_admin),
):
    return store.list_users()


@router.post("", response_model=UserOut, status_code=status.HTTP_201_CREATED)
def create_user(
    payload: UserCreate,
    store: PortalStore = Depends(get_store),
    current_user: UserOut = Depends(get_current_admin),
):
    return store.create_user(payload.username, payload.password, payload.role)


@router.delete("/{user_id}")
def delete_user(
    user_id: str,
    store: PortalStore = Depends(get_store),
    current_user: UserOut = Depends(get_current_admin),
):
    store.delete_user(user_id)
    return {"message": "User deleted successfully"}
