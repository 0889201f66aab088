from typing import Optional

from fastapi import Depends
from fastapi.security import OAuth2PasswordBearer
from jose import JWTError, jwt

from linkportal.core.config import ALGORITHM, API_PREFIX, SECRET_KEY
from linkportal.core.errors import Forbidden, Unauthenticated
from linkportal.database.deps import get_store
from linkportal.schemas.user import UserOut
from linkportal.services.store import PortalStore

oauth2_scheme = OAuth2PasswordBearer(tokenUrl=f"{API_PREFIX}/auth/login", auto_error=False)


def get_current_user(
    token: Optional[str] = Depends(oauth2_scheme),
    store: PortalStore = Depends(get_store),
) -> UserOut:
    if not token:
        raise Unauthenticated("Not authenticated")
    try:
        payload = jwt.decode(token, SECRET_KEY, algorithms=[ALGORITHM])
        user_id = payload.get("sub")
        if user_id is None:
            raise Unauthenticated()
    except JWTError:
        raise Unauthenticated()

    # Tokens of deleted users stop working immediately.
    user = store.get_user_by_id(str(user_id))
    if not user:
        raise Unauthenticated()
    return user


def get_current_admin(current_user: UserOut = Depends(get_current_user)) -> UserOut:
    if current_user.role != "admin":
        raise Forbidden("Admin access required")
    return current_user
