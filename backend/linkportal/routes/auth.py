import logging

from fastapi import APIRouter, Depends

from linkportal.core.auth import get_current_user
from linkportal.core.errors import Unauthenticated, ValidationError
from linkportal.core.security import create_access_token, token_lifetime, verify_password
from linkportal.database.deps import get_store
from linkportal.schemas.token import Token
from linkportal.schemas.user import UserLogin, UserOut
from linkportal.services.store import PortalStore

router = APIRouter(prefix="/auth", tags=["Auth"])
logger = logging.getLogger(__name__)


@router.post("/login", response_model=Token)
def login(credentials: UserLogin, store: PortalStore = Depends(get_store)):
    username = credentials.username.strip()
    if not username or not credentials.password:
        raise ValidationError("Username and password are required")

    # Unknown user and wrong password answer alike.
    user = store.get_user_by_username(username)
    if not user or not verify_password(credentials.password, user.password_hash):
        raise Unauthenticated("Invalid username or password")

    lifetime = token_lifetime(credentials.remember)
    token = create_access_token(
        {
            "sub": user.id,
            "username": user.username,
            "role": user.role,
            "remember": credentials.remember,
        },
        expires_delta=lifetime,
    )
    logger.info("User signed in: %s", user.username)
    return {"access_token": token, "token_type": "bearer", "expires_in": int(lifetime.total_seconds())}


@router.get("/me", response_model=UserOut)
def me(current_user: UserOut = Depends(get_current_user)):
    return current_user
