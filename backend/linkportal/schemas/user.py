from datetime import datetime
from typing import Optional

from pydantic import BaseModel, ConfigDict


class UserCreate(BaseModel):
    username: Optional[str] = None
    password: Optional[str] = None
    role: str = "user"


class UserLogin(BaseModel):
    username: str
    password: str
    remember: bool = False


class UserOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    username: str
    role: str
    created_at: Optional[datetime] = None


class UserRecord(UserOut):
    """Full credential row, only handed to the login flow."""

    password_hash: str
