from typing import Optional
from uuid import UUID

from fastapi_users import schemas

# fastapi-users provides the base read/create/update schemas; staff accounts add a display name.


class UserRead(schemas.BaseUser[UUID]):
    full_name: Optional[str] = None


class UserCreate(schemas.BaseUserCreate):
    full_name: Optional[str] = None


class UserUpdate(schemas.BaseUserUpdate):
    full_name: Optional[str] = None
