"""Domain Entities - Auth"""
from pydantic import BaseModel, Field
from uuid import UUID, uuid4
from typing import Optional

from domain.enums import Role


class User(BaseModel):
    """User Entity (guests and staff)"""
    user_id: UUID = Field(default_factory=uuid4)
    username: str
    email: Optional[str] = None
    full_name: Optional[str] = None
    phone: Optional[str] = None
    role: Role = Role.CUSTOMER
    disabled: bool = False

    class Config:
        from_attributes = True

    def is_staff(self) -> bool:
        return self.role.is_staff()


class UserInDB(User):
    """User with hashed password for DB storage"""
    hashed_password: str
