from datetime import datetime

from pydantic import BaseModel, ConfigDict, EmailStr, Field

from app.constants.roles import DEFAULT_ROLE, RoleName


class UserCreate(BaseModel):
    model_config = ConfigDict(extra="forbid")

    username: str = Field(..., min_length=3, max_length=50, description="Username must be between 3 and 50 characters.")
    email: EmailStr = Field(..., description="A valid email address.")
    role: RoleName = DEFAULT_ROLE


class UserUpdate(BaseModel):
    model_config = ConfigDict(extra="forbid")

    username: str | None = Field(None, min_length=3, max_length=50, description="Username must be between 3 and 50 characters.")
    email: EmailStr | None = Field(None, description="A valid email address.")


class RoleUpdate(BaseModel):
    model_config = ConfigDict(extra="forbid")

    user_ids: list[int] = Field(..., min_length=1)
    role: RoleName


class UserResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    username: str | None = None
    email: str
    role_id: int
    role: str | None = Field(None, validation_alias="role_name")
    created_at: datetime
