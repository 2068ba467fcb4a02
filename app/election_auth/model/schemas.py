from pydantic import BaseModel, ConfigDict, Field

from app.election_auth.model.enums import UserRole

class UserBase(BaseModel):
    """
    Basic user schema.
    """

    email: str
    password: str
    public_id: str
    role: UserRole = UserRole.admin

class UserIn(UserBase):
    """
    Schema for creating a user.
    """
    pass


class UserOut(BaseModel):
    """
    Schema for reading/returning User data.
    """
    model_config = ConfigDict(from_attributes=True)

    id: int
    email: str
    role: UserRole


class AdminLoginIn(BaseModel):
    email: str | None = None
    password: str | None = None


class StudentLoginIn(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    register_no: str | None = Field(default=None, alias="registerNo")
    password: str | None = None
