from datetime import datetime

from pydantic import BaseModel, Field


class UserCreate(BaseModel):
    first_name: str = Field(..., max_length=100)
    last_name: str = Field(..., max_length=100)
    email: str = Field(..., max_length=100)
    avatar: str | None = Field(default=None, max_length=255)


class User(BaseModel):
    id: int
    first_name: str | None = None
    last_name: str | None = None
    email: str | None = None
    avatar: str | None = None
    created_at: datetime | None = None


class FetchUsersRequest(BaseModel):
    count: int | None = None


class FetchUsersResponse(BaseModel):
    message: str


class UserCount(BaseModel):
    total: int
