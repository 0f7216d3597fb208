from typing import Literal, Optional

from pydantic import BaseModel, ConfigDict, EmailStr


class UserCreate(BaseModel):
    email: EmailStr
    password: str
    name: Optional[str] = None
    role: Literal["trainer", "client"] = "trainer"


class UserResponse(BaseModel):
    id: str
    email: EmailStr
    name: Optional[str] = None
    role: Literal["trainer", "client"]

    model_config = ConfigDict(from_attributes=True)
