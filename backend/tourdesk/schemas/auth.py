from typing import Literal
from pydantic import BaseModel, EmailStr, Field

Role = Literal["user", "admin", "vadmin"]

class Token(BaseModel):
    access_token: str
    token_type: str = "bearer"
    role: Role
    full_name: str

class UserRegister(BaseModel):
    email: EmailStr
    password: str = Field(..., min_length=6)
    full_name: str = Field(..., min_length=1, max_length=255)

class AgentOut(BaseModel):
    id: int
    email: EmailStr
    full_name: str
    role: Role
    is_active: bool

    class Config:
        from_attributes = True

class AgentLogin(BaseModel):
    email: EmailStr
    password: str
