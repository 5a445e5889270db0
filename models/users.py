from enum import Enum
from typing import Optional
from pydantic import BaseModel, ConfigDict, EmailStr, Field, field_validator
from models.base import DocumentModel

class Role(str, Enum):
    FARMER = "farmer"
    BUYER = "buyer"
    ADMIN = "admin"

class UserRegister(BaseModel):
    model_config = ConfigDict(str_strip_whitespace=True)

    name: str = Field(..., min_length=2, max_length=100)
    email: EmailStr
    password: str = Field(..., min_length=6)
    role: Role = Role.BUYER
    phone: Optional[str] = None
    address: Optional[str] = None

    @field_validator("role")
    @classmethod
    def no_self_registered_admins(cls, v):
        if v == Role.ADMIN:
            raise ValueError("Role must be farmer or buyer")
        return v

class LoginRequest(BaseModel):
    email: EmailStr
    password: str

class ProfileUpdate(BaseModel):
    model_config = ConfigDict(str_strip_whitespace=True)

    name: Optional[str] = Field(None, min_length=2, max_length=100)
    phone: Optional[str] = None
    address: Optional[str] = None

class User(DocumentModel):
    name: str
    email: EmailStr
    role: Role
    phone: Optional[str] = None
    address: Optional[str] = None
    is_blocked: bool = False
