"""
Pydantic schemas for registration, login and token verification.
"""
from typing import Literal
from pydantic import BaseModel, Field, EmailStr, ConfigDict, field_validator
from ..db.enums import UserRole

class UserRegister(BaseModel):
    name: str = Field(min_length=1, max_length=200)
    email: EmailStr
    # Administrators are provisioned by seeding, never by self-registration
    registering_as: Literal[UserRole.OWNER, UserRole.ADVERTISER]
    phone: str = Field(min_length=5, max_length=20)
    gov_id_type: str = Field(min_length=1, max_length=50)
    gov_id_no: str = Field(min_length=1, max_length=100)
    password: str = Field(min_length=8, max_length=128)

    @field_validator("name", "gov_id_type", "gov_id_no")
    @classmethod
    def strip_required(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("must not be blank")
        return v

    model_config = ConfigDict(json_schema_extra={
        "example": {
            "name": "Asha Rao",
            "email": "asha@example.com",
            "registering_as": "ADVERTISER",
            "phone": "9876543210",
            "gov_id_type": "AADHAAR",
            "gov_id_no": "1234-5678-9012",
            "password": "correct horse battery",
        }
    })

class UserLogin(BaseModel):
    email: EmailStr
    password: str = Field(min_length=1)
    login_as: UserRole
    # API clients that send Authorization headers ask for the token in the body
    bearer: bool = False

class AuthIdentity(BaseModel):
    """Who the current token belongs to."""
    id: int
    role: UserRole

class UserRead(BaseModel):
    id: int
    name: str
    email: str
    phone: str
    role: UserRole
    is_active: bool

    model_config = ConfigDict(from_attributes=True)
