"""
Authentication Pydantic schemas.
"""

from pydantic import BaseModel, EmailStr, Field


class SignUpRequest(BaseModel):
    """
    Schema for sign-up.

    There is no privilege field: every new user is a regular user.
    """
    email: EmailStr = Field(..., description="Login email")
    password: str = Field(..., min_length=6, max_length=72, description="Password (6-72 characters)")
    address: str = Field(default="", max_length=500, description="Postal address")


class LoginRequest(BaseModel):
    email: EmailStr = Field(..., description="Login email")
    password: str = Field(..., description="Password")


class TokenResponse(BaseModel):
    """
    Returned by sign-up and login.

    ``redirect`` is the dashboard matching the user's privilege flag.
    """
    access_token: str
    token_type: str = "bearer"
    user_id: int
    email: str
    priv: bool
    redirect: str

