"""Pydantic schemas for authentication API.

Request and response models used by the signup, login, me and logout
endpoints.
"""

from pydantic import BaseModel, EmailStr, Field
from datetime import datetime
import uuid
from typing import Optional

# --- BASE MODELS (Used by multiple responses) ---

class User(BaseModel):
    """Base user model for responses (excludes sensitive data)."""
    user_id: uuid.UUID 
    email: str
    created_at: datetime 


# --- SIGNUP ---

class SignupInput(BaseModel):
    """Payload for account creation."""
    email: EmailStr
    password: str = Field(min_length=6)

class UserCreateResponse(BaseModel):
    """Response structure for successful signup."""
    success: bool
    message: str
    data: User



# --- LOGIN ---

class LoginInput(BaseModel):
    """Payload for user login."""
    email: EmailStr
    password: str

class LoginData(BaseModel):
    """Data returned upon successful login."""
    user_id: uuid.UUID
    email: str
    created_at: datetime
    access_token: Optional[str] = None

class LoginResponse(BaseModel):
    """Response structure for successful login."""
    success: bool
    message: str
    data: LoginData



# --- LOGOUT ---

class LogoutResponse(BaseModel):
    success: bool
    message: str
    data: dict = {}
