"""
Pydantic schemas for signup and password checking.
"""

from typing import List, Optional

from pydantic import BaseModel, Field


class SignupRequest(BaseModel):
    """
    Request to create a Supabase Auth user.

    The password is checked with the same rules as /auth/password-check
    before Supabase is called.
    """
    email: str = Field(..., description="User email", examples=["cashier@example.com"])
    password: str = Field(..., description="Password (min 8 chars, upper, lower, digit)")
    name: Optional[str] = Field(None, description="Display name stored in user metadata")


class SignupResponse(BaseModel):
    user_id: str = Field(..., description="New user's UUID")
    email: str = Field(..., description="Registered email")
    confirmation_required: bool = Field(
        ...,
        description="True when the user must confirm their email before signing in"
    )


class PasswordCheckRequest(BaseModel):
    password: str = Field(..., description="Password to evaluate (never stored or logged)")


class PasswordCheckResponse(BaseModel):
    """
    Result of password validation.

    A password is valid with at least 8 characters, an uppercase letter, a
    lowercase letter and a digit. A missing special character only adds an
    advisory message.
    """
    is_valid: bool = Field(..., description="Whether the password meets the requirements")
    errors: List[str] = Field(default_factory=list, description="Unmet requirements and advice")
    strength: int = Field(..., ge=0, le=100, description="Strength score from 0 to 100")


class MeResponse(BaseModel):
    """The authenticated user with their profile and role."""
    user_id: str = Field(..., description="Authenticated user's UUID (auth.uid())")
    email: Optional[str] = Field(None, description="Profile email")
    first_name: Optional[str] = Field(None, description="Profile first name")
    last_name: Optional[str] = Field(None, description="Profile last name")
    role: Optional[str] = Field(None, description="Role name, null when no role is assigned")
