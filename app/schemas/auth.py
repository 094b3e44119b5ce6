"""Authentication schemas."""

from pydantic import BaseModel, Field


class ExpertRegister(BaseModel):
    """Schema for expert registration."""

    username: str = Field(min_length=3, max_length=150)
    password: str = Field(min_length=8, max_length=100)
    name: str = Field(min_length=1, max_length=255)
    role: str = Field(min_length=1, max_length=255)


class ExpertLogin(BaseModel):
    """Schema for expert login."""

    username: str
    password: str


class Token(BaseModel):
    """Schema for JWT token response."""

    access_token: str
    refresh_token: str
    token_type: str = "bearer"


class TokenRefresh(BaseModel):
    """Schema for refresh token request."""

    refresh_token: str
