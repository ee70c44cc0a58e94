"""
Pydantic schemas for authentication endpoints.
Defines request/response models for admin and reseller login.
"""
from typing import Literal

from pydantic import BaseModel

class LoginRequest(BaseModel):
    """
    Request model for login endpoints.
    Contains credentials for authentication.
    """
    username: str  # Login name
    password: str  # Password (plain text, checked against the stored hash)

class PrincipalOut(BaseModel):
    """
    Identity returned in authentication responses.
    Contains no credential material.
    """
    username: str
    role: Literal["admin", "reseller"]

class LoginResponse(BaseModel):
    """
    Response model for successful login.
    Returns the principal and an access token for authenticated requests.
    """
    user: PrincipalOut
    accessToken: str  # JWT access token for API authentication
