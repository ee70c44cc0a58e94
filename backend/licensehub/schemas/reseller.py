"""
Pydantic schemas for resellers and referral registration.
Defines the stored reseller record and the request/response models used by
the registration and admin endpoints.
"""
import datetime as dt

from pydantic import BaseModel, Field, constr


class Reseller(BaseModel):
    """
    Stored reseller record.
    - passwordHash: argon2 hash of the reseller password (never plaintext)
    - credits: Remaining key-mint credits, never negative
    """
    id: str
    username: str
    passwordHash: str
    createdAt: dt.datetime
    credits: int = Field(default=0, ge=0)


class ResellerOut(BaseModel):
    """
    Reseller information returned by the API.
    Same as Reseller without the credential.
    """
    id: str
    username: str
    createdAt: dt.datetime
    credits: int

    @classmethod
    def from_record(cls, r: Reseller) -> "ResellerOut":
        return cls(id=r.id, username=r.username, createdAt=r.createdAt, credits=r.credits)


class RegisterIn(BaseModel):
    """
    Request model for reseller self-registration.
    A valid, unused referral token issued by the admin is required.
    """
    username: constr(strip_whitespace=True, min_length=1, max_length=64)
    password: constr(min_length=1)
    referralToken: constr(strip_whitespace=True, min_length=1)


class AddCreditsIn(BaseModel):
    """Request model for admin credit top-ups."""
    username: constr(strip_whitespace=True, min_length=1)
    credits: int = Field(gt=0, le=100000, description="Credits to add, must be positive")
