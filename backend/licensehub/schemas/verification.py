"""
Pydantic schemas for key verification and API usage records.
"""
import datetime as dt
from typing import Literal

from pydantic import BaseModel

from .license_key import GameName


class VerificationEvent(BaseModel):
    """
    Audit record of one successful verification.
    expiresAt is the key's expiry at the time of verification, stored once.
    """
    id: str
    keyId: str
    gameName: GameName
    deviceIp: str
    verifiedAt: dt.datetime
    expiresAt: dt.datetime


class UsageEvent(BaseModel):
    """One call to a verification endpoint, successful or not."""
    id: str
    endpoint: str
    method: Literal["GET", "POST"]
    timestamp: dt.datetime
    ip: str
    success: bool


class VerifyKeyIn(BaseModel):
    """
    Request model for key verification.
    Contains the key entered in the game client.
    """
    key: str
