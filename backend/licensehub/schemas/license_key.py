"""
Pydantic schemas for game license keys.
Defines the stored key record and the request model for minting keys.
"""
from __future__ import annotations

import datetime as dt
from typing import Literal, Optional, get_args

from pydantic import BaseModel, Field, constr

GameName = Literal["PUBG MOBILE", "LAST ISLAND OF SURVIVAL", "STANDOFF2"]
DeviceLimit = Literal[1, 2, 100]

GAME_NAMES: tuple[str, ...] = get_args(GameName)
DEVICE_LIMITS: tuple[int, ...] = get_args(DeviceLimit)


class LicenseKey(BaseModel):
    """
    Activation key minted by a reseller.
    - keyValue: Caller-supplied value or 16 random hex characters
    - deviceLimit: 1, 2 or 100 devices
    - expiryDays: Key is valid until createdAt + expiryDays days
    - createdBy: Owning reseller username
    """
    id: str
    gameName: GameName
    keyValue: str
    deviceLimit: DeviceLimit
    expiryDays: int = Field(ge=1)
    createdAt: dt.datetime
    createdBy: str

    @property
    def expires_at(self) -> dt.datetime:
        return self.createdAt + dt.timedelta(days=self.expiryDays)


class IssueKeyIn(BaseModel):
    """
    Request model for minting a key.
    Costs one credit from the reseller's balance.
    """
    username: constr(strip_whitespace=True, min_length=1)
    gameName: GameName
    customKey: Optional[constr(max_length=128)] = None  # Used verbatim; empty or missing means random
    deviceLimit: DeviceLimit
    expiryDays: int = Field(ge=1, le=3650, description="Days until expiration")
