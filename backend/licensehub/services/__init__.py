"""
Services Module

The licensing core:
- Credit ledger: balance checks, debits and top-ups
- Key issuance: minting and deleting reseller keys
- Verification engine: expiry and device-binding checks
- Registration gate: referral tokens and reseller sign-up
- Usage log: record of every verification call
"""

from .accounts import AccountService
from .issuance import KeyIssuer
from .key_index import KeyIndex
from .ledger import CreditLedger
from .licensing import LicensingService
from .registration import RegistrationGate
from .usage import UsageLog
from .verification import VerificationEngine, device_admits

__all__ = [
    "AccountService",
    "CreditLedger",
    "KeyIndex",
    "KeyIssuer",
    "LicensingService",
    "RegistrationGate",
    "UsageLog",
    "VerificationEngine",
    "device_admits",
]
