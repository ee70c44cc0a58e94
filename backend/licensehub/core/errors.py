"""
Error kinds raised by the licensing core.

Every failure the core reports is a subclass of LicensingError carrying a
machine-readable `code`, a human `message` and the HTTP status the transport
should answer with. Routers never build these responses by hand; the handler
registered in licensehub.main renders them in the standard envelope.
"""


class LicensingError(Exception):
    code = "LICENSING_ERROR"
    status_code = 400
    default_message = "Request could not be completed"

    def __init__(self, message: str | None = None):
        self.message = message or self.default_message
        super().__init__(self.message)

    def to_dict(self) -> dict:
        return {"code": self.code, "message": self.message}


class UnknownReseller(LicensingError):
    code = "UNKNOWN_RESELLER"
    status_code = 404
    default_message = "Reseller not found"


class InsufficientCredits(LicensingError):
    code = "INSUFFICIENT_CREDITS"
    default_message = "Insufficient credits"


class InvalidToken(LicensingError):
    code = "INVALID_TOKEN"
    default_message = "Invalid referral token"


class UsernameTaken(LicensingError):
    code = "USERNAME_EXISTS"
    default_message = "Username already exists"


class InvalidKey(LicensingError):
    code = "INVALID_KEY"
    status_code = 404
    default_message = "Invalid key"


class KeyExpired(LicensingError):
    code = "KEY_EXPIRED"
    status_code = 403
    default_message = "Key expired"


class KeyInUse(LicensingError):
    code = "KEY_IN_USE"
    status_code = 403
    default_message = "Key already in use"


class DuplicateKey(LicensingError):
    code = "KEY_EXISTS"
    status_code = 409
    default_message = "A key with this value already exists for this game"


class ValidationFailure(LicensingError):
    code = "BAD_REQUEST"
    status_code = 422
    default_message = "Malformed request"


class InvalidCredentials(LicensingError):
    code = "AUTH_INVALID_CREDENTIALS"
    status_code = 401
    default_message = "Incorrect username or password"


class StorageFailure(LicensingError):
    code = "STORAGE_FAILURE"
    status_code = 503
    default_message = "Storage is temporarily unavailable"
