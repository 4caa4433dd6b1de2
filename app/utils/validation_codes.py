"""
Appointment completion codes

The client receives a 6-digit code and reads it to the provider, who
submits it to mark the appointment as completed.
"""
import hashlib
import hmac
import re
import secrets

from app.config import settings

CODE_PATTERN = re.compile(r"^\d{6}$")


def generate_validation_code() -> str:
    """Random code between 100000 and 999999"""
    return str(100000 + secrets.randbelow(900000))


def hash_validation_code(code: str) -> str:
    """SHA-256 hex digest of the code followed by the configured salt"""
    return hashlib.sha256(f"{code}{settings.VALIDATION_CODE_SALT}".encode("utf-8")).hexdigest()


def verify_validation_code(code: str, code_hash: str) -> bool:
    if not code or not code_hash:
        return False
    return hmac.compare_digest(hash_validation_code(code), code_hash)


def is_valid_code_format(code: str) -> bool:
    return bool(code) and bool(CODE_PATTERN.match(code))
