"""
Custom validation utilities
"""
import re
from typing import Tuple, Optional


def validate_phone_number(phone: str) -> Tuple[bool, Optional[str], Optional[str]]:
    """
    Validate and normalize a Brazilian phone number

    Accepts local numbers with area code (10 or 11 digits) and numbers
    already carrying the 55 country code (12 or 13 digits).

    Returns:
        Tuple of (is_valid, digits_only_phone, error_message)
    """
    if not phone:
        return False, None, "Phone number is required"

    if re.search(r"[^\d\s\-\(\)\+]", phone):
        return False, None, "Phone number contains invalid characters"

    digits = re.sub(r"\D", "", phone)

    if len(digits) in (10, 11) or (digits.startswith("55") and len(digits) in (12, 13)):
        return True, digits, None

    return False, None, "Invalid phone number. Expected area code and number, e.g. (11) 91234-5678"


def _document_check_digits(numbers: str, weights: list) -> int:
    total = sum(int(n) * w for n, w in zip(numbers, weights))
    remainder = total % 11
    return 0 if remainder < 2 else 11 - remainder


def validate_cpf(cpf: str) -> bool:
    """Check the two verification digits of a CPF"""
    digits = re.sub(r"\D", "", cpf or "")
    if len(digits) != 11 or digits == digits[0] * 11:
        return False

    first = _document_check_digits(digits[:9], list(range(10, 1, -1)))
    second = _document_check_digits(digits[:10], list(range(11, 1, -1)))
    return digits[9:] == f"{first}{second}"


def validate_cnpj(cnpj: str) -> bool:
    """Check the two verification digits of a CNPJ"""
    digits = re.sub(r"\D", "", cnpj or "")
    if len(digits) != 14 or digits == digits[0] * 14:
        return False

    first = _document_check_digits(digits[:12], [5, 4, 3, 2, 9, 8, 7, 6, 5, 4, 3, 2])
    second = _document_check_digits(digits[:13], [6, 5, 4, 3, 2, 9, 8, 7, 6, 5, 4, 3, 2])
    return digits[12:] == f"{first}{second}"


def validate_pix_key(pix_key: str, pix_key_type: str) -> Tuple[bool, Optional[str]]:
    """
    Validate a PIX key against its declared type

    Returns:
        Tuple of (is_valid, error_message)
    """
    if not pix_key or not pix_key.strip():
        return False, "PIX key is required"

    key = pix_key.strip()

    if pix_key_type == "cpf":
        if not validate_cpf(key):
            return False, "Invalid CPF PIX key"
    elif pix_key_type == "cnpj":
        if not validate_cnpj(key):
            return False, "Invalid CNPJ PIX key"
    elif pix_key_type == "email":
        if not re.match(r"^[a-zA-Z0-9._%+-]+@[a-zA-Z0-9.-]+\.[a-zA-Z]{2,}$", key):
            return False, "Invalid e-mail PIX key"
    elif pix_key_type == "phone":
        is_valid, _, error = validate_phone_number(key)
        if not is_valid:
            return False, error
    elif pix_key_type == "random":
        if not re.match(r"^[0-9a-fA-F]{8}-?[0-9a-fA-F]{4}-?[0-9a-fA-F]{4}-?[0-9a-fA-F]{4}-?[0-9a-fA-F]{12}$", key):
            return False, "Invalid random PIX key"
    else:
        return False, "Invalid PIX key type. Use cpf, cnpj, email, phone or random"

    return True, None


def sanitize_input(text: str) -> str:
    """
    Strip markup and control characters from free text

    Args:
        text: Text to sanitize

    Returns:
        Sanitized text
    """
    if not text:
        return text

    # Remove potential HTML/script tags
    text = re.sub(r"<[^>]*>", "", text)

    # Remove control characters except newlines and tabs
    text = re.sub(r"[\x00-\x08\x0B-\x0C\x0E-\x1F\x7F]", "", text)

    return text.strip()
