"""
Kenyan personal-data validators used when capturing employee payroll details.
"""
import re

NATIONAL_ID_PATTERN = re.compile(r"[0-9]{8}")
# 0712345678, 0712 345678, +254712345678, 254712345678
PHONE_PATTERN = re.compile(r"(\+?254|0)?[17][0-9]{8}")
COUNTRY_CODE = "+254"

def _strip_spaces(value: str) -> str:
    return re.sub(r"\s", "", value)

def validate_national_id(national_id: str) -> bool:
    if not isinstance(national_id, str):
        return False
    return NATIONAL_ID_PATTERN.fullmatch(national_id) is not None

def validate_phone_number(phone: str) -> bool:
    if not isinstance(phone, str):
        return False
    return PHONE_PATTERN.fullmatch(_strip_spaces(phone)) is not None

def format_phone_number(phone: str) -> str:
    """Normalize to +254XXXXXXXXX. Does not validate; call validate_phone_number first."""
    cleaned = _strip_spaces(phone)
    if cleaned.startswith(COUNTRY_CODE):
        return cleaned
    if cleaned.startswith("254"):
        return "+" + cleaned
    if cleaned.startswith("0"):
        return COUNTRY_CODE + cleaned[1:]
    return COUNTRY_CODE + cleaned
