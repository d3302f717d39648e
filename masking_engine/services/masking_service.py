"""Data Masking Service"""

import hashlib
import re
from typing import Optional, Union

from masking_engine.models.settings import DataType, MaskingPattern

HIDDEN = "*** HIDDEN ***"
STARS = "***"
VISIBLE_DIGITS = 4

_NON_DIGITS = re.compile(r"\D")


def normalize_pattern(pattern: Union[str, MaskingPattern, None]) -> MaskingPattern:
    """Map any pattern value to a known pattern (unknown -> standard)"""
    if isinstance(pattern, MaskingPattern):
        return pattern
    try:
        return MaskingPattern(pattern)
    except (ValueError, TypeError):
        return MaskingPattern.STANDARD


def mask_email(value: Optional[str], pattern: Union[str, MaskingPattern, None] = "standard") -> Optional[str]:
    """
    Mask an email address

    Patterns:
    - MINIMAL: j***@example.com
    - STANDARD: j***e@e***.com
    - COMPLETE: *** HIDDEN ***

    Values without "@" are returned unchanged except under COMPLETE.
    """
    if not value:
        return value

    pattern = normalize_pattern(pattern)

    if pattern == MaskingPattern.COMPLETE:
        return HIDDEN

    if "@" not in value:
        return value

    local_part, domain = value.split("@", 1)

    if pattern == MaskingPattern.MINIMAL:
        return f"{local_part[:1]}{STARS}@{domain}"

    if len(local_part) <= 2:
        return f"{STARS}@{mask_domain(domain)}"
    return f"{local_part[0]}{STARS}{local_part[-1]}@{mask_domain(domain)}"


def mask_domain(domain: str) -> str:
    """Mask every domain label except the TLD"""
    parts = domain.split(".")
    if len(parts) < 2:
        return domain

    masked_parts = []
    for index, part in enumerate(parts):
        if index == len(parts) - 1:
            masked_parts.append(part)
        elif len(part) <= 3:
            masked_parts.append(STARS)
        else:
            masked_parts.append(f"{part[0]}{STARS}")
    return ".".join(masked_parts)


def mask_phone(value: Optional[str], pattern: Union[str, MaskingPattern, None] = "standard") -> Optional[str]:
    """
    Mask a phone number

    Patterns:
    - MINIMAL: +1 ***-***-4567 (or +** for other country codes)
    - STANDARD: ***-***-4567
    - COMPLETE: *** HIDDEN ***

    Values with no digits are returned unchanged except under COMPLETE;
    values with four digits or fewer collapse to ***.
    """
    if not value:
        return value

    pattern = normalize_pattern(pattern)

    if pattern == MaskingPattern.COMPLETE:
        return HIDDEN

    digits = _NON_DIGITS.sub("", value)
    if not digits:
        return value
    if len(digits) <= VISIBLE_DIGITS:
        return STARS

    last_digits = digits[-VISIBLE_DIGITS:]

    if pattern == MaskingPattern.MINIMAL:
        country_code = "+1" if digits.startswith("1") else "+**"
        return f"{country_code} ***-***-{last_digits}"

    return f"***-***-{last_digits}"


def mask_email_list(value: Optional[str], pattern: Union[str, MaskingPattern, None] = "standard") -> Optional[str]:
    """Mask a comma-separated list of email addresses"""
    if not value:
        return value
    return ", ".join(mask_email(email.strip(), pattern) for email in value.split(","))


def mask_value(
    data_type: Union[str, DataType],
    value: Optional[str],
    pattern: Union[str, MaskingPattern, None] = "standard"
) -> Optional[str]:
    """Dispatch to the transformer for a data type (phone for anything not email)"""
    if data_type == DataType.EMAIL or data_type == DataType.EMAIL.value:
        return mask_email(value, pattern)
    return mask_phone(value, pattern)


def hash_value(value: str, salt: str = "") -> str:
    """One-way SHA-256 digest used to reference a value in audit records"""
    return hashlib.sha256(f"{salt}{value}".encode()).hexdigest()
