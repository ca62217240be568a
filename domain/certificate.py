"""
Domain: certificate code generation and validation.

A certificate code is the public 8-digit identifier printed on a graded card's
capsule. It follows the short-barcode (EAN-8) check digit scheme:

- 7 payload digits, drawn uniformly at random.
- weighted_sum = sum(digit * (3 if index is even else 1)), index 0-based from the left.
- check_digit = (10 - (weighted_sum mod 10)) mod 10, appended as the 8th digit.

A valid code always reproduces its own check digit from its first 7 digits, so
single-digit typos are caught at verification time.

Generation is pure: the caller passes the set of codes it believes are taken
and must still rely on the store's uniqueness constraint at commit time.
"""

from __future__ import annotations

import random
from typing import AbstractSet, Optional

from .errors import GenerationExhausted

CODE_LENGTH: int = 8
PAYLOAD_LENGTH: int = CODE_LENGTH - 1
MAX_GENERATION_ATTEMPTS: int = 50

_system_random = random.SystemRandom()


def compute_check_digit(digits: str) -> int:
    """
    Compute the check digit for a string of payload digits.

    Example:
        compute_check_digit("1234567")
        # 3*1 + 2 + 3*3 + 4 + 3*5 + 6 + 3*7 = 60 -> check digit 0
    """

    if not digits.isdigit():
        raise ValueError("payload must contain only decimal digits")

    weighted_sum = sum(
        int(digit) * (3 if index % 2 == 0 else 1)
        for index, digit in enumerate(digits)
    )
    return (10 - (weighted_sum % 10)) % 10


def is_valid_certificate_code(code: str) -> bool:
    """True if code is 8 ASCII digits whose last digit verifies the first 7."""

    if len(code) != CODE_LENGTH or not code.isascii() or not code.isdigit():
        return False
    return compute_check_digit(code[:PAYLOAD_LENGTH]) == int(code[-1])


def normalize_certificate_code(text: str) -> str:
    """Strip surrounding and embedded whitespace from a user-typed code."""

    return "".join(text.split())


def generate_certificate_code(
    existing_codes: AbstractSet[str],
    *,
    max_attempts: int = MAX_GENERATION_ATTEMPTS,
    rng: Optional[random.Random] = None,
) -> str:
    """
    Draw a new certificate code that is not in existing_codes.

    Args:
        existing_codes: Codes already assigned (may be stale under concurrency)
        max_attempts: Number of draws before giving up
        rng: Random source; defaults to the OS entropy source

    Returns:
        An 8-digit code with a valid check digit

    Raises:
        GenerationExhausted: If every draw collided with existing_codes
    """

    if max_attempts < 1:
        raise ValueError("max_attempts must be >= 1")

    source = rng or _system_random

    for _ in range(max_attempts):
        payload = "".join(str(source.randrange(10)) for _ in range(PAYLOAD_LENGTH))
        code = f"{payload}{compute_check_digit(payload)}"
        if code not in existing_codes:
            return code

    raise GenerationExhausted(max_attempts)


__all__ = [
    "CODE_LENGTH",
    "MAX_GENERATION_ATTEMPTS",
    "compute_check_digit",
    "generate_certificate_code",
    "is_valid_certificate_code",
    "normalize_certificate_code",
]
