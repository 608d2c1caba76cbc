"""Endpoint descriptors for the identity API.

Each descriptor validates the shape of its inputs and maps them to an
``ApiRequest``; the decoded response is passed through unchanged.
"""

from __future__ import annotations

import re

from .errors import ValidationError
from .models import ApiRequest, HttpMethod

CARDS_PATH = "/v1/cards"
IBANS_PATH = "/v1/ibans"
POSTAL_PATH = "/v1/postal"
MATCHING_PATH = "/v1/services/matching"

_SEPARATORS = re.compile(r"[\s-]")
_IBAN = re.compile(r"IR\d{24}")


def _digits(value: str, length: int, field: str) -> str:
    """Strip separators and require exactly ``length`` digits."""
    if not isinstance(value, str):
        raise ValidationError(f"{field} must be a string", details={"field": field})
    cleaned = _SEPARATORS.sub("", value)
    if len(cleaned) != length or not cleaned.isascii() or not cleaned.isdigit():
        raise ValidationError(
            f"{field} must be exactly {length} digits",
            details={"field": field},
        )
    return cleaned


def normalize_card_number(card_number: str) -> str:
    return _digits(card_number, 16, "card_number")


def normalize_national_code(national_code: str) -> str:
    return _digits(national_code, 10, "national_code")


def normalize_postal_code(postal_code: str) -> str:
    return _digits(postal_code, 10, "postal_code")


def normalize_birth_date(birth_date: str) -> str:
    """Birth date in compact ``YYYYMMDD`` form (the API uses Solar Hijri dates)."""
    return _digits(birth_date, 8, "birth_date")


def normalize_iban(iban: str) -> str:
    if not isinstance(iban, str):
        raise ValidationError("iban must be a string", details={"field": "iban"})
    cleaned = _SEPARATORS.sub("", iban).upper()
    if not _IBAN.fullmatch(cleaned):
        raise ValidationError(
            "iban must be 'IR' followed by 24 digits", details={"field": "iban"}
        )
    return cleaned


def card_inquiry(card_number: str) -> ApiRequest:
    """Look up the owner and bank of a card."""
    return ApiRequest(
        method=HttpMethod.GET,
        path=CARDS_PATH,
        params={"number": normalize_card_number(card_number)},
    )


def iban_inquiry(iban: str) -> ApiRequest:
    """Look up the owner and status of an IBAN."""
    return ApiRequest(
        method=HttpMethod.GET,
        path=IBANS_PATH,
        params={"value": normalize_iban(iban)},
    )


def postal_code_inquiry(postal_code: str) -> ApiRequest:
    """Look up the address registered for a postal code."""
    return ApiRequest(
        method=HttpMethod.GET,
        path=POSTAL_PATH,
        params={"code": normalize_postal_code(postal_code)},
    )


def card_national_code_matching(
    card_number: str,
    national_code: str,
    birth_date: str,
) -> ApiRequest:
    """Check that a card belongs to the holder of a national code."""
    return ApiRequest(
        method=HttpMethod.GET,
        path=MATCHING_PATH,
        params={
            "cardNumber": normalize_card_number(card_number),
            "nationalCode": normalize_national_code(national_code),
            "birthDate": normalize_birth_date(birth_date),
        },
    )
