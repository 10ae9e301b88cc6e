"""Payment method validation.

Card data is checked the way a processor's test mode would: required fields,
designated decline numbers, a Luhn checksum, expiry against today's date and
CVC format. Validation reports a ``GatewayFailure`` instead of raising.
"""

import re
from datetime import date

from orderflow.errors import GatewayFailure
from orderflow.payment.processors import DECLINED_TEST_CARDS, EXPIRED_CARD

_CVC = re.compile(r"^\d{3,4}$")
_CARD_FIELDS = ("number", "exp_month", "exp_year", "cvc")


def luhn_valid(number: str) -> bool:
    if not number.isdigit():
        return False
    total = 0
    for index, char in enumerate(reversed(number)):
        digit = int(char)
        if index % 2 == 1:
            digit *= 2
            if digit > 9:
                digit -= 9
        total += digit
    return total % 10 == 0


def normalize_card_number(number) -> str:
    return re.sub(r"\s+", "", str(number))


def _invalid(code: str, message: str) -> GatewayFailure:
    return GatewayFailure(code, message, "invalid_request_error")


def validate_card(card: dict | None, today: date) -> GatewayFailure | None:
    if not card or any(card.get(name) in (None, "") for name in _CARD_FIELDS):
        return _invalid("incomplete_card", "Incomplete card details")

    number = normalize_card_number(card["number"])
    if number in DECLINED_TEST_CARDS:
        return DECLINED_TEST_CARDS[number]
    if not luhn_valid(number):
        return _invalid("invalid_card_number", "Invalid card number")

    try:
        month, year = int(card["exp_month"]), int(card["exp_year"])
    except (TypeError, ValueError):
        return _invalid("invalid_expiry", "Invalid expiry date")
    if not 1 <= month <= 12:
        return _invalid("invalid_expiry", "Invalid expiry date")
    if (year, month) < (today.year, today.month):
        return EXPIRED_CARD

    if not _CVC.match(str(card["cvc"])):
        return _invalid("invalid_cvc", "Invalid CVC")
    return None


def validate_payment_method(method: dict | None, today: date) -> GatewayFailure | None:
    """Return the first problem with ``method``, or None when it is usable."""
    if not method or not method.get("type"):
        return _invalid("invalid_payment_method", "Payment method type is required")

    if method["type"] == "card":
        failure = validate_card(method.get("card"), today)
        if failure is not None:
            return failure

    billing = method.get("billing_details")
    if billing is not None and not billing.get("email"):
        return _invalid("invalid_billing_details", "Billing details email is required")
    return None


def describe_method(method: dict) -> dict:
    """The non-sensitive part of a payment method, safe to store and return."""
    summary = {"type": method.get("type")}
    card = method.get("card")
    if method.get("type") == "card" and card:
        number = normalize_card_number(card.get("number", ""))
        summary["last4"] = number[-4:]
        summary["brand"] = card_brand(number)
    return summary


def card_brand(number: str) -> str:
    if number.startswith("4"):
        return "visa"
    if number[:2] in {"51", "52", "53", "54", "55"} or number[:2] == "22":
        return "mastercard"
    if number[:2] in {"34", "37"}:
        return "amex"
    if number.startswith("6"):
        return "discover"
    return "unknown"
