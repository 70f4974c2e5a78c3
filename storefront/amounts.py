# amounts above the threshold are taken as kobo unless the unit is given
import math
from typing import Optional, Union

from storefront.exceptions import InvalidAmount
from storefront.logging_config import get_logger

logger = get_logger(__name__)

KOBO_PER_NAIRA = 100
DEFAULT_KOBO_THRESHOLD = 10_000_000

MAJOR = "major"
MINOR = "minor"

CARD_FEE_RATE = 0.015
CARD_FEE_FLAT = 100
CARD_FEE_WAIVER_LIMIT = 2500
CARD_FEE_CAP = 2000


def _round_half_up(value: float) -> int:
    return int(math.floor(value + 0.5))


def parse_amount(amount: Union[int, float, str]) -> float:
    if isinstance(amount, bool):
        raise InvalidAmount("Invalid amount format")
    if isinstance(amount, (int, float)):
        value = float(amount)
    elif isinstance(amount, str):
        try:
            value = float(amount.replace(",", "").strip())
        except ValueError:
            raise InvalidAmount("Invalid amount format", detail=f"not a number: {amount!r}")
    else:
        raise InvalidAmount("Invalid amount format")

    if math.isnan(value) or math.isinf(value):
        raise InvalidAmount("Invalid amount format", detail=f"not a finite number: {amount!r}")
    if value <= 0:
        raise InvalidAmount("Amount must be greater than zero")
    return value


def normalize_amount(
    amount: Union[int, float, str],
    unit: Optional[str] = None,
    threshold: int = DEFAULT_KOBO_THRESHOLD,
) -> int:
    """Return the amount in kobo.

    Args:
        amount: number or numeric string, thousands separators allowed
        unit: "major" (naira), "minor" (kobo) or None to apply the threshold heuristic
        threshold: values above it are taken as kobo when `unit` is None
    """
    value = parse_amount(amount)

    if unit == MINOR:
        return _round_half_up(value)
    if unit == MAJOR:
        return _round_half_up(value * KOBO_PER_NAIRA)
    if unit is not None:
        raise InvalidAmount("Invalid amount unit", detail=f"expected 'major' or 'minor', got {unit!r}")

    if value > threshold:
        logger.info("amount_already_minor", amount=value, threshold=threshold)
        return _round_half_up(value)

    kobo = _round_half_up(value * KOBO_PER_NAIRA)
    logger.info("amount_converted", naira=value, kobo=kobo)
    return kobo


def to_major_units(minor: Union[int, float]) -> float:
    return minor / KOBO_PER_NAIRA


def calculate_payment_fee(amount: Union[int, float], method: str = "card") -> float:
    """Paystack local card fee: 1.5% + ₦100 above ₦2,500, capped at ₦2,000."""
    if method == "card" and amount > CARD_FEE_WAIVER_LIMIT:
        return min(amount * CARD_FEE_RATE + CARD_FEE_FLAT, CARD_FEE_CAP)
    return 0
