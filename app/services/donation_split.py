"""Donation fee splitting.

A donor gives ``amount`` and may add a voluntary ``tip``. Card processing
costs 2.9% + $0.30 and the platform keeps 3%. The tip is spent on those fees
first (processing before platform); whatever the tip does not cover is taken
out of the donation. The donor is always charged ``amount + tip``.

Everything here is exact ``Decimal`` arithmetic. Rounding to cents happens
only when a breakdown is presented (``DonationSplit.rounded``,
``format_currency``), never between steps.
"""

from __future__ import annotations

from dataclasses import dataclass, fields
from decimal import Decimal, ROUND_HALF_UP
from typing import Union

Number = Union[Decimal, int, float, str]

PROCESSING_FEE_RATE = Decimal("0.029")
PROCESSING_FEE_FIXED = Decimal("0.30")
PLATFORM_FEE_RATE = Decimal("0.03")

MIN_DONATION = Decimal("1")
MIN_TIP = Decimal("0")

CENT = Decimal("0.01")
ZERO = Decimal("0")


@dataclass(frozen=True)
class DonationRequest:
    amount: Decimal
    tip: Decimal


@dataclass(frozen=True)
class DonationSplit:
    amount: Decimal
    processing_fee: Decimal
    platform_fee: Decimal
    processing_fee_remaining: Decimal
    platform_fee_remaining: Decimal
    tip_applied: Decimal
    beneficiary_receives: Decimal
    donor_total_charge: Decimal
    tip_percent_of_donation: Decimal

    @property
    def total_fees(self) -> Decimal:
        return self.processing_fee + self.platform_fee

    @property
    def fees_covered(self) -> bool:
        return self.tip_applied >= self.total_fees

    def rounded(self) -> "DonationSplit":
        """Copy with every currency field quantized to cents for display."""
        values = {}
        for field in fields(self):
            value = getattr(self, field.name)
            if field.name != "tip_percent_of_donation":
                value = to_cents(value)
            values[field.name] = value
        return DonationSplit(**values)


def to_decimal(value: Number) -> Decimal:
    if isinstance(value, Decimal):
        return value
    if isinstance(value, float):
        return Decimal(str(value))
    return Decimal(value)


def to_cents(value: Decimal) -> Decimal:
    return value.quantize(CENT, rounding=ROUND_HALF_UP)


def format_currency(value: Decimal, symbol: str = "$") -> str:
    return f"{symbol}{to_cents(value):.2f}"


def processing_fee_for(amount: Number) -> Decimal:
    return to_decimal(amount) * PROCESSING_FEE_RATE + PROCESSING_FEE_FIXED


def platform_fee_for(amount: Number) -> Decimal:
    return to_decimal(amount) * PLATFORM_FEE_RATE


def clamp_donation_request(
    amount: Number | None,
    tip: Number | None,
    default_amount: Number = Decimal("100"),
    default_tip: Number = Decimal("10"),
) -> DonationRequest:
    """Apply the caller-side bounds: at least one currency unit, never a negative tip."""
    amount_value = to_decimal(default_amount if amount is None else amount)
    tip_value = to_decimal(default_tip if tip is None else tip)
    return DonationRequest(amount=max(MIN_DONATION, amount_value), tip=max(MIN_TIP, tip_value))


def compute_donation_split(amount: Number, tip: Number) -> DonationSplit:
    """Split ``amount + tip`` between processing, platform and beneficiary.

    Bounds are not checked here; use ``clamp_donation_request`` first.
    """
    amount = to_decimal(amount)
    tip = to_decimal(tip)

    processing = processing_fee_for(amount)
    platform = platform_fee_for(amount)
    total_fees = processing + platform

    # a tip exactly equal to the fees counts as covering them
    if tip >= total_fees:
        beneficiary = amount
    else:
        beneficiary = amount - (total_fees - tip)

    processing_remaining = max(ZERO, processing - min(tip, processing))
    platform_remaining = max(ZERO, platform - max(ZERO, tip - processing))

    tip_percent = tip / amount if amount != 0 else ZERO

    return DonationSplit(
        amount=amount,
        processing_fee=processing,
        platform_fee=platform,
        processing_fee_remaining=processing_remaining,
        platform_fee_remaining=platform_remaining,
        tip_applied=tip,
        beneficiary_receives=beneficiary,
        donor_total_charge=amount + tip,
        tip_percent_of_donation=tip_percent,
    )


def describe_fee_line(remaining: Decimal, tip: Decimal, policy: str) -> str:
    if remaining == 0:
        return "covered by tip"
    if tip > 0:
        return "partially covered"
    return policy


def whole_percent(ratio: Decimal) -> int:
    return int((ratio * 100).quantize(Decimal("1"), rounding=ROUND_HALF_UP))
