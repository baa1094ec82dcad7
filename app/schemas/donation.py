from __future__ import annotations

from decimal import Decimal
from pydantic import BaseModel, Field


class DonationSplitRequest(BaseModel):
    amount: Decimal | None = None
    tip: Decimal | None = None


class FeeBreakdown(BaseModel):
    amount: Decimal
    processing_fee: Decimal
    platform_fee: Decimal
    total_fees: Decimal
    processing_fee_remaining: Decimal
    platform_fee_remaining: Decimal
    tip_applied: Decimal
    beneficiary_receives: Decimal
    donor_total_charge: Decimal
    tip_percent_of_donation: Decimal


class FeeDisplay(BaseModel):
    donation: str
    tip: str
    tip_percent: int
    processing_fee: str
    processing_label: str
    platform_fee: str
    platform_label: str
    beneficiary_receives: str
    beneficiary_label: str
    donor_pays: str


class DonationSplitResponse(BaseModel):
    amount: Decimal
    tip: Decimal
    fees_covered: bool
    exact: FeeBreakdown
    rounded: FeeBreakdown
    display: FeeDisplay
    adjustments: list[str] = Field(default_factory=list)
