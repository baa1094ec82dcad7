from __future__ import annotations

from decimal import Decimal
from fastapi import APIRouter

from app.core.config import get_settings
from app.schemas.donation import DonationSplitRequest, DonationSplitResponse, FeeBreakdown, FeeDisplay
from app.services.donation_split import (
    DonationSplit,
    clamp_donation_request,
    compute_donation_split,
    describe_fee_line,
    format_currency,
    whole_percent,
)

router = APIRouter(prefix="/donations", tags=["donations"])


@router.get("/split", response_model=DonationSplitResponse)
async def split_query(amount: Decimal | None = None, tip: Decimal | None = None):
    return _split(amount, tip)


@router.post("/split", response_model=DonationSplitResponse)
async def split_body(payload: DonationSplitRequest):
    return _split(payload.amount, payload.tip)


def _split(amount: Decimal | None, tip: Decimal | None) -> DonationSplitResponse:
    settings = get_settings()
    request = clamp_donation_request(
        amount,
        tip,
        default_amount=settings.default_donation_amount,
        default_tip=settings.default_tip_amount,
    )

    adjustments = []
    if amount is not None and request.amount != amount:
        adjustments.append(f"amount raised to minimum {request.amount}")
    if tip is not None and request.tip != tip:
        adjustments.append("negative tip treated as 0")

    split = compute_donation_split(request.amount, request.tip)
    return DonationSplitResponse(
        amount=request.amount,
        tip=request.tip,
        fees_covered=split.fees_covered,
        exact=_breakdown(split),
        rounded=_breakdown(split.rounded()),
        display=_display(split),
        adjustments=adjustments,
    )


def _breakdown(split: DonationSplit) -> FeeBreakdown:
    return FeeBreakdown(
        amount=split.amount,
        processing_fee=split.processing_fee,
        platform_fee=split.platform_fee,
        total_fees=split.total_fees,
        processing_fee_remaining=split.processing_fee_remaining,
        platform_fee_remaining=split.platform_fee_remaining,
        tip_applied=split.tip_applied,
        beneficiary_receives=split.beneficiary_receives,
        donor_total_charge=split.donor_total_charge,
        tip_percent_of_donation=split.tip_percent_of_donation,
    )


def _display(split: DonationSplit) -> FeeDisplay:
    return FeeDisplay(
        donation=format_currency(split.amount),
        tip=format_currency(split.tip_applied),
        tip_percent=whole_percent(split.tip_percent_of_donation),
        processing_fee=format_currency(split.processing_fee_remaining),
        processing_label=describe_fee_line(split.processing_fee_remaining, split.tip_applied, "2.9% + $0.30"),
        platform_fee=format_currency(split.platform_fee_remaining),
        platform_label=describe_fee_line(split.platform_fee_remaining, split.tip_applied, "3%"),
        beneficiary_receives=format_currency(split.beneficiary_receives),
        beneficiary_label="Full donation (fees covered by tip)" if split.fees_covered else "Partial fees covered by tip",
        donor_pays=format_currency(split.donor_total_charge),
    )
