from __future__ import annotations

import math
from typing import Iterable

from oppbrief.models.brief import RoiSummary, UseCase

ROI_CAP_PCT = 250.0
ROI_SOFT_CAP_PCT = 200.0
ROI_SOFT_CAP_SCALE = 0.3


def round_half_up(value: float) -> int:
    return int(math.floor(value + 0.5))


def compute_payback_months(one_time: float, ongoing: float, benefit: float) -> int:
    """Months until cumulative benefit covers the investment, floored at 1.

    Non-positive benefit never pays back; 12 is used as the neutral default.
    """
    if benefit <= 0:
        return 12
    return max(1, round_half_up((one_time + ongoing) / benefit * 12))


def validate_roi_pct(roi_pct: float) -> float:
    """Pull implausible ROI percentages back into range."""
    if roi_pct > ROI_CAP_PCT:
        return ROI_CAP_PCT
    if roi_pct > ROI_SOFT_CAP_PCT:
        scaled = ROI_SOFT_CAP_PCT + (roi_pct - ROI_SOFT_CAP_PCT) * ROI_SOFT_CAP_SCALE
        return float(round_half_up(scaled))
    return roi_pct


def compute_roi(use_cases: Iterable[UseCase]) -> RoiSummary:
    use_cases = list(use_cases)
    total_benefit = sum(uc.annual_benefit for uc in use_cases)
    total_investment = sum(uc.one_time_cost + uc.ongoing_cost for uc in use_cases)

    if total_investment > 0:
        roi_pct = round((total_benefit - total_investment) / total_investment * 100, 1)
    else:
        roi_pct = 0.0

    if total_benefit > 0:
        weighted = sum(uc.payback_months * uc.annual_benefit for uc in use_cases) / total_benefit
        weighted_payback = round_half_up(weighted)
    else:
        weighted_payback = 0

    return RoiSummary(
        total_benefit=total_benefit,
        total_investment=total_investment,
        overall_roi_pct=validate_roi_pct(roi_pct),
        weighted_payback_months=weighted_payback,
    )
