"""Helpers for shaping LoanLens pipeline outputs into API payloads."""
from __future__ import annotations

from typing import Any, Dict, List, Mapping

from loanlens.workers.graph.core.types import ChartImage, StatisticsBundle


def format_decimal(value: float) -> str:
    return f"{value:.2f}"


def _label(text: str, position: str, color: str = "white") -> Dict[str, str]:
    return {"text": text, "position": position, "color": color}


def build_display_labels(bundle: StatisticsBundle) -> List[Dict[str, str]]:
    """Text lines and scene positions rendered by the presentation client."""
    rates = bundle.interest_rate_distribution
    labels = [
        _label(f"Average Credit Score: {format_decimal(bundle.average_credit_score)}", "0 -2 -5"),
        _label(f"Total Loan Approvals: {bundle.total_loan_approvals}", "0 -2.5 -5", color="green"),
        _label(f"Average Age: {format_decimal(bundle.average_age)} years", "0 -3 -5"),
        _label(f"Approval Rate: {format_decimal(bundle.approval_rate)}%", "0 -3.5 -5"),
        _label(f"Average Loan Amount: ${format_decimal(bundle.average_loan_amount)}", "0 -4 -5"),
        _label(f"Average Employment Experience: {format_decimal(bundle.average_experience)} years", "0 -4.5 -5"),
        _label(f"Renters: {format_decimal(bundle.renter_percentage)}%", "5 -3 -5"),
        _label(f"Home Owners: {format_decimal(bundle.owner_percentage)}%", "5 -3.5 -5"),
    ]
    for index, item in enumerate(bundle.education_breakdown):
        labels.append(_label(f"{item.label}: {format_decimal(item.percentage)}%", f"5 {-5 - index} -5"))
    labels.append(
        _label(
            f"Low Interest: {format_decimal(rates['low'])}% | "
            f"Medium Interest: {format_decimal(rates['medium'])}% | "
            f"High Interest: {format_decimal(rates['high'])}%",
            "5 -8 -5",
        )
    )
    labels.append(_label(f"Default Rate: {format_decimal(bundle.default_rate)}%", "5 -8.5 -5"))
    return labels


def build_statistics_payload(bundle: StatisticsBundle) -> Dict[str, Any]:
    rates = bundle.interest_rate_distribution
    return {
        "recordCount": bundle.record_count,
        "averageCreditScore": format_decimal(bundle.average_credit_score),
        "totalLoanApprovals": bundle.total_loan_approvals,
        "averageAge": format_decimal(bundle.average_age),
        "approvalRate": format_decimal(bundle.approval_rate),
        "averageLoanAmount": format_decimal(bundle.average_loan_amount),
        "averageExperience": format_decimal(bundle.average_experience),
        "homeOwnershipPercentages": {
            "renterPercentage": format_decimal(bundle.renter_percentage),
            "ownerPercentage": format_decimal(bundle.owner_percentage),
        },
        "educationBreakdown": [
            {"level": item.label, "percentage": format_decimal(item.percentage)}
            for item in bundle.education_breakdown
        ],
        "loanIntentBreakdown": [
            {"intent": item.label, "percentage": format_decimal(item.percentage)}
            for item in bundle.loan_intent_breakdown
        ],
        "loanInterestRateDistribution": {
            "lowInterest": format_decimal(rates["low"]),
            "mediumInterest": format_decimal(rates["medium"]),
            "highInterest": format_decimal(rates["high"]),
        },
        "defaultRate": format_decimal(bundle.default_rate),
        "labels": build_display_labels(bundle),
    }


def build_chart_payload(images: Mapping[str, ChartImage]) -> Dict[str, str]:
    return {slot: image.to_base64() for slot, image in images.items()}


__all__ = [
    "build_chart_payload",
    "build_display_labels",
    "build_statistics_payload",
    "format_decimal",
]
