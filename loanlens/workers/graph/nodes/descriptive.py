from __future__ import annotations
from typing import Any, Callable, Dict, List, Mapping, MutableMapping, Sequence
import logging

from ..core.types import Breakdown, Dataset, Distribution, Record, StatisticsBundle, is_numeric
from ..core.errors import EmptyDatasetError, StatisticsError
from ..core.state import record_phase
from ..core.constants import (
    EDUCATION_LEVELS,
    HIGH_INTEREST_FLOOR,
    LOAN_INTENTS,
    LOW_INTEREST_CEILING,
    OTHER_CATEGORY,
)

logger = logging.getLogger(__name__)

Predicate = Callable[[Record], bool]
BREAKDOWN_POLICIES = ("drop", "other")


def descriptive_stats_node(state: MutableMapping[str, Any]) -> Dict[str, Any]:
    dataset: Dataset = state["dataset"]
    policy = state.get("breakdown_policy") or "drop"
    bundle = compute_statistics(dataset, breakdown_policy=policy)

    payload = {
        "records": bundle.record_count,
        "approvals": bundle.total_loan_approvals,
        "approvalRate": bundle.approval_rate,
        "breakdownPolicy": policy,
    }
    return record_phase(state, "descriptive_stats", payload, statistics=bundle)


def _require_records(dataset: Dataset) -> int:
    total = len(dataset)
    if total == 0:
        raise EmptyDatasetError("Cannot aggregate an empty dataset")
    return total


def mean(dataset: Dataset, field: str) -> float:
    """Arithmetic mean of the numeric values of ``field``; text values are ignored."""
    _require_records(dataset)
    count = 0
    total = 0.0
    for record in dataset:
        value = record.get(field)
        if is_numeric(value):
            count += 1
            total += float(value)
    if count == 0:
        raise StatisticsError(f"Column {field!r} has no numeric values")
    return total / count


def count_where(dataset: Dataset, predicate: Predicate) -> int:
    return sum(1 for record in dataset if predicate(record))


def rate(dataset: Dataset, predicate: Predicate) -> float:
    total = _require_records(dataset)
    return 100.0 * count_where(dataset, predicate) / total


def equals(field: str, expected: Any) -> Predicate:
    def _check(record: Record) -> bool:
        return record.get(field) == expected
    return _check


def breakdown(
    dataset: Dataset,
    field: str,
    categories: Sequence[str],
    *,
    policy: str = "drop",
) -> List[Breakdown]:
    """Percentage of all records per category, in the given category order.

    With ``policy="drop"`` values outside ``categories`` are left out of the
    result but still count towards the total, so the percentages can sum to
    less than 100. ``policy="other"`` reports them in a trailing Other bucket.
    """
    if policy not in BREAKDOWN_POLICIES:
        raise StatisticsError(f"Unknown breakdown policy: {policy!r}")
    total = _require_records(dataset)

    counts = {category: 0 for category in categories}
    unexpected: Dict[str, int] = {}
    for record in dataset:
        value = record.get(field)
        key = value if isinstance(value, str) else str(value)
        if key in counts:
            counts[key] += 1
        else:
            unexpected[key] = unexpected.get(key, 0) + 1

    for value, hits in unexpected.items():
        logger.warning("unexpected %s value %r in %d records", field, value, hits)

    result = [
        Breakdown(label=category, count=counts[category], percentage=100.0 * counts[category] / total)
        for category in categories
    ]
    if policy == "other":
        other = sum(unexpected.values())
        result.append(Breakdown(label=OTHER_CATEGORY, count=other, percentage=100.0 * other / total))
    return result


def bin_labels(edges: Sequence[float]) -> List[str]:
    labels: List[str] = []
    for index, edge in enumerate(edges):
        if index == len(edges) - 1:
            labels.append(f"${_fmt_edge(edge)}+")
        else:
            labels.append(f"${_fmt_edge(edge)} - ${_fmt_edge(edges[index + 1] - 1)}")
    return labels


def _fmt_edge(value: float) -> str:
    return str(int(value)) if float(value).is_integer() else str(value)


def binned_distribution(dataset: Dataset, field: str, edges: Sequence[float]) -> Distribution:
    """Count numeric values into ``[e_i, e_i+1)`` bins with an open-ended last bin.

    Non-numeric values are dropped; numeric values below the first edge are
    reported in ``excluded``.
    """
    if not edges:
        raise StatisticsError("binned_distribution requires at least one edge")
    ordered = sorted(float(edge) for edge in edges)
    counts = [0] * len(ordered)
    excluded = 0
    for value in dataset.numeric_values(field):
        if value < ordered[0]:
            excluded += 1
            continue
        counts[_bin_index(ordered, value)] += 1
    return Distribution(edges=tuple(ordered), labels=bin_labels(ordered), counts=counts, excluded=excluded)


def _bin_index(edges: Sequence[float], value: float) -> int:
    # last edge whose lower bound is <= value
    lo, hi = 0, len(edges) - 1
    while lo < hi:
        mid = (lo + hi + 1) // 2
        if edges[mid] <= value:
            lo = mid
        else:
            hi = mid - 1
    return lo


def banded_rates(
    dataset: Dataset,
    field: str,
    bands: Mapping[str, Callable[[float], bool]],
) -> Dict[str, float]:
    total = _require_records(dataset)
    counts = {name: 0 for name in bands}
    for value in dataset.values(field):
        if not is_numeric(value):
            continue
        for name, test in bands.items():
            if test(float(value)):
                counts[name] += 1
    return {name: 100.0 * count / total for name, count in counts.items()}


INTEREST_RATE_BANDS: Dict[str, Callable[[float], bool]] = {
    "low": lambda r: r < LOW_INTEREST_CEILING,
    "medium": lambda r: LOW_INTEREST_CEILING <= r <= HIGH_INTEREST_FLOOR,
    "high": lambda r: r > HIGH_INTEREST_FLOOR,
}


def compute_statistics(dataset: Dataset, *, breakdown_policy: str = "drop") -> StatisticsBundle:
    approved = equals("loan_status", 1)
    ownership = {
        name: rate(dataset, equals("person_home_ownership", name)) for name in ("RENT", "OWN")
    }
    return StatisticsBundle(
        record_count=_require_records(dataset),
        average_credit_score=mean(dataset, "credit_score"),
        total_loan_approvals=count_where(dataset, approved),
        average_age=mean(dataset, "person_age"),
        approval_rate=rate(dataset, approved),
        average_loan_amount=mean(dataset, "loan_amnt"),
        average_experience=mean(dataset, "person_emp_exp"),
        renter_percentage=ownership["RENT"],
        owner_percentage=ownership["OWN"],
        education_breakdown=breakdown(dataset, "person_education", EDUCATION_LEVELS, policy=breakdown_policy),
        loan_intent_breakdown=breakdown(dataset, "loan_intent", LOAN_INTENTS, policy=breakdown_policy),
        interest_rate_distribution=banded_rates(dataset, "loan_int_rate", INTEREST_RATE_BANDS),
        default_rate=rate(dataset, equals("previous_loan_defaults_on_file", "Yes")),
    )
