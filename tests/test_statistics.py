import pytest

from loanlens.common.pipeline import build_display_labels, build_statistics_payload, format_decimal
from loanlens.workers.graph.core.constants import LOAN_AMOUNT_BINS
from loanlens.workers.graph.core.errors import EmptyDatasetError, StatisticsError
from loanlens.workers.graph.nodes.descriptive import (
    INTEREST_RATE_BANDS,
    banded_rates,
    bin_labels,
    binned_distribution,
    breakdown,
    compute_statistics,
    equals,
    mean,
    rate,
)
from tests.helpers import make_dataset


def test_mean_of_loan_amounts():
    dataset = make_dataset([{"loan_amnt": 1000}, {"loan_amnt": 2000}, {"loan_amnt": 3000}])
    assert mean(dataset, "loan_amnt") == 2000
    assert format_decimal(mean(dataset, "loan_amnt")) == "2000.00"


def test_mean_ignores_text_values():
    dataset = make_dataset([{"credit_score": 600}, {"credit_score": "n/a"}, {"credit_score": 700}])
    assert mean(dataset, "credit_score") == 650


def test_mean_without_numeric_values():
    dataset = make_dataset([{"credit_score": "n/a"}])
    with pytest.raises(StatisticsError):
        mean(dataset, "credit_score")


def test_rate_of_approvals():
    dataset = make_dataset([{"loan_status": 1}, {"loan_status": 0}, {"loan_status": 1}, {"loan_status": 0}])
    assert format_decimal(rate(dataset, equals("loan_status", 1))) == "50.00"


def test_empty_dataset_is_rejected():
    empty = make_dataset([])
    with pytest.raises(EmptyDatasetError):
        compute_statistics(empty)
    with pytest.raises(EmptyDatasetError):
        rate(empty, equals("loan_status", 1))


@pytest.mark.parametrize(
    "aggregate",
    [
        lambda dataset: mean(dataset, "loan_amnt"),
        lambda dataset: breakdown(dataset, "person_education", ["Bachelor"]),
        lambda dataset: banded_rates(dataset, "loan_int_rate", INTEREST_RATE_BANDS),
    ],
    ids=["mean", "breakdown", "banded_rates"],
)
def test_aggregates_reject_empty_dataset(aggregate):
    with pytest.raises(EmptyDatasetError):
        aggregate(make_dataset([]))


def test_compute_statistics_on_sample():
    bundle = compute_statistics(make_dataset())

    assert bundle.record_count == 4
    assert bundle.total_loan_approvals == 2
    assert bundle.approval_rate == pytest.approx(50.0)
    assert bundle.average_credit_score == pytest.approx(625.0)
    assert bundle.average_age == pytest.approx(32.5)
    assert bundle.average_loan_amount == pytest.approx(2500.0)
    assert bundle.average_experience == pytest.approx(6.25)
    assert bundle.renter_percentage == pytest.approx(50.0)
    assert bundle.owner_percentage == pytest.approx(25.0)
    assert bundle.default_rate == pytest.approx(50.0)
    assert bundle.interest_rate_distribution == pytest.approx({"low": 25.0, "medium": 50.0, "high": 25.0})
    assert all(0.0 <= value <= 100.0 for value in bundle.percentages())


def test_breakdown_drop_policy_leaves_unknown_values_out():
    result = breakdown(make_dataset(), "person_education", ["High School", "Bachelor", "Master", "PhD"])

    assert [item.label for item in result] == ["High School", "Bachelor", "Master", "PhD"]
    assert [item.percentage for item in result] == [25.0, 25.0, 25.0, 0.0]
    assert sum(item.percentage for item in result) == pytest.approx(75.0)


def test_breakdown_other_policy_sums_to_hundred():
    result = breakdown(make_dataset(), "loan_intent", ["PERSONAL", "EDUCATION", "VENTURE"], policy="other")

    assert result[-1].label == "Other"
    assert result[-1].count == 1
    assert sum(item.percentage for item in result) == pytest.approx(100.0)


def test_breakdown_rejects_unknown_policy():
    with pytest.raises(StatisticsError):
        breakdown(make_dataset(), "loan_intent", ["PERSONAL"], policy="merge")


def test_binned_distribution_partitions_values():
    rows = [{"loan_amnt": value} for value in (0, 4999, 5000, 12500, 39999, 40000, 75000, -10, "unknown")]
    distribution = binned_distribution(make_dataset(rows), "loan_amnt", LOAN_AMOUNT_BINS)

    assert distribution.labels[0] == "$0 - $4999"
    assert distribution.labels[-1] == "$40000+"
    assert distribution.counts[0] == 2
    assert distribution.counts[1] == 1
    assert distribution.counts[2] == 1
    assert distribution.counts[7] == 1
    assert distribution.counts[-1] == 2
    assert distribution.excluded == 1
    assert distribution.total + distribution.excluded == 8


def test_bin_labels_for_custom_edges():
    assert bin_labels([0, 100, 250]) == ["$0 - $99", "$100 - $249", "$250+"]


def test_statistics_payload_formats_two_decimals():
    payload = build_statistics_payload(compute_statistics(make_dataset()))

    assert payload["recordCount"] == 4
    assert payload["totalLoanApprovals"] == 2
    assert payload["approvalRate"] == "50.00"
    assert payload["averageLoanAmount"] == "2500.00"
    assert payload["homeOwnershipPercentages"] == {"renterPercentage": "50.00", "ownerPercentage": "25.00"}
    assert payload["educationBreakdown"][0] == {"level": "High School", "percentage": "25.00"}
    assert [item["intent"] for item in payload["loanIntentBreakdown"]] == ["PERSONAL", "EDUCATION", "VENTURE"]
    assert payload["loanInterestRateDistribution"] == {
        "lowInterest": "25.00",
        "mediumInterest": "50.00",
        "highInterest": "25.00",
    }
    assert payload["defaultRate"] == "50.00"


def test_display_labels_carry_scene_positions():
    labels = build_display_labels(compute_statistics(make_dataset()))

    assert labels[0] == {"text": "Average Credit Score: 625.00", "position": "0 -2 -5", "color": "white"}
    assert labels[1]["color"] == "green"
    assert labels[-1]["text"] == "Default Rate: 50.00%"
    assert any(label["text"].startswith("Low Interest: 25.00%") for label in labels)
