from __future__ import annotations
from dataclasses import dataclass, field
from typing import Any, Dict, Iterator, List, Mapping, Optional, Sequence, Tuple, Union, IO
import base64
import math

# type aliases used across the code
BinaryInput = Union[bytes, bytearray, memoryview, IO[bytes]]
Value = Union[int, float, str]
Record = Dict[str, Value]


def is_numeric(value: Any) -> bool:
    if isinstance(value, bool):
        return False
    if isinstance(value, (int, float)):
        return not (isinstance(value, float) and math.isnan(value))
    return False


@dataclass(frozen=True)
class Dataset:
    records: Tuple[Record, ...]
    columns: Tuple[str, ...]
    source_name: str = "dataset.csv"
    bytes_read: int = 0
    skipped_rows: int = 0

    def __len__(self) -> int:
        return len(self.records)

    def __iter__(self) -> Iterator[Record]:
        return iter(self.records)

    @property
    def row_count(self) -> int:
        return len(self.records)

    def values(self, name: str) -> List[Optional[Value]]:
        return [record.get(name) for record in self.records]

    def numeric_values(self, name: str) -> List[float]:
        return [float(value) for value in self.values(name) if is_numeric(value)]

    def to_json_rows(self) -> List[Record]:
        return [dict(record) for record in self.records]


@dataclass(frozen=True)
class ChartImage:
    chart_type: str
    png: bytes
    width: int
    height: int

    def to_base64(self) -> str:
        return base64.b64encode(self.png).decode("ascii")


@dataclass(frozen=True)
class ChartSpec:
    """Declarative description handed to the renderer."""
    chart_type: str
    kind: str
    title: str
    labels: List[str]
    values: List[int]
    colors: List[str]
    series_label: Optional[str] = None
    annotations: List[str] = field(default_factory=list)

    @property
    def is_empty(self) -> bool:
        return not self.values or sum(self.values) == 0


@dataclass(frozen=True)
class Breakdown:
    label: str
    count: int
    percentage: float


@dataclass(frozen=True)
class Distribution:
    edges: Tuple[float, ...]
    labels: List[str]
    counts: List[int]
    excluded: int = 0

    @property
    def total(self) -> int:
        return sum(self.counts)


@dataclass
class StatisticsBundle:
    record_count: int
    average_credit_score: float
    total_loan_approvals: int
    average_age: float
    approval_rate: float
    average_loan_amount: float
    average_experience: float
    renter_percentage: float
    owner_percentage: float
    education_breakdown: List[Breakdown]
    loan_intent_breakdown: List[Breakdown]
    interest_rate_distribution: Dict[str, float]
    default_rate: float

    def percentages(self) -> List[float]:
        values = [
            self.approval_rate,
            self.renter_percentage,
            self.owner_percentage,
            self.default_rate,
        ]
        values.extend(item.percentage for item in self.education_breakdown)
        values.extend(item.percentage for item in self.loan_intent_breakdown)
        values.extend(self.interest_rate_distribution.values())
        return values


@dataclass
class PipelineResult:
    phases: Dict[str, Dict[str, Any]]
    dataset: Optional[Dataset]
    statistics: Optional[StatisticsBundle]
    charts: Dict[str, ChartImage]


def ordered_counts(values: Sequence[str]) -> Mapping[str, int]:
    counts: Dict[str, int] = {}
    for value in values:
        counts[value] = counts.get(value, 0) + 1
    return counts
