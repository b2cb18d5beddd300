"""Exception hierarchy shared by the pipeline and the HTTP layer."""
from __future__ import annotations

from typing import Optional


class LoanLensError(Exception):
    """Base class for failures surfaced to API callers."""

    public_message = "Internal error"


class ConfigurationError(LoanLensError):
    public_message = "Server is not configured to fetch the dataset"


class AcquisitionError(LoanLensError):
    public_message = "Error fetching dataset"


class NetworkError(AcquisitionError):
    """Transport failure or timeout while talking to the dataset host."""


class UpstreamStatusError(AcquisitionError):
    """The dataset host answered with a non-success status."""

    def __init__(self, message: str, status_code: Optional[int] = None) -> None:
        super().__init__(message)
        self.status_code = status_code


class ExtractionError(LoanLensError):
    public_message = "Error extracting ZIP file"


class ParseError(LoanLensError):
    public_message = "Error parsing CSV file"


class SchemaError(ParseError):
    """The header is missing columns the statistics depend on."""

    def __init__(self, missing) -> None:
        self.missing = sorted(missing)
        super().__init__(f"Dataset is missing expected columns: {', '.join(self.missing)}")


class StatisticsError(LoanLensError):
    public_message = "Error computing statistics"


class EmptyDatasetError(StatisticsError):
    public_message = "Dataset is empty"


class ChartError(LoanLensError):
    public_message = "Error generating chart image"


class UnknownChartTypeError(ChartError):
    public_message = "Unknown chart type"

    def __init__(self, chart_type: object) -> None:
        self.chart_type = chart_type
        super().__init__(f"Unknown chart type: {chart_type!r}")


class ChartRenderError(ChartError):
    pass
