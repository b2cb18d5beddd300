from __future__ import annotations
from enum import Enum
from typing import Any, Dict, MutableMapping
import logging
import threading

from ..core.types import ChartImage, ChartSpec, Dataset, ordered_counts
from ..core.errors import ChartRenderError, UnknownChartTypeError
from ..core.state import record_phase
from ..core.utils import load_pyplot, _figure_to_png
from ..core.constants import (
    APPROVED_COLOR,
    CHART_DPI,
    CHART_HEIGHT,
    CHART_WIDTH,
    DENIED_COLOR,
    LOAN_AMOUNT_BINS,
)
from .descriptive import binned_distribution, count_where, equals

logger = logging.getLogger(__name__)

_RENDER_LOCK = threading.Lock()


class ChartType(str, Enum):
    APPROVAL_PIE = "approved-vs-denied"
    LOAN_AMOUNT_HISTOGRAM = "loan-amount-distribution"
    LOAN_TERM_BAR = "loan-term-distribution"

    @classmethod
    def parse(cls, value: Any) -> "ChartType":
        if isinstance(value, cls):
            return value
        try:
            return cls(value)
        except ValueError as exc:
            raise UnknownChartTypeError(value) from exc


# response keys, in the order the presentation client places them
CHART_SLOTS = {
    "chart1": ChartType.APPROVAL_PIE,
    "chart2": ChartType.LOAN_AMOUNT_HISTOGRAM,
    "chart3": ChartType.LOAN_TERM_BAR,
}


def charts_node(state: MutableMapping[str, Any]) -> Dict[str, Any]:
    dataset: Dataset = state["dataset"]
    images = render_chart_images(dataset)

    payload = {
        slot: {"chartType": image.chart_type, "bytes": len(image.png)}
        for slot, image in images.items()
    }
    return record_phase(state, "charts", payload, charts=images)


def build_chart_spec(dataset: Dataset, chart_type: Any) -> ChartSpec:
    kind = ChartType.parse(chart_type)

    if kind is ChartType.APPROVAL_PIE:
        approved = count_where(dataset, equals("loan_status", 1))
        denied = count_where(dataset, equals("loan_status", 0))
        return ChartSpec(
            chart_type=kind.value,
            kind="pie",
            title="Approved vs Denied",
            labels=["Approved", "Denied"],
            values=[approved, denied],
            colors=[APPROVED_COLOR, DENIED_COLOR],
            annotations=[f"Approved: {approved}", f"Denied: {denied}"],
        )

    if kind is ChartType.LOAN_AMOUNT_HISTOGRAM:
        distribution = binned_distribution(dataset, "loan_amnt", LOAN_AMOUNT_BINS)
        return ChartSpec(
            chart_type=kind.value,
            kind="bar",
            title="Loan Amount Distribution",
            labels=distribution.labels,
            values=distribution.counts,
            colors=[DENIED_COLOR],
            series_label="Loan Amount Distribution",
        )

    # loan terms are free text; count distinct trimmed values in first-seen order
    terms = [
        str(value).strip()
        for value in dataset.values("term")
        if value is not None and str(value).strip()
    ]
    counts = ordered_counts(terms)
    return ChartSpec(
        chart_type=kind.value,
        kind="bar",
        title="Loan Term Distribution",
        labels=list(counts.keys()),
        values=list(counts.values()),
        colors=[APPROVED_COLOR],
        series_label="Loan Term Distribution",
    )


def render_chart(spec: ChartSpec, *, width: int = CHART_WIDTH, height: int = CHART_HEIGHT) -> ChartImage:
    plt = load_pyplot()

    # pyplot keeps global figure state and is not thread safe
    with _RENDER_LOCK:
        fig, ax = plt.subplots(figsize=(width / CHART_DPI, height / CHART_DPI))
        try:
            if spec.is_empty:
                _draw_empty(ax, spec)
            elif spec.kind == "pie":
                _draw_pie(ax, spec)
            else:
                _draw_bar(ax, spec)
            fig.tight_layout()
            png = _figure_to_png(plt, fig, CHART_DPI)
        except Exception as exc:
            plt.close(fig)
            logger.exception("failed to render chart %s", spec.chart_type)
            raise ChartRenderError(f"Error generating chart image: {exc}") from exc

    return ChartImage(chart_type=spec.chart_type, png=png, width=width, height=height)


def _draw_pie(ax, spec: ChartSpec) -> None:
    ax.pie(spec.values, labels=spec.labels, colors=spec.colors, startangle=90, counterclock=False)
    ax.set_title(spec.title)
    ax.axis("equal")
    for offset, text in enumerate(spec.annotations):
        ax.text(0.5, -0.04 - 0.06 * offset, text, transform=ax.transAxes, ha="center", fontsize=10)


def _draw_bar(ax, spec: ChartSpec) -> None:
    positions = list(range(len(spec.labels)))
    ax.bar(positions, spec.values, color=spec.colors[0], label=spec.series_label)
    ax.set_xticks(positions)
    ax.set_xticklabels(spec.labels, rotation=45, ha="right", fontsize=7)
    ax.set_title(spec.title)
    ax.grid(True, axis="y", linestyle="--", linewidth=0.5, alpha=0.5)
    if spec.series_label:
        ax.legend(loc="upper right", fontsize=8)


def _draw_empty(ax, spec: ChartSpec) -> None:
    ax.set_title(spec.title)
    ax.text(0.5, 0.5, "No data", transform=ax.transAxes, ha="center", va="center", color="#6b7280")
    ax.set_xticks([])
    ax.set_yticks([])


def render_chart_images(dataset: Dataset) -> Dict[str, ChartImage]:
    images: Dict[str, ChartImage] = {}
    for slot, chart_type in CHART_SLOTS.items():
        images[slot] = render_chart(build_chart_spec(dataset, chart_type))
    logger.info("rendered %d chart images", len(images), extra={"records": len(dataset)})
    return images
