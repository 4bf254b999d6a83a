# =============================================================================
# core/cost.py  -  Cost Breakdown Analysis
# =============================================================================
#
# WHAT THIS MODULE DOES:
#   Both cost providers (BigQuery billing export and mock) hand this module
#   per-service totals for the last 30 days plus the total for the 30 days
#   before.  It computes the month-over-month change, flags anomalies and
#   writes the one-line insight the agent reads first.
#
# ANOMALY RULE:
#   Spend growing by MORE than 20% month over month is an anomaly.  The
#   threshold is a product heuristic; keep it literal.
# =============================================================================

from typing import Optional, Sequence

from core.models import CostBreakdown

ANOMALY_THRESHOLD_PCT = 20.0


def percentage_change(current: float, previous: float) -> Optional[float]:
    """Month-over-month change in percent, or None when there is no baseline."""
    if previous <= 0:
        return None
    return (current - previous) / previous * 100


def format_change(change: Optional[float]) -> str:
    if change is None:
        return "N/A"
    sign = "+" if change > 0 else ""
    return f"{sign}{change:.1f}%"


def build_cost_breakdown(
    project: str,
    service_totals: Sequence[tuple[str, float]],
    previous_total: float,
) -> CostBreakdown:
    """Summarize per-service spend into a CostBreakdown.

    Args:
        project: The project the spend belongs to.
        service_totals: (service description, cost) pairs for the current
            window, in any order.
        previous_total: Total spend of the preceding window.
    """
    if not service_totals:
        return CostBreakdown(
            project=project,
            month_total=0,
            top_cost_service="None",
            percentage_change="0%",
            anomaly_detected=False,
        )

    ranked = sorted(service_totals, key=lambda item: item[1], reverse=True)
    month_total = sum(cost for _, cost in ranked)
    change = percentage_change(month_total, previous_total)

    return CostBreakdown(
        project=project,
        month_total=round(month_total),
        top_cost_service=ranked[0][0],
        percentage_change=format_change(change),
        anomaly_detected=change is not None and change > ANOMALY_THRESHOLD_PCT,
    )


def generate_insight(data: CostBreakdown) -> str:
    if data.anomaly_detected:
        return (
            f"⚠️ ANOMALY DETECTED: Cost increased by {data.percentage_change}. "
            f"Review {data.top_cost_service} usage immediately."
        )
    if data.month_total == 0:
        return f"No billed spend found for {data.project} in the last 30 days."
    return (
        f"Monthly spend is stable at ${data.month_total}. "
        f"{data.top_cost_service} remains the highest driver."
    )
