# =============================================================================
# core/health.py  -  Service Health Scoring
# =============================================================================
#
# Turns raw metrics (from Cloud Monitoring, or mock data) into a 0-100 score
# and a status word the agent can reason about without doing arithmetic.
#
# SCORING (deductions from 100):
#   CPU above 80%         -> (cpu - 80) * 0.5
#   Error rate above 1%   -> error_rate * 10
#   p95 latency > 500ms   -> (latency - 500) / 20
#   Pod health below 100% -> (100 - pod_health) * 2
#   The result is clamped to 0..100 and rounded.
#
# These coefficients are product heuristics; keep them literal.
# =============================================================================

from typing import Any

from core.models import HealthMetrics

HEALTHY_THRESHOLD = 90
DEGRADED_THRESHOLD = 70


def compute_health_score(metrics: HealthMetrics) -> int:
    score = 100.0

    if metrics.cpu_usage > 80:
        score -= (metrics.cpu_usage - 80) * 0.5

    if metrics.error_rate > 1:
        score -= metrics.error_rate * 10

    if metrics.latency_p95 > 500:
        score -= (metrics.latency_p95 - 500) / 20

    if metrics.pod_health < 100:
        score -= (100 - metrics.pod_health) * 2

    return max(0, min(100, round(score)))


def get_status(score: int) -> str:
    if score >= HEALTHY_THRESHOLD:
        return "HEALTHY"
    if score >= DEGRADED_THRESHOLD:
        return "DEGRADED"
    return "CRITICAL"


def _fmt(value: float) -> str:
    # 12.0 -> "12", 2.5 -> "2.5"
    rounded = round(value, 2)
    return f"{rounded:g}"


def format_metrics(metrics: HealthMetrics) -> dict[str, str]:
    """Render metrics with units, e.g. {"cpu_usage": "42%", "latency_p95": "350ms"}."""
    return {
        "cpu_usage": f"{_fmt(metrics.cpu_usage)}%",
        "error_rate": f"{_fmt(metrics.error_rate)}%",
        "latency_p95": f"{_fmt(metrics.latency_p95)}ms",
        "pod_health": f"{_fmt(metrics.pod_health)}%",
    }


def build_health_report(service: str, project: str, metrics: HealthMetrics) -> dict[str, Any]:
    score = compute_health_score(metrics)
    return {
        "service": service,
        "project": project,
        "status": get_status(score),
        "health_score": score,
        "metrics": format_metrics(metrics),
    }
