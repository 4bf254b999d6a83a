# =============================================================================
# core/recommendations.py  -  Optimization recommendation sweep
# =============================================================================
#
# Queries a fixed set of Recommender categories one by one.  A category that
# fails (API not enabled, not applicable to this location, no permission) is
# logged and skipped so the others still report.  No category is fatal: when
# every one fails the sweep returns an empty list.
# =============================================================================

import logging

from core.models import Recommendation
from core.providers import OptimizationProvider

logger = logging.getLogger(__name__)

RECOMMENDERS: tuple[str, ...] = (
    "google.compute.instance.IdleResourceRecommender",
    "google.compute.instance.MachineTypeRecommender",
    "google.compute.disk.IdleResourceRecommender",
    "google.resourcemanager.projectUtilization.Recommender",
)


async def collect_recommendations(
    provider: OptimizationProvider, project: str, location: str = "global"
) -> list[Recommendation]:
    results: list[Recommendation] = []
    failures = 0

    for recommender_id in RECOMMENDERS:
        try:
            found = await provider.list_recommendations(project, location, recommender_id)
        except Exception as exc:
            failures += 1
            logger.warning("Skipping recommender %s: %s", recommender_id, exc)
            continue
        results.extend(found)

    if failures == len(RECOMMENDERS):
        logger.warning("Every recommender failed for %s; returning no recommendations", project)

    return results


def total_savings(recommendations: list[Recommendation]) -> float:
    return round(sum(r.savings for r in recommendations), 2)
