# =============================================================================
# core/diagram.py  -  Architecture diagram (Mermaid)
# =============================================================================
#
# Renders discovered resources as a Mermaid.js flowchart:
#
#   graph TD
#     api["Cloud Run: api"]
#     web_1["GCE: web-1"]
#     subgraph Project_demo_proj
#       api
#       web_1
#     end
#
# Relationship inference (VPC connectors, load balancers) is not attempted;
# resources are grouped under their project.
# =============================================================================

import re
from typing import Any, Optional

from core.models import DiscoveredResource

NO_RESOURCES_MESSAGE = "No supported resources found to generate a diagram."

_TYPE_LABELS = {
    "CloudRun": "Cloud Run",
    "GCE": "GCE",
}


def _node_id(raw: str) -> str:
    return re.sub(r"\W", "_", raw) or "unknown"


def build_mermaid_diagram(
    project: str, resources: list[DiscoveredResource]
) -> Optional[dict[str, Any]]:
    """Return {"diagram", "explanation"}, or None when there is nothing to draw."""
    if not resources:
        return None

    lines = ["graph TD"]
    for res in resources:
        label = _TYPE_LABELS.get(res.type, res.type)
        lines.append(f'  {_node_id(res.id)}["{label}: {res.label}"]')

    lines.append(f"  subgraph Project_{_node_id(project)}")
    for res in resources:
        lines.append(f"    {_node_id(res.id)}")
    lines.append("  end")

    run_count = sum(1 for r in resources if r.type == "CloudRun")
    gce_count = sum(1 for r in resources if r.type == "GCE")

    return {
        "diagram": "\n".join(lines),
        "explanation": (
            f"Generated architecture diagram for project {project} including "
            f"{run_count} Cloud Run services and {gce_count} GCE instances."
        ),
    }
