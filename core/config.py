# =============================================================================
# core/config.py  -  Environment-driven configuration
# =============================================================================
#
# All runtime knobs come from environment variables (a local .env file is
# loaded by the entry points with python-dotenv before this runs).
#
# DEFAULT PROJECT:
#   GOOGLE_CLOUD_PROJECT seeds the session's active project.  When it is
#   unset the session starts with NO active project (never a placeholder
#   ID), and project-scoped tools answer with instructions to call
#   list_projects / set_active_project.
#
# DATA SOURCE TOGGLE:
#   USE_MOCK_GCP=true swaps every Google Cloud provider for deterministic mock
#   data, so the server and the agent can be demoed offline without
#   credentials.
# =============================================================================

import os
from dataclasses import dataclass
from typing import Mapping, Optional

DEFAULT_BILLING_DATASET = "billing_export"
DEFAULT_BILLING_TABLE = "gcp_billing_export_v1"


def _flag(value: Optional[str]) -> bool:
    return (value or "").strip().lower() in ("1", "true", "yes", "on")


@dataclass(frozen=True)
class GCPConfig:
    default_project_id: Optional[str] = None
    billing_dataset: str = DEFAULT_BILLING_DATASET
    billing_table: str = DEFAULT_BILLING_TABLE
    billing_project_id: Optional[str] = None   # Project that hosts the billing export
    use_mock: bool = False
    log_level: str = "INFO"


def load_config(environ: Optional[Mapping[str, str]] = None) -> GCPConfig:
    """Build a GCPConfig from the environment (os.environ by default)."""
    env = os.environ if environ is None else environ

    default_project = (env.get("GOOGLE_CLOUD_PROJECT") or "").strip() or None
    billing_project = (env.get("BILLING_PROJECT") or "").strip() or None

    return GCPConfig(
        default_project_id=default_project,
        billing_dataset=(env.get("BILLING_DATASET") or "").strip() or DEFAULT_BILLING_DATASET,
        billing_table=(env.get("BILLING_TABLE") or "").strip() or DEFAULT_BILLING_TABLE,
        billing_project_id=billing_project,
        use_mock=_flag(env.get("USE_MOCK_GCP")),
        log_level=(env.get("CONTROL_PLANE_LOG_LEVEL") or "INFO").strip().upper(),
    )
