"""
Capability providers: live Google Cloud adapters and deterministic mocks.

USE_MOCK_GCP selects the implementation.  The live module is imported only
when it is needed, so mock mode runs without touching Google credentials.
"""

import logging

from core.config import GCPConfig
from core.providers import Providers

logger = logging.getLogger(__name__)


def build_providers(config: GCPConfig) -> Providers:
    if config.use_mock:
        from providers.mock import build_mock_providers

        logger.info("USE_MOCK_GCP is set: serving deterministic demo data")
        return build_mock_providers(config.default_project_id)

    from providers.gcp import build_gcp_providers

    return build_gcp_providers(config)
