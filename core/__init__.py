# =============================================================================
# core/__init__.py
# =============================================================================
# Session, authorization gating, dispatching and the derived-metric logic
# of the GCP control plane.
#
# ARCHITECTURAL RULE:
#   Nothing in this package imports FastMCP, Google ADK or a Google Cloud
#   client library.  Cloud access goes through the capability protocols in
#   core/providers.py, so everything here runs (and is tested) offline.
# =============================================================================
