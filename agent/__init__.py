# =============================================================================
# agent/__init__.py
# =============================================================================
# The Google ADK agent that consumes the gcp-control-plane MCP server.
#
# ARCHITECTURAL ROLE:
#   agent/ only orchestrates: it holds the system prompt and the MCP
#   connection.  It never imports core/ or providers/ directly; everything
#   it knows about Google Cloud arrives through MCP tool calls.
# =============================================================================
