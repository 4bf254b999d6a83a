# tools/: the FastMCP server exposing the GCP control-plane tools.
