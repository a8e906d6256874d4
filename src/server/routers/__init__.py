"""BFF routers."""
