"""Local configuration for branchdocs."""

from __future__ import annotations

import os


DEFAULT_BACKEND_URL = "http://localhost:5000"
DEFAULT_API_PREFIX = "/api"
DEFAULT_API_URL = f"http://localhost:8000{DEFAULT_API_PREFIX}"
DEFAULT_BACKEND_TIMEOUT_S = 10.0
DEFAULT_STALE_TIME_S = 5 * 60.0
DEFAULT_GC_TIME_S = 30 * 60.0
DEFAULT_QUERY_RETRY = 3
DEFAULT_RETRY_BASE_S = 1.0
DEFAULT_RETRY_MAX_S = 30.0
DEFAULT_MUTATION_RETRY = 1
DEFAULT_MUTATION_RETRY_DELAY_S = 1.0
DEFAULT_LONG_PRESS_S = 0.5
DEFAULT_LOG_LEVEL = "INFO"
DEFAULT_USER_AGENT = "branchdocs/1.0"

# External data service the BFF forwards to (server-side only).
BRANCHDOCS_BACKEND_URL = os.getenv("BRANCHDOCS_BACKEND_URL", DEFAULT_BACKEND_URL).rstrip("/")
BRANCHDOCS_BACKEND_TIMEOUT_S = float(os.getenv("BRANCHDOCS_BACKEND_TIMEOUT_S", str(DEFAULT_BACKEND_TIMEOUT_S)))

# Path the BFF mounts its routes under, and the full URL clients call it on.
BRANCHDOCS_API_PREFIX = os.getenv("BRANCHDOCS_API_PREFIX", DEFAULT_API_PREFIX).rstrip("/")
BRANCHDOCS_API_URL = os.getenv("BRANCHDOCS_API_URL", DEFAULT_API_URL).rstrip("/")

BRANCHDOCS_STALE_TIME_S = float(os.getenv("BRANCHDOCS_STALE_TIME_S", str(DEFAULT_STALE_TIME_S)))
BRANCHDOCS_GC_TIME_S = float(os.getenv("BRANCHDOCS_GC_TIME_S", str(DEFAULT_GC_TIME_S)))
BRANCHDOCS_QUERY_RETRY = int(os.getenv("BRANCHDOCS_QUERY_RETRY", str(DEFAULT_QUERY_RETRY)))
BRANCHDOCS_RETRY_BASE_S = float(os.getenv("BRANCHDOCS_RETRY_BASE_S", str(DEFAULT_RETRY_BASE_S)))
BRANCHDOCS_RETRY_MAX_S = float(os.getenv("BRANCHDOCS_RETRY_MAX_S", str(DEFAULT_RETRY_MAX_S)))
BRANCHDOCS_MUTATION_RETRY = int(os.getenv("BRANCHDOCS_MUTATION_RETRY", str(DEFAULT_MUTATION_RETRY)))
BRANCHDOCS_MUTATION_RETRY_DELAY_S = float(
    os.getenv("BRANCHDOCS_MUTATION_RETRY_DELAY_S", str(DEFAULT_MUTATION_RETRY_DELAY_S))
)

BRANCHDOCS_LONG_PRESS_S = float(os.getenv("BRANCHDOCS_LONG_PRESS_S", str(DEFAULT_LONG_PRESS_S)))
BRANCHDOCS_LOG_LEVEL = os.getenv("BRANCHDOCS_LOG_LEVEL", DEFAULT_LOG_LEVEL).upper()
BRANCHDOCS_USER_AGENT = os.getenv("BRANCHDOCS_USER_AGENT", DEFAULT_USER_AGENT)
