"""Configuration for the BFF server."""

from __future__ import annotations

BFF_VERSION = "1.0.0"

CORS_ALLOW_ORIGINS = ["*"]
CORS_ALLOW_METHODS = ["GET", "DELETE", "PATCH", "POST", "PUT"]
CORS_ALLOW_HEADERS = ["Content-Type", "Authorization"]
CORS_ALLOW_CREDENTIALS = True

INVALID_JSON_MESSAGE = "Invalid JSON body"
INVALID_ID_MESSAGE = "Invalid branch ID"
