"""
Centralised configuration: single source of truth for all env vars.

Every module imports from here instead of calling os.getenv() directly.
load_dotenv() is called exactly once, at import time.
"""
import os
from dotenv import load_dotenv

load_dotenv()

# --- HTTP defaults ---
HTTP_TIMEOUT = float(os.getenv("HTTP_TIMEOUT", "30"))  # seconds, per attempt
HTTP_RETRIES = int(os.getenv("HTTP_RETRIES", "0"))  # attempts = retries + 1

# --- Logging ---
LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO").upper()
LOG_JSON = os.getenv("LOG_JSON", "false").lower() in ("true", "1", "yes")
# Payloads larger than this are truncated in log records (bytes)
LOG_PAYLOAD_LIMIT = int(os.getenv("LOG_PAYLOAD_LIMIT", "2048"))
