import os
from pathlib import Path

ADMIN_SECRET = os.environ.get("ADMIN_SECRET", "")
DATA_DIR = Path(os.environ.get("DATA_DIR", "/var/lib/pg-enquiries")).resolve()
ENQUIRY_RATE_LIMIT = int(os.environ.get("ENQUIRY_RATE_LIMIT", "5"))
ENQUIRY_RATE_WINDOW_MS = int(os.environ.get("ENQUIRY_RATE_WINDOW_MS", "60000"))
RATE_LIMIT_MAX_CLIENTS = int(os.environ.get("RATE_LIMIT_MAX_CLIENTS", "1000"))
RETRY_AFTER_S = max(1, ENQUIRY_RATE_WINDOW_MS // 1000)
DUPLICATE_WINDOW_HOURS = int(os.environ.get("DUPLICATE_WINDOW_HOURS", "24"))
APP_VERSION = (os.environ.get("APP_VERSION") or "").strip() or "dev"

if not ADMIN_SECRET:
    raise RuntimeError("ADMIN_SECRET is required")
if ENQUIRY_RATE_LIMIT < 0 or ENQUIRY_RATE_WINDOW_MS <= 0:
    raise RuntimeError("ENQUIRY_RATE_LIMIT must be >= 0 and ENQUIRY_RATE_WINDOW_MS > 0")
