"""Environment-driven settings for the task board service."""

import os

REMOTE_STORE_URL = os.getenv("SHEETTODO_REMOTE_URL", "http://localhost:8002/exec")
REQUEST_TIMEOUT = float(os.getenv("SHEETTODO_REQUEST_TIMEOUT", "30.0"))

# Timezone the spreadsheet stores dates in. Date cells come back as UTC
# timestamps of the sheet's local midnight.
SHEET_TIMEZONE = os.getenv("SHEETTODO_SHEET_TIMEZONE", "UTC")

# Latest revision of the upload dialog allows 100 MB; override per deployment.
MAX_ATTACHMENT_BYTES = int(os.getenv("SHEETTODO_MAX_ATTACHMENT_BYTES", str(100 * 1024 * 1024)))

ALLOWED_EXTENSIONS = tuple(
    ext.strip().lower().lstrip(".")
    for ext in os.getenv(
        "SHEETTODO_ALLOWED_EXTENSIONS",
        "pdf,doc,docx,xls,xlsx,ppt,pptx,txt,md,csv,jpg,jpeg,png,gif,webp,zip",
    ).split(",")
    if ext.strip()
)

USER_HEADER = os.getenv("SHEETTODO_USER_HEADER", "X-Forwarded-User")
USER_NAME_HEADER = os.getenv("SHEETTODO_USER_NAME_HEADER", "X-Forwarded-Preferred-Username")
SIGNIN_URL = os.getenv("SHEETTODO_SIGNIN_URL", "/auth/signin")

ALLOWED_ORIGINS = os.getenv(
    "ALLOWED_ORIGINS",
    "http://localhost:3000,http://localhost:5173",
).split(",")

LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO")
