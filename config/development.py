import os

SECRET_KEY = os.getenv("SECRET_KEY", "dev-secret-key")

DB_CONFIG = {
    "host": os.getenv("DB_HOST", "localhost"),
    "port": int(os.getenv("DB_PORT", "3306")),
    "user": os.getenv("DB_USER", "root"),
    "password": os.getenv("DB_PASSWORD", ""),
    "database": os.getenv("DB_NAME", "church_attendance"),
}

DEBUG = True
LOG_LEVEL = os.getenv("LOG_LEVEL", "DEBUG")

# Membership identifiers: PP-DDDD-YYYY
MEMBERSHIP_ID_PREFIX = os.getenv("MEMBERSHIP_ID_PREFIX", "EA")
# Off: any two letters are accepted when validating/resolving identifiers.
STRICT_MEMBERSHIP_PREFIX = bool(int(os.getenv("STRICT_MEMBERSHIP_PREFIX", "0")))

BULK_MAX_WORKERS = int(os.getenv("BULK_MAX_WORKERS", "4"))

SMS_PROVIDER = os.getenv("SMS_PROVIDER", "console")
SMS_API_URL = os.getenv("SMS_API_URL", "")
SMS_API_KEY = os.getenv("SMS_API_KEY", "")
SMS_SENDER_ID = os.getenv("SMS_SENDER_ID", "Church")
SMS_TIMEOUT_SECONDS = float(os.getenv("SMS_TIMEOUT_SECONDS", "10"))

# If enabled, app will apply schema.sql on startup (idempotent: CREATE IF NOT EXISTS)
AUTO_INIT_DB = bool(int(os.getenv("AUTO_INIT_DB", "1")))
# Optional: also seed demo data on startup
AUTO_SEED_DB = bool(int(os.getenv("AUTO_SEED_DB", "0")))
