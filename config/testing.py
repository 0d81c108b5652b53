import os

SECRET_KEY = "test-secret"

DB_CONFIG = {
    "host": os.getenv("DB_HOST", "localhost"),
    "port": int(os.getenv("DB_PORT", "3306")),
    "user": os.getenv("DB_USER", "root"),
    "password": os.getenv("DB_PASSWORD", ""),
    "database": os.getenv("DB_NAME", "church_attendance_test"),
}

DEBUG = False
TESTING = True
LOG_LEVEL = "WARNING"

MEMBERSHIP_ID_PREFIX = "EA"
STRICT_MEMBERSHIP_PREFIX = False

BULK_MAX_WORKERS = 4

SMS_PROVIDER = "console"
SMS_SENDER_ID = "Church"

AUTO_INIT_DB = bool(int(os.getenv("AUTO_INIT_DB", "0")))
AUTO_SEED_DB = bool(int(os.getenv("AUTO_SEED_DB", "0")))
