import os

SECRET_KEY = os.getenv("SECRET_KEY", "dev-secret-key")

DB_CONFIG = {
    "host": os.getenv("DB_HOST", "localhost"),
    "port": int(os.getenv("DB_PORT", "3306")),
    "user": os.getenv("DB_USER", "root"),
    "password": os.getenv("DB_PASSWORD", ""),
    "database": os.getenv("DB_NAME", "attendance_manager"),
}

# Office QR code accepted by the scan endpoint
QR_TOKEN = os.getenv("QR_TOKEN", "OFFICE_CHECKIN_SYSTEM")

# IANA zone that decides which calendar day a punch belongs to; empty = host zone
LEDGER_TIMEZONE = os.getenv("LEDGER_TIMEZONE", "")

TRANSACTION_MAX_ATTEMPTS = int(os.getenv("TRANSACTION_MAX_ATTEMPTS", "5"))
SUBSCRIPTION_POLL_SECONDS = float(os.getenv("SUBSCRIPTION_POLL_SECONDS", "2.0"))

STORAGE_DIR = os.getenv("STORAGE_DIR", "var/storage")
STORAGE_BASE_URL = os.getenv("STORAGE_BASE_URL", "/files")

DEBUG = True
LOG_LEVEL = os.getenv("LOG_LEVEL", "DEBUG")

# If enabled, app will apply schema.sql on startup (idempotent: CREATE IF NOT EXISTS)
AUTO_INIT_DB = bool(int(os.getenv("AUTO_INIT_DB", "1")))
