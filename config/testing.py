import os

SECRET_KEY = "test-secret"

DB_CONFIG = {
    "host": os.getenv("DB_HOST", "localhost"),
    "port": int(os.getenv("DB_PORT", "3306")),
    "user": os.getenv("DB_USER", "root"),
    "password": os.getenv("DB_PASSWORD", ""),
    "database": os.getenv("DB_NAME", "attendance_manager_test"),
}

QR_TOKEN = "TEST_QR_TOKEN"
LEDGER_TIMEZONE = "UTC"

TRANSACTION_MAX_ATTEMPTS = 3
SUBSCRIPTION_POLL_SECONDS = 0.05

STORAGE_DIR = os.getenv("STORAGE_DIR", "var/test-storage")
STORAGE_BASE_URL = "/files"

DEBUG = False
TESTING = True
LOG_LEVEL = "WARNING"

AUTO_INIT_DB = bool(int(os.getenv("AUTO_INIT_DB", "0")))
