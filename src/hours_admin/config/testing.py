import os

SECRET_KEY = "test-secret"

DB_CONFIG = {
    "host": os.getenv("DB_HOST", "localhost"),
    "port": int(os.getenv("DB_PORT", "3306")),
    "user": os.getenv("DB_USER", "root"),
    "password": os.getenv("DB_PASSWORD", ""),
    "database": os.getenv("DB_NAME", "hours_admin_test"),
}

DATABASE_URL = os.getenv("TEST_DATABASE_URL", "sqlite://")

DEBUG = False
TESTING = True
LOG_LEVEL = "WARNING"

TX_MAX_RETRIES = 3
TX_RETRY_BASE_DELAY = 0.0
TX_RETRY_MAX_DELAY = 0.0

AUTO_INIT_DB = True
AUTO_SEED_DB = False
