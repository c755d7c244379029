import os

SECRET_KEY = os.getenv("SECRET_KEY", "dev-secret-key")

DB_CONFIG = {
    "host": os.getenv("DB_HOST", "localhost"),
    "port": int(os.getenv("DB_PORT", "3306")),
    "user": os.getenv("DB_USER", "root"),
    "password": os.getenv("DB_PASSWORD", ""),
    "database": os.getenv("DB_NAME", "hours_admin"),
}

# Full SQLAlchemy URL, takes precedence over DB_CONFIG when set
DATABASE_URL = os.getenv("DATABASE_URL")

DEBUG = True
LOG_LEVEL = os.getenv("LOG_LEVEL", "DEBUG")

TX_MAX_RETRIES = int(os.getenv("TX_MAX_RETRIES", "5"))
TX_RETRY_BASE_DELAY = float(os.getenv("TX_RETRY_BASE_DELAY", "0.05"))
TX_RETRY_MAX_DELAY = float(os.getenv("TX_RETRY_MAX_DELAY", "1.0"))

# If enabled, app will create missing tables on startup
AUTO_INIT_DB = bool(int(os.getenv("AUTO_INIT_DB", "1")))
# Optional: also seed demo data on startup
AUTO_SEED_DB = bool(int(os.getenv("AUTO_SEED_DB", "0")))
