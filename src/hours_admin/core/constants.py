"""Constants and defaults.

Note: Keep constants here to avoid magic numbers spread across code.
"""

DEFAULT_ITEMS_PER_PAGE = 10
MAX_ITEMS_PER_PAGE = 100
MAX_EXPORT_ROWS = 10000

DEFAULT_SESSION_DAYS = 7

# Serializable transaction retry budget
DEFAULT_TX_MAX_RETRIES = 5
DEFAULT_TX_RETRY_BASE_DELAY = 0.05
DEFAULT_TX_RETRY_MAX_DELAY = 1.0

ISO_DATE_FORMAT = "%Y-%m-%d"
DISPLAY_DATE_FORMAT = "%d.%m.%Y"
