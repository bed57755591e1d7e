"""
Core Module - Constants.

============================================================
RESPONSIBILITY
============================================================
Defines the service-wide constants.

- Single source of truth for sentinel values
- Fingerprint material layout
- Table names

Changing FINGERPRINT_DELIMITER or NULL_TIMESTAMP_TOKEN
invalidates every stored fingerprint.

============================================================
"""

# ============================================================
# SYSTEM CONSTANTS
# ============================================================

SYSTEM_NAME = "event-ingest"
SYSTEM_VERSION = "1.0.0"

# ============================================================
# NORMALIZATION SENTINELS
# ============================================================

UNKNOWN_CLIENT_ID = "unknown"
UNKNOWN_METRIC = "unknown"
DEFAULT_AMOUNT = 0
AMOUNT_MIN = -(2 ** 63)
AMOUNT_MAX = 2 ** 63 - 1

# ============================================================
# FINGERPRINT
# ============================================================

FINGERPRINT_DELIMITER = "|"
NULL_TIMESTAMP_TOKEN = "null"
FINGERPRINT_ALGORITHM = "sha256"
FINGERPRINT_LENGTH = 64

# ============================================================
# STORAGE
# ============================================================

RAW_EVENTS_TABLE = "raw_events"
NORMALIZED_EVENTS_TABLE = "normalized_events"

REQUIRED_TABLES = [
    RAW_EVENTS_TABLE,
    NORMALIZED_EVENTS_TABLE,
]
