"""Configuration constants.

This module contains values that are NOT user-configurable, plus the
built-in defaults that models.py falls back to.

For configurable values, see models.py (CacheConfig, LoggingConfig).
"""

# =============================================================================
# Window Defaults
# =============================================================================

DEFAULT_PAGE_SIZE = 100
"""Default window length served to the UI."""

DEFAULT_FETCH_LIMIT = 1000
"""Default upstream request size for bulk and filtered loads."""

MAX_WINDOW_INDEX = 20
"""Default upper clamp for next(index). A UI safety cap, not derived from data."""

# =============================================================================
# Hard Maximums
# =============================================================================
# Users can configure values below these, but cannot exceed them.

PAGE_SIZE_MAX = 10_000
"""Maximum window length."""

FETCH_LIMIT_MAX = 100_000
"""Maximum upstream request size."""

# =============================================================================
# File Locations
# =============================================================================

CONFIG_FILE_NAME = "pagedcache.yaml"
"""Config file looked up in the working directory when no path is given."""

ENV_PREFIX = "PAGEDCACHE__"
"""Environment variable prefix (PAGEDCACHE__SECTION__KEY)."""
