"""
Operational constants for the indexer.

Technical/operational constants used by the scheduler and task queue.
"""

# =============================================================================
# RETRY CONFIGURATIONS
# =============================================================================

# Default retry count for queued tasks
DEFAULT_MAX_RETRIES = 3

# Force sync is operator-triggered, a failed run is simply triggered again
FORCE_SYNC_MAX_RETRIES = 0


# =============================================================================
# DRAMATIQ TASK TIME LIMITS (milliseconds)
# =============================================================================

# Medium tasks (10 minutes) - metrics, volume
DRAMATIQ_TIME_LIMIT_MEDIUM = 600_000

# Long tasks (2 hours) - order history walks every chain block range
DRAMATIQ_TIME_LIMIT_LONG = 7_200_000

# Force sync runs everything back to back
DRAMATIQ_TIME_LIMIT_FORCE_SYNC = 10_800_000


# =============================================================================
# SCHEDULER
# =============================================================================

# Stagger between initial metrics sync and initial order sync (seconds)
INITIAL_ORDER_SYNC_STAGGER = 5

# Late ticks within this window still run (seconds)
SCHEDULER_MISFIRE_GRACE_TIME = 300

# Health server shutdown timeout (seconds)
HEALTH_SERVER_SHUTDOWN_TIMEOUT = 5
