"""
Application constants.

Centralized constants for the application.
"""

# ========================================================================
# BLOCKCHAIN CONSTANTS
# ========================================================================

# RPC timeouts (in seconds)
RPC_CALL_TIMEOUT = 30.0  # Single contract call / block lookup
RPC_MIN_INTERVAL_SECONDS = 1.0  # Cooldown between two RPC calls (all chains)

# eth_getLogs range limits
EVENT_QUERY_BATCH_BLOCKS = 5000  # Larger ranges get truncated by some providers

# Extra delay between log sub-batches on slow providers (seconds)
SLOW_CHAIN_BATCH_DELAY = 0.2

# Thread pool for synchronous web3 calls
RPC_EXECUTOR_WORKERS = 4

# ========================================================================
# ORDER SYNC CONSTANTS
# ========================================================================

# First sync of a chain starts this many blocks behind the head
INITIAL_LOOKBACK_BLOCKS = 100_000

# Blocks per order sync batch
ORDER_SYNC_BATCH_BLOCKS = 5000

# Delay between order sync batches (seconds)
ORDER_SYNC_BATCH_DELAY = 0.1
ORDER_SYNC_SLOW_CHAIN_BATCH_DELAY = 0.2

# Max failed sub-ranges kept on a sync status row
MAX_FAILED_RANGES = 500

# Running flags older than this are treated as left over by a dead process
STALE_RUN_SECONDS = 4 * 60 * 60

# ========================================================================
# PRICE FEED CONSTANTS
# ========================================================================

DEFAULT_PRICE_API_URL = "https://paycrypt-margin-price.onrender.com"
PRICE_API_PATH = "/api/v3/simple/price"
PRICE_API_TIMEOUT = 10.0  # seconds

PRICE_CACHE_TTL_SECONDS = 600  # 10 minutes
PRICE_MIN_INTERVAL_SECONDS = 60  # Between two upstream requests

# ========================================================================
# API CONSTANTS
# ========================================================================

DEFAULT_PAGE_SIZE = 50
DEFAULT_RECENT_ORDERS = 10
METRICS_QUERY_LIMIT = 1000  # Max metric rows in one stats response
TOP_ENTRIES_LIMIT = 10  # Top tokens / users in summaries

ORDER_SORT_FIELDS = ("timestamp", "blockNumber", "amount", "userWallet")
TIMELINE_INTERVALS = ("hour", "day", "month")
VOLUME_CHART_HOURS = (3, 12, 24)
