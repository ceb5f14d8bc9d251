"""
Centralized default values for indicator, simulation and search parameters.

This is the SINGLE SOURCE OF TRUTH for all parameter defaults.
All modules should import from here to ensure consistency.
"""

# Stochastic Oscillator defaults (classic 14/3/3 "slow stochastic")
K_LENGTH = 14  # Look-back window for raw %K (highest high / lowest low)
K_SMOOTHING = 3  # SMA period applied to raw %K (the fast line)
D_LENGTH = 3  # SMA period applied to smoothed %K (the signal line)

# Optional signal zones; None disables the zone filter for entries
OVERSOLD = None
OVERBOUGHT = None

# Conventional zone levels when the filter is switched on without explicit values
STANDARD_OVERSOLD = 20.0
STANDARD_OVERBOUGHT = 80.0

# Trade simulation defaults
CAPITAL = 1000.0  # Notional committed to every entry
REVERSAL_POLICY = "flip"  # "flip" reopens the opposite side on the closing signal, "flatten" goes flat

# Configuration search defaults
TOP_N = 100  # Number of most profitable configurations kept
K_LENGTH_RANGE = (5, 20)
K_SMOOTHING_RANGE = (3, 5)
D_LENGTH_RANGE = (3, 5)
SEARCH_WORKERS = None  # Worker processes; None = CPU count, 1 = in-process
SEARCH_CHUNKS_PER_WORKER = 4  # Chunks of the enumeration handed to each worker
SEARCH_CANCEL_POLL_S = 0.2  # How often the parallel search checks for cancellation

# Data source defaults
KLINE_LIMIT = 1000
KLINE_INTERVAL = "4h"
KLINE_CACHE_DIR = "klines"
BINANCE_BASE_URL = "https://api.binance.us"
COINBASE_BASE_URL = "https://api.exchange.coinbase.com"
COINBASE_MAX_CANDLES = 300  # Coinbase returns at most 300 candles per request
COINBASE_PAGE_PAUSE_S = 1.0  # Pause between paged requests to stay under the public rate limit
HTTP_TIMEOUT_S = 20
