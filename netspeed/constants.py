"""
Shared constants used across the engine modules.

Centralises magic numbers, default headers, and tunables so they live in
exactly one place.
"""

# ---------------------------------------------------------------------------
# HTTP headers
# ---------------------------------------------------------------------------

USER_AGENT = "netspeed/0.3 (+https://github.com/netspeed/netspeed)"

COMMON_HEADERS = {
    "User-Agent": USER_AGENT,
    "Accept": "*/*",
    "Cache-Control": "no-cache",
    "Pragma": "no-cache",
}

# ---------------------------------------------------------------------------
# Endpoints
# ---------------------------------------------------------------------------

DEFAULT_BASE_URL = "http://127.0.0.1:8080"
PING_PATH = "/ping"
DOWNLOAD_PATH = "/download"
UPLOAD_PATH = "/upload"

# ---------------------------------------------------------------------------
# Ping
# ---------------------------------------------------------------------------

DEFAULT_PING_COUNT = 5
MIN_PING_COUNT = 1
MAX_PING_COUNT = 100
PING_DELAY = 0.1                 # seconds between pings
PENALTY_MS = 1000.0              # RTT recorded for a failed ping

# ---------------------------------------------------------------------------
# Throughput
# ---------------------------------------------------------------------------

KIB = 1024

DOWNLOAD_SIZES = [100 * KIB, 500 * KIB, 1000 * KIB, 2000 * KIB]
UPLOAD_SIZES = [50 * KIB, 100 * KIB, 200 * KIB, 500 * KIB]
DOWNLOAD_DELAY = 0.2
UPLOAD_DELAY = 0.3

CHUNK_SIZE = 64 * KIB            # read size while draining a download
UPLOAD_BUFFER_SIZE = 1024 * KIB  # pre-generated random upload payload
MAX_DOWNLOAD_SIZE = 100 * 1024 * KIB

# ---------------------------------------------------------------------------
# Timing
# ---------------------------------------------------------------------------

DEFAULT_TIMEOUT = 5.0            # per-request timeout in seconds
MIN_TIMEOUT = 0.5
MAX_TIMEOUT = 120.0

# ---------------------------------------------------------------------------
# Overall progress ranges per phase (percent)
# ---------------------------------------------------------------------------

PING_RANGE = (0.0, 30.0)
DOWNLOAD_RANGE = (30.0, 70.0)
UPLOAD_RANGE = (70.0, 100.0)
MAX_RUNNING_PERCENT = 99.9       # 100 is reserved for the COMPLETE event

# ---------------------------------------------------------------------------
# History
# ---------------------------------------------------------------------------

HISTORY_LIMIT = 10
