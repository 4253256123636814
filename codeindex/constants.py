# Path: codeindex/constants.py
# Purpose: Shared numeric limits for parsing, batching, and search.
# Layer: codeindex.
# Details: Block size bounds drive the chunker; search bounds mirror the configuration surface.

# Block sizing
MAX_BLOCK_CHARS = 1000
MIN_BLOCK_CHARS = 50
MIN_CHUNK_REMAINDER_CHARS = 200
MAX_CHARS_TOLERANCE_FACTOR = 1.15
CONTENT_PREVIEW_CHARS = 100

# Scanning
MAX_FILE_SIZE_BYTES = 1 * 1024 * 1024

# Batching and retries
BATCH_SEGMENT_THRESHOLD = 60
MAX_BATCH_RETRIES = 3
INITIAL_RETRY_DELAY_MS = 500
MAX_RETRY_DELAY_MS = 30_000
DEFAULT_MAX_CONCURRENCY = 10

# Search
MIN_SEARCH_RESULTS = 1
MAX_SEARCH_RESULTS = 64
DEFAULT_SEARCH_RESULTS = 16
MIN_SEARCH_SCORE = 0.0
MAX_SEARCH_SCORE = 2.0
DEFAULT_SEARCH_MIN_SCORE = 1.3
SEARCH_SCORE_STEP = 0.01
