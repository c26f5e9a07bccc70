"""
Default configuration values for destream.

Note: Paths and overrides are resolved via config/loader.py which supports
environment variables (DESTREAM_ROOT, DESTREAM_TOKEN_CACHE), project config,
and user config. These values are empirically chosen policy, not invariants.
"""

# Platform endpoints
LOGIN_URL = "https://web.microsoftstream.com/"
VIDEO_URL_TEMPLATE = "https://web.microsoftstream.com/video/{video_id}"
IDP_URL_PREFIX = "https://logon.ms.cvut.cz"
PROVIDER_LOGIN_PREFIX = "https://login.microsoftonline.com/"
APP_ROOT_SUFFIX = "microsoftstream.com/"

# Timeouts (seconds)
PROMPT_TIMEOUT = 3
REDIRECT_TIMEOUT = 15
REFRESH_TIMEOUT = 30
API_TIMEOUT = 30

# Session object extraction
SESSION_PROBE_ATTEMPTS = 5
SESSION_PROBE_DELAY = 3.0

# Tokens expiring sooner than this are treated as already expired
TOKEN_MIN_VALIDITY = 120

# Progress chunk size: one chunk per minute of playback
SECONDS_PER_CHUNK = 60.0

# HTTP transport retries for API calls
API_RETRIES = 6
API_BACKOFF_FACTOR = 0.5

# Output
DEFAULT_OUTPUT_DIR = "videos"
DEFAULT_OUTPUT_TEMPLATE = "{title} - {publishDate} {uniqueId}"
DEFAULT_FORMAT = "mkv"
DEFAULT_CODEC = "copy"

TOKEN_CACHE_FILENAME = ".token_cache"
CHROME_DATA_DIRNAME = "chrome_data"
