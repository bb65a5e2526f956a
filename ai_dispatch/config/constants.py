"""
Dispatch Defaults

Central location for the default timeouts, retry budgets, breaker thresholds,
cache sizes and rate limits used by the resilience layer.

All durations are in seconds.
"""

# Per-provider call timeouts
API_TIMEOUTS = {
    "claude": {"message": 60.0, "validation": 30.0, "stream": 120.0},
    "openai": {"message": 60.0, "validation": 30.0, "stream": 120.0},
    "gemini": {"message": 60.0, "validation": 30.0, "stream": 120.0},
}

# Retry executor defaults
RETRY_MAX_ATTEMPTS = 3
RETRY_INITIAL_DELAY = 1.0
RETRY_MAX_DELAY = 8.0
RETRY_BACKOFF_MULTIPLIER = 2.0
RETRY_JITTER_RATIO = 0.25

# Transient socket-level error codes
RETRYABLE_ERROR_CODES = (
    "ECONNRESET",
    "ETIMEDOUT",
    "ENOTFOUND",
    "ECONNREFUSED",
    "ENETUNREACH",
    "EAI_AGAIN",
)

RETRYABLE_STATUS_CODES = (429, 500, 502, 503, 504)

# Circuit breaker defaults
CIRCUIT_FAILURE_THRESHOLD = 5
CIRCUIT_SUCCESS_THRESHOLD = 2
CIRCUIT_OPEN_TIMEOUT = 30.0
CIRCUIT_MONITORING_WINDOW = 60.0

# Cache defaults
CACHE_MAX_SIZE = 100
CACHE_DEFAULT_TTL = 300.0
API_KEY_VALIDATION_TTL = 300.0
VALIDATION_CACHE_NAME = "api-key-validation"
VALIDATION_KEY_DIGEST_LENGTH = 16

# Performance monitor defaults
PERFORMANCE_MAX_DATA_POINTS = 1000
PERFORMANCE_SLOW_OPERATION_THRESHOLD = 5.0
PERFORMANCE_HIGH_ERROR_RATE_THRESHOLD = 0.1
PERFORMANCE_MIN_POINTS_FOR_ERROR_RATE = 10

# Rate limit channels: (max_requests, window seconds)
RATE_LIMIT_CHANNELS = {
    "send_message": (20, 60.0),
    "stream_message": (20, 60.0),
    "validate_api_key": (10, 60.0),
}

# Provider defaults
DEFAULT_MODELS = {
    "claude": "claude-sonnet-4-5-20250929",
    "openai": "gpt-5.1",
    "gemini": "gemini-2.5-flash",
}

DEFAULT_MAX_TOKENS = 2048
DEFAULT_TEMPERATURE = 0.7

VALIDATION_PROMPT = "Hello"
VALIDATION_MAX_TOKENS = 10

GEMINI_REST_BASE_URL = "https://generativelanguage.googleapis.com/v1beta"

# Environment variable prefix for overrides
ENV_PREFIX = "AI_DISPATCH_"

PROVIDER_API_KEY_ENV_VARS = {
    "claude": ("ANTHROPIC_API_KEY", "CLAUDE_API_KEY"),
    "openai": ("OPENAI_API_KEY",),
    "gemini": ("GEMINI_API_KEY", "GOOGLE_API_KEY"),
}
