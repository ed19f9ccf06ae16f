"""Engine constants and pricing tables."""

from typing import Final

# Provider pricing in USD per 1K tokens (January 2025)
PRICING_TABLE: Final[dict[str, dict[str, dict[str, float]]]] = {
    "OpenAI": {
        "gpt-5": {"input": 0.02, "output": 0.08},
        "gpt-5-nano": {"input": 0.001, "output": 0.004},
        "gpt-5.1": {"input": 0.025, "output": 0.10},
        "gpt-5.1-chat-latest": {"input": 0.025, "output": 0.10},
        "o3": {"input": 0.02, "output": 0.08},
        "o3-mini": {"input": 0.004, "output": 0.016},
        "o4-mini": {"input": 0.003, "output": 0.012},
        "gpt-4.1": {"input": 0.015, "output": 0.045},
        "gpt-4.1-mini": {"input": 0.0005, "output": 0.002},
        "gpt-4.1-nano": {"input": 0.0002, "output": 0.0008},
        "gpt-4-turbo": {"input": 0.01, "output": 0.03},
        "gpt-4-turbo-preview": {"input": 0.01, "output": 0.03},
        "gpt-4": {"input": 0.03, "output": 0.06},
        "gpt-4-32k": {"input": 0.06, "output": 0.12},
        "gpt-3.5-turbo": {"input": 0.0005, "output": 0.0015},
        "gpt-3.5-turbo-16k": {"input": 0.001, "output": 0.002},
        "gpt-4o": {"input": 0.005, "output": 0.015},
        "gpt-4o-mini": {"input": 0.00015, "output": 0.0006},
        "o1": {"input": 0.015, "output": 0.06},
        "o1-mini": {"input": 0.003, "output": 0.012},
    },
    "Anthropic": {
        "claude-opus-4-5-20250514": {"input": 0.015, "output": 0.075},
        "claude-opus-4-5": {"input": 0.015, "output": 0.075},
        "claude-sonnet-4-5-20250929": {"input": 0.004, "output": 0.020},
        "claude-opus-4-1-20250805": {"input": 0.020, "output": 0.100},
        "claude-opus-4-20250514": {"input": 0.018, "output": 0.090},
        "claude-sonnet-4-20250514": {"input": 0.004, "output": 0.020},
        "claude-3-7-sonnet-20250219": {"input": 0.003, "output": 0.015},
        "claude-3-5-sonnet-20241022": {"input": 0.003, "output": 0.015},
        "claude-3-5-haiku-20241022": {"input": 0.0008, "output": 0.004},
        "claude-3.5-sonnet": {"input": 0.003, "output": 0.015},
        "claude-3-5-sonnet-20240620": {"input": 0.003, "output": 0.015},
        "claude-3-opus": {"input": 0.015, "output": 0.075},
        "claude-3-opus-20240229": {"input": 0.015, "output": 0.075},
        "claude-3-sonnet": {"input": 0.003, "output": 0.015},
        "claude-3-sonnet-20240229": {"input": 0.003, "output": 0.015},
        "claude-3-haiku": {"input": 0.00025, "output": 0.00125},
        "claude-3-haiku-20240307": {"input": 0.00025, "output": 0.00125},
        "claude-2.1": {"input": 0.008, "output": 0.024},
        "claude-2": {"input": 0.008, "output": 0.024},
        "claude-instant-1.2": {"input": 0.0008, "output": 0.0024},
    },
    "Perplexity": {
        "sonar": {"input": 0.0002, "output": 0.0002},
        "sonar-pro": {"input": 0.001, "output": 0.001},
        "sonar-reasoning": {"input": 0.001, "output": 0.001},
        "pplx-7b-online": {"input": 0.0002, "output": 0.0002},
        "pplx-70b-online": {"input": 0.001, "output": 0.001},
        "sonar-small-chat": {"input": 0.0002, "output": 0.0002},
        "sonar-medium-chat": {"input": 0.0006, "output": 0.0006},
        "sonar-small-online": {"input": 0.0002, "output": 0.0002},
        "sonar-medium-online": {"input": 0.0006, "output": 0.0006},
    },
    "Google": {
        "gemini-3-pro-preview": {"input": 0.005, "output": 0.015},
        "gemini-2.5-pro": {"input": 0.004, "output": 0.012},
        "gemini-2.5-flash": {"input": 0.00015, "output": 0.0006},
        "gemini-2.5-flash-lite-preview-06-17": {"input": 0.0001, "output": 0.0004},
        "gemini-2.0-pro-exp": {"input": 0.0035, "output": 0.0105},
        "gemini-2.0-pro-exp-02-05": {"input": 0.0035, "output": 0.0105},
        "gemini-2.0-flash": {"input": 0.0001, "output": 0.0004},
        "gemini-2.0-flash-001": {"input": 0.0001, "output": 0.0004},
        "gemini-2.0-flash-exp": {"input": 0.0001, "output": 0.0004},
        "gemini-2.0-flash-lite-preview-02-05": {"input": 0.00005, "output": 0.0002},
        "gemini-2.0-flash-thinking-exp-01-21": {"input": 0.0001, "output": 0.0004},
        "gemini-2.0-flash-thinking-exp-1219": {"input": 0.0001, "output": 0.0004},
        "gemini-1.5-pro": {"input": 0.0035, "output": 0.0105},
        "gemini-1.5-flash": {"input": 0.000075, "output": 0.0003},
        "gemini-pro": {"input": 0.00025, "output": 0.0005},
        "gemini-pro-vision": {"input": 0.00025, "output": 0.0005},
    },
    "Mistral": {
        "mistral-tiny": {"input": 0.00014, "output": 0.00042},
        "mistral-small": {"input": 0.0006, "output": 0.0018},
        "mistral-medium": {"input": 0.0027, "output": 0.0081},
        "mistral-large": {"input": 0.004, "output": 0.012},
    },
    "Cohere": {
        "command": {"input": 0.001, "output": 0.002},
        "command-light": {"input": 0.0003, "output": 0.0006},
        "command-r": {"input": 0.0005, "output": 0.0015},
        "command-r-plus": {"input": 0.003, "output": 0.015},
    },
}

# Cost calculation precision (decimal places)
COST_PRECISION: Final[int] = 6

TOKENS_PER_THOUSAND: Final[int] = 1_000
TOKENS_PER_MILLION: Final[int] = 1_000_000

# Rough characters-per-token ratio for English text
CHARS_PER_TOKEN: Final[int] = 4

# Blend configuration
MAX_BLEND_MODELS: Final[int] = 3
TOTAL_WEIGHT: Final[float] = 100.0
WEIGHT_TOLERANCE: Final[float] = 0.01

# Consensus clustering threshold (Jaccard overlap of token sets)
SIMILARITY_THRESHOLD: Final[float] = 0.6

# best-of scoring
TARGET_RESPONSE_MIN_CHARS: Final[int] = 100
TARGET_RESPONSE_MAX_CHARS: Final[int] = 2000
TRUNCATION_PENALTY: Final[float] = 0.3
BEST_OF_TIE_MARGIN: Final[float] = 0.05

# Comparison ranking
OVERALL_SPEED_WEIGHT: Final[float] = 0.3
OVERALL_COST_WEIGHT: Final[float] = 0.3
OVERALL_QUALITY_WEIGHT: Final[float] = 0.4
QUALITY_THRESHOLD: Final[float] = 0.6
COST_EPSILON: Final[float] = 0.001
CALLS_PER_PROJECTION: Final[int] = 1_000

# Metrics
HOUR_MS: Final[int] = 3_600_000
DAY_MS: Final[int] = 24 * HOUR_MS
METRICS_RETENTION_DAYS: Final[int] = 90
RECENT_METRICS_LIMIT: Final[int] = 100

# Saved comparison sessions
MAX_SAVED_SESSIONS: Final[int] = 50

# Per-call timeout in seconds
DEFAULT_CALL_TIMEOUT: Final[float] = 30.0
