"""Common enums for the modelviz engine."""

from enum import Enum


class Environment(str, Enum):
    """Application environment types."""

    DEVELOPMENT = "development"
    PRODUCTION = "production"
    TESTING = "testing"


class AggregationStrategy(str, Enum):
    """How a blend merges the results of its models."""

    CONSENSUS = "consensus"
    WEIGHTED = "weighted"
    FIRST_SUCCESS = "first-success"
    BEST_OF = "best-of"


class CallStatus(str, Enum):
    """Outcome of a single provider call."""

    SUCCESS = "success"
    ERROR = "error"
    TIMEOUT = "timeout"


class InputFormat(str, Enum):
    """Prompt format recorded with each call metric."""

    JSON = "json"
    TEXT = "text"
    CODE = "code"


class TimeRange(str, Enum):
    """Named time windows for metric queries."""

    HOUR = "hour"
    TODAY = "today"
    WEEK = "week"
    MONTH = "month"
    YEAR = "year"
    ALL = "all"


class ExportFormat(str, Enum):
    """Comparison export formats."""

    JSON = "json"
    MARKDOWN = "markdown"
    CSV = "csv"
