"""netspeed -- sampling-based network speed measurement engine."""

from .cancel import CancelToken
from .config import Settings, load_config
from .controller import PhaseController
from .errors import (
    AllSamplesFailed,
    ConcurrentStart,
    HistoryError,
    InvalidTransition,
    SampleFailure,
    SpeedTestError,
    TestCancelled,
)
from .history import HistoryStore, JsonHistoryStore, MemoryHistoryStore, record_result
from .latency import PingProbe
from .progress import Phase, TestProgress
from .result import SpeedTestResult, build_result
from .stats import (
    PingStats,
    ProbeSample,
    ThroughputStats,
    calculate_jitter,
    calculate_mbps,
    calculate_packet_loss,
    format_latency,
    format_speed,
)
from .throughput import Direction, ThroughputProbe
from .transport import HttpTransport, Transport

__version__ = "0.3.0"

__all__ = [
    "AllSamplesFailed",
    "CancelToken",
    "ConcurrentStart",
    "Direction",
    "HistoryError",
    "HistoryStore",
    "HttpTransport",
    "InvalidTransition",
    "JsonHistoryStore",
    "MemoryHistoryStore",
    "Phase",
    "PhaseController",
    "PingProbe",
    "PingStats",
    "ProbeSample",
    "SampleFailure",
    "Settings",
    "SpeedTestError",
    "SpeedTestResult",
    "TestCancelled",
    "TestProgress",
    "ThroughputProbe",
    "ThroughputStats",
    "Transport",
    "build_result",
    "calculate_jitter",
    "calculate_mbps",
    "calculate_packet_loss",
    "format_latency",
    "format_speed",
    "load_config",
    "record_result",
]
