"""
The benchmark harness: process control, sampling, timing, reduction,
comparison and resilience observation.
"""

from .clock import Clock, SystemClock, poll_until
from .comparison import (
    ABSOLUTE_DIGITS,
    compare,
    compare_resilience,
    compare_variants,
    generate_recommendations,
    generate_startup_recommendations,
)
from .controller import LaunchHandle, ProcessController, kill_process_tree
from .probes import (
    ConnectivityProbe,
    HttpHealthProbe,
    ProcessAliveProbe,
    RandomProbe,
    ScriptedProbe,
    TcpProbe,
    create_probe,
)
from .resilience import ResilienceSimulator
from .sampler import Sampler
from .statistics import summarize, summarize_all
from .timing import TimingHarness

__all__ = [
    "Clock",
    "SystemClock",
    "poll_until",
    "ProcessController",
    "LaunchHandle",
    "kill_process_tree",
    "Sampler",
    "TimingHarness",
    "summarize",
    "summarize_all",
    "ABSOLUTE_DIGITS",
    "compare",
    "compare_variants",
    "compare_resilience",
    "generate_recommendations",
    "generate_startup_recommendations",
    "ConnectivityProbe",
    "TcpProbe",
    "HttpHealthProbe",
    "ProcessAliveProbe",
    "RandomProbe",
    "ScriptedProbe",
    "create_probe",
    "ResilienceSimulator",
]
