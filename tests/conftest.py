"""
Pytest configuration and shared fixtures for the runbench test suite.

This module provides a deterministic clock, an in-memory process table that
stands in for the OS, and configuration fixtures shared by all test modules.
"""

import itertools
import shutil
import sys
import tempfile
from dataclasses import dataclass
from pathlib import Path
from typing import Dict, Optional
from unittest.mock import Mock, patch

import pytest

# Add src to Python path for testing
sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

from runbench.harness.clock import Clock  # noqa: E402
from runbench.harness.controller import ProcessController  # noqa: E402
from runbench.models.config import (  # noqa: E402
    AppConfig,
    AppVariant,
    HarnessConfig,
    ResilienceConfig,
    StorageConfig,
    ThresholdConfig,
)
from runbench.system.inspectors import ProcessInspector  # noqa: E402


# ============================================================================
# Test Configuration
# ============================================================================


def pytest_configure(config):
    """Configure pytest with custom markers and settings."""
    config.addinivalue_line("markers", "unit: mark test as a unit test")
    config.addinivalue_line("markers", "integration: mark test as an integration test")
    config.addinivalue_line("markers", "slow: mark test as slow running")


# ============================================================================
# Fakes
# ============================================================================


class FakeClock(Clock):
    """Monotonic clock that only advances when something sleeps."""

    def __init__(self, start_ms: float = 0.0):
        self.now_ms = start_ms
        self.sleeps = []

    def monotonic_ms(self) -> float:
        return self.now_ms

    def sleep_ms(self, duration_ms: float) -> None:
        self.sleeps.append(duration_ms)
        self.now_ms += max(0.0, duration_ms)

    def advance(self, duration_ms: float) -> None:
        self.now_ms += duration_ms


@dataclass
class FakeProcess:
    pid: int
    appear_at_ms: float
    vanish_at_ms: Optional[float] = None
    memory_mb: float = 50.0
    cpu_percent: float = 2.0


class FakeInspector(ProcessInspector):
    """
    In-memory process table keyed by pattern, scripted against a FakeClock.

    A process is visible from `appear_at_ms` until `vanish_at_ms` (or until
    it is killed).
    """

    name = "fake"

    def __init__(self, clock: FakeClock):
        self.clock = clock
        self.processes: Dict[str, FakeProcess] = {}
        self._pids = itertools.count(1000)

    def spawn(
        self,
        pattern: str,
        appear_after_ms: float = 0.0,
        lifetime_ms: Optional[float] = None,
        memory_mb: float = 50.0,
        cpu_percent: float = 2.0,
    ) -> FakeProcess:
        now = self.clock.monotonic_ms()
        appear_at = now + appear_after_ms
        process = FakeProcess(
            pid=next(self._pids),
            appear_at_ms=appear_at,
            vanish_at_ms=None if lifetime_ms is None else appear_at + lifetime_ms,
            memory_mb=memory_mb,
            cpu_percent=cpu_percent,
        )
        self.processes[pattern] = process
        return process

    def kill(self, pid: int) -> int:
        for pattern, process in list(self.processes.items()):
            if process.pid == pid:
                alive = self._visible(process)
                del self.processes[pattern]
                return 1 if alive else 0
        return 0

    def _visible(self, process: FakeProcess) -> bool:
        now = self.clock.monotonic_ms()
        if now < process.appear_at_ms:
            return False
        return process.vanish_at_ms is None or now < process.vanish_at_ms

    def _live(self, pattern: str) -> Optional[FakeProcess]:
        process = self.processes.get(pattern)
        if process is not None and self._visible(process):
            return process
        return None

    def _matching_pids(self, pattern):
        process = self._live(pattern)
        return [process.pid] if process else []

    def _read_memory_mb(self, pattern):
        process = self._live(pattern)
        return process.memory_mb if process else 0.0

    def _read_cpu_percent(self, pattern):
        process = self._live(pattern)
        return process.cpu_percent if process else 0.0


class FakeLauncher:
    """
    Replacement for subprocess.Popen that spawns into a FakeInspector.

    `behaviors` maps a command to keyword arguments for FakeInspector.spawn
    plus `pattern`; a behavior of `{"fail": True}` raises FileNotFoundError.
    """

    def __init__(self, inspector: FakeInspector, behaviors: Dict[str, dict]):
        self.inspector = inspector
        self.behaviors = behaviors
        self.launches = []

    def __call__(self, argv, **kwargs):
        self.launches.append((list(argv), kwargs))
        behavior = dict(self.behaviors[argv[0]])
        if behavior.pop("fail", False):
            raise FileNotFoundError(2, "No such file or directory", argv[0])
        pattern = behavior.pop("pattern")
        process = self.inspector.spawn(pattern, **behavior)
        popen = Mock()
        popen.pid = process.pid
        popen.poll.return_value = 0
        popen.wait.return_value = 0
        return popen


# ============================================================================
# Core Fixtures
# ============================================================================


@pytest.fixture
def temp_dir():
    """Create a temporary directory for test files."""
    temp_path = tempfile.mkdtemp()
    yield Path(temp_path)
    shutil.rmtree(temp_path, ignore_errors=True)


@pytest.fixture
def fake_clock():
    return FakeClock()


@pytest.fixture
def fake_inspector(fake_clock):
    return FakeInspector(fake_clock)


@pytest.fixture
def controller(fake_inspector, fake_clock):
    """ProcessController wired to the fake process table."""
    return ProcessController(
        fake_inspector,
        clock=fake_clock,
        poll_interval_ms=100,
        absence_timeout_ms=5000,
        killer=fake_inspector.kill,
    )


@pytest.fixture
def electron_variant():
    return AppVariant(
        id="electron",
        name="Electron",
        command="electron-app",
        args=("--no-sandbox",),
        process_pattern="electron-app",
        role="baseline",
    )


@pytest.fixture
def tauri_variant():
    return AppVariant(
        id="tauri",
        name="Tauri",
        command="tauri-app",
        process_pattern="tauri-app",
        role="candidate",
    )


@pytest.fixture
def fake_launcher(fake_inspector):
    """Patch Popen in the controller with a FakeLauncher (behaviors set per test)."""
    launcher = FakeLauncher(
        fake_inspector,
        {
            "electron-app": {"pattern": "electron-app", "appear_after_ms": 1200, "memory_mb": 180.0, "cpu_percent": 8.0},
            "tauri-app": {"pattern": "tauri-app", "appear_after_ms": 300, "memory_mb": 45.0, "cpu_percent": 1.5},
        },
    )
    with patch("runbench.harness.controller.subprocess.Popen", side_effect=launcher):
        yield launcher


@pytest.fixture
def fast_harness_config():
    """Harness timings small enough to keep fake-clock runs short."""
    return HarnessConfig(
        poll_interval_ms=100,
        startup_timeout_ms=3000,
        sampler_start_timeout_ms=3000,
        settle_delay_ms=200,
        inter_iteration_delay_ms=100,
        absence_timeout_ms=1000,
        startup_iterations=3,
        sample_duration_ms=2000,
        sample_interval_ms=500,
        warmup_hold_ms=500,
    )


@pytest.fixture
def app_config(fast_harness_config, electron_variant, tauri_variant, temp_dir):
    return AppConfig(
        harness=fast_harness_config,
        thresholds=ThresholdConfig(),
        resilience=ResilienceConfig(
            outage_window_ms=3000,
            pre_outage_delay_ms=200,
            probe_interval_ms=500,
            max_retries=3,
            retry_interval_ms=1000,
            probe="random",
            random_seed=7,
        ),
        storage=StorageConfig(results_dir=temp_dir / "results"),
        variants=[electron_variant, tauri_variant],
    )


# ============================================================================
# Configuration Fixtures
# ============================================================================


@pytest.fixture
def sample_config_data():
    """Raw main configuration tables as they appear in config.toml."""
    return {
        "harness": {
            "platform_inspector": "auto",
            "poll_interval_ms": 100,
            "startup_timeout_ms": 10000,
            "settle_delay_ms": 2000,
            "inter_iteration_delay_ms": 1000,
            "startup_iterations": 5,
            "sample_duration_ms": 10000,
            "sample_interval_ms": 500,
        },
        "thresholds": {"startup_ms": 3000, "memory_mb": 100, "cpu_percent": 5},
        "resilience": {"probe": "tcp", "probe_host": "127.0.0.1", "probe_port": 8080},
        "storage": {"results_dir": "results", "format": "parquet"},
    }


@pytest.fixture
def sample_variants_data():
    """Raw `[[variants]]` tables as they appear in variants.toml."""
    return [
        {
            "id": "electron",
            "name": "Electron",
            "command": "npm",
            "args": ["start"],
            "working_dir": "electron-app",
            "process_pattern": "[Ee]lectron",
            "role": "baseline",
        },
        {
            "id": "tauri",
            "name": "Tauri",
            "command": "npm",
            "args": ["run", "tauri", "dev"],
            "process_pattern": "tauri-app",
            "role": "candidate",
        },
    ]


@pytest.fixture
def config_files(temp_dir, sample_config_data, sample_variants_data):
    """Create temporary configuration files for testing."""
    import toml

    config_file = temp_dir / "config.toml"
    config_data = dict(sample_config_data)
    config_data["paths"] = {"variants_config": "variants.toml"}
    with open(config_file, "w") as f:
        toml.dump(config_data, f)

    variants_file = temp_dir / "variants.toml"
    with open(variants_file, "w") as f:
        toml.dump({"variants": sample_variants_data}, f)

    return {"config": config_file, "variants": variants_file, "dir": temp_dir}


@pytest.fixture(autouse=True)
def clear_config_after_test():
    """Automatically clear configuration cache after each test."""
    original_config_path = Path(__file__).parent.parent / "conf" / "config.toml"

    yield

    from runbench.config import clear_config_cache, set_config_path

    clear_config_cache()
    set_config_path(original_config_path)
