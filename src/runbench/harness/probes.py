"""
Connectivity probes for the resilience scenario.

A probe is any zero-argument callable returning True when connectivity is
observed. The classes here cover the usual sources: a TCP port, an HTTP
health endpoint, the variant process itself, a seeded fixed-probability
stand-in, and a scripted sequence for deterministic tests.
"""

import logging
import random
import socket
from abc import ABC, abstractmethod
from typing import Callable, Iterable, Optional

import requests

from ..models.config import AppVariant, ResilienceConfig
from ..system.inspectors import ProcessInspector

logger = logging.getLogger(__name__)

Probe = Callable[[], bool]


class ConnectivityProbe(ABC):
    """Base class for named connectivity probes."""

    name = "probe"

    @abstractmethod
    def __call__(self) -> bool:
        pass

    def __repr__(self) -> str:
        return f"<{type(self).__name__} {self.name}>"


class TcpProbe(ConnectivityProbe):
    """Connected when a TCP connection to host:port succeeds."""

    name = "tcp"

    def __init__(self, host: str, port: int, timeout_ms: int = 1000):
        self.host = host
        self.port = port
        self.timeout_ms = timeout_ms

    def __call__(self) -> bool:
        try:
            with socket.create_connection((self.host, self.port), timeout=self.timeout_ms / 1000.0):
                return True
        except OSError as e:
            logger.debug(f"TCP probe {self.host}:{self.port} failed: {e}")
            return False


class HttpHealthProbe(ConnectivityProbe):
    """Connected when a GET to the health URL answers with a 2xx status."""

    name = "http"

    def __init__(self, url: str, timeout_ms: int = 1000, session: Optional[requests.Session] = None):
        self.url = url
        self.timeout_ms = timeout_ms
        self.session = session or requests.Session()

    def __call__(self) -> bool:
        try:
            response = self.session.get(self.url, timeout=self.timeout_ms / 1000.0)
        except requests.RequestException as e:
            logger.debug(f"HTTP probe {self.url} failed: {e}")
            return False
        return 200 <= response.status_code < 300


class ProcessAliveProbe(ConnectivityProbe):
    """Connected while the variant's process is found by the inspector."""

    name = "process"

    def __init__(self, inspector: ProcessInspector, pattern: str):
        self.inspector = inspector
        self.pattern = pattern

    def __call__(self) -> bool:
        return self.inspector.find_process(self.pattern)


class RandomProbe(ConnectivityProbe):
    """
    Fixed-probability stand-in for a real connectivity check.

    Reports success with probability `success_rate`. Seed it to make a run
    reproducible.
    """

    name = "random"

    def __init__(self, success_rate: float = 0.7, seed: Optional[int] = None):
        if not 0.0 <= success_rate <= 1.0:
            raise ValueError(f"success_rate must be within [0, 1], got {success_rate}")
        self.success_rate = success_rate
        self._rng = random.Random(seed)

    def __call__(self) -> bool:
        return self._rng.random() < self.success_rate


class ScriptedProbe(ConnectivityProbe):
    """Replays a fixed sequence of outcomes, then returns `default`."""

    name = "scripted"

    def __init__(self, outcomes: Iterable[bool], default: bool = False):
        self._outcomes = iter(outcomes)
        self.default = default
        self.calls = 0

    def __call__(self) -> bool:
        self.calls += 1
        return next(self._outcomes, self.default)


def create_probe(
    config: ResilienceConfig,
    inspector: Optional[ProcessInspector] = None,
    variant: Optional[AppVariant] = None,
) -> ConnectivityProbe:
    """
    Build the probe selected by `config.probe`.

    Raises:
        ValueError: If the probe kind is unknown, or "process" is selected
            without an inspector and variant
    """
    kind = config.probe
    if kind == "tcp":
        return TcpProbe(config.probe_host, config.probe_port, config.probe_timeout_ms)
    if kind == "http":
        return HttpHealthProbe(config.probe_url, config.probe_timeout_ms)
    if kind == "process":
        if inspector is None or variant is None:
            raise ValueError("The 'process' probe needs an inspector and a variant")
        return ProcessAliveProbe(inspector, variant.process_pattern)
    if kind == "random":
        logger.warning("Using the random connectivity probe; results are not real observations")
        return RandomProbe(config.random_success_rate, config.random_seed)
    raise ValueError(f"Unknown connectivity probe: {kind}")
