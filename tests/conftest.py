"""Shared fixtures for metaswarm tests."""

from __future__ import annotations

import logging
import random
from collections.abc import Sequence

import pytest

from metaswarm.model.swarm import Swarm, SwarmSnapshot


def sphere(x: Sequence[float]) -> float:
    """Sum of squares; minimum 0 at the origin."""
    return sum(v * v for v in x)


class RecordingProbe:
    """Probe double that appends every call to a (possibly shared) log."""

    def __init__(self, name: str, log: list[tuple[str, str, int | None]] | None = None) -> None:
        self.name = name
        self.log = log if log is not None else []
        self.snapshots: list[SwarmSnapshot] = []

    def on_begin(self, snapshot: SwarmSnapshot) -> None:
        self.log.append((self.name, "on_begin", None))
        self.snapshots.append(snapshot)

    def on_new_generation(self, snapshot: SwarmSnapshot, iteration: int) -> None:
        self.log.append((self.name, "on_new_generation", iteration))
        self.snapshots.append(snapshot)

    def on_end(self, snapshot: SwarmSnapshot) -> None:
        self.log.append((self.name, "on_end", None))
        self.snapshots.append(snapshot)

    def calls(self, event: str) -> list[tuple[str, str, int | None]]:
        return [entry for entry in self.log if entry[0] == self.name and entry[1] == event]


@pytest.fixture
def objective():
    """Sphere objective function."""
    return sphere


@pytest.fixture
def probe_factory() -> type[RecordingProbe]:
    """RecordingProbe class; call it with a name and an optional shared log."""
    return RecordingProbe


@pytest.fixture
def rng() -> random.Random:
    """Seeded random source."""
    return random.Random(1234)


@pytest.fixture
def swarm(rng: random.Random) -> Swarm:
    """Small seeded swarm on the sphere function."""
    return Swarm.generate(8, 3, -5.0, 5.0, sphere, rng=rng)


@pytest.fixture
def snapshot(swarm: Swarm) -> SwarmSnapshot:
    """Snapshot of the seeded swarm."""
    return swarm.snapshot()


@pytest.fixture(autouse=True)
def reset_metaswarm_logger():
    """Undo configure_logging() so caplog sees metaswarm records."""
    yield
    logger = logging.getLogger("metaswarm")
    logger.handlers.clear()
    logger.setLevel(logging.NOTSET)
    logger.propagate = True
