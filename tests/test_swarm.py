"""Tests for the swarm update algorithm (metaswarm.model.swarm)."""

from __future__ import annotations

import dataclasses
import math
import random
from concurrent.futures import ThreadPoolExecutor

import pytest

from metaswarm.config import OptimizationDirection, VelocityInit
from metaswarm.errors import ConfigurationError
from metaswarm.model.particle import Particle
from metaswarm.model.swarm import Swarm


def _iterate(
    swarm: Swarm, objective, rng: random.Random, steps: int, **kwargs
) -> list[float]:
    history = []
    for _ in range(steps):
        swarm.update_velocities(0.5, 1.0, 3.0, rng=rng)
        swarm.update_positions(objective, **kwargs)
        swarm.update_best_position(objective)
        history.append(swarm.global_best_fitness)
    return history


class TestGenerate:
    """Tests for Swarm.generate."""

    def test_creates_requested_particles(self, swarm: Swarm) -> None:
        """Particle count and dimensionality follow the arguments."""
        assert len(swarm.particles) == 8
        for particle in swarm.particles:
            assert len(particle.position) == 3
            assert len(particle.velocity) == 3
            assert len(particle.best_position) == 3

    def test_positions_within_bounds(self, swarm: Swarm) -> None:
        """Starting positions are drawn from [lower, upper]."""
        for particle in swarm.particles:
            assert all(-5.0 <= x <= 5.0 for x in particle.position)

    def test_random_velocity_within_span(self, swarm: Swarm) -> None:
        """Random velocities lie in [-(upper - lower), upper - lower]."""
        for particle in swarm.particles:
            assert all(-10.0 <= v <= 10.0 for v in particle.velocity)

    def test_zero_velocity_init(self, objective, rng: random.Random) -> None:
        """VelocityInit.ZERO starts every particle at rest."""
        swarm = Swarm.generate(5, 2, -1.0, 1.0, objective, rng=rng, velocity_init=VelocityInit.ZERO)
        assert all(p.velocity == [0.0, 0.0] for p in swarm.particles)

    def test_fitness_matches_objective(self, objective, swarm: Swarm) -> None:
        """Each particle's best fitness is the objective at its best position."""
        for particle in swarm.particles:
            assert particle.best_fitness == objective(particle.best_position)

    def test_global_best_is_min_personal_best(self, swarm: Swarm) -> None:
        """The initial global best is the lowest personal best."""
        best = min(swarm.particles, key=lambda p: p.best_fitness)
        assert swarm.global_best_fitness == best.best_fitness
        assert swarm.global_best_position == best.best_position

    def test_same_seed_same_swarm(self, objective) -> None:
        """Generation is reproducible from a seeded random source."""
        first = Swarm.generate(4, 2, -1.0, 1.0, objective, rng=random.Random(9))
        second = Swarm.generate(4, 2, -1.0, 1.0, objective, rng=random.Random(9))
        assert first.snapshot() == second.snapshot()

    @pytest.mark.parametrize(
        ("particle_count", "dimensions", "lower", "upper"),
        [
            (0, 2, -1.0, 1.0),
            (5, 0, -1.0, 1.0),
            (5, 2, 5.0, -5.0),
            (5, 2, 1.0, 1.0),
            (5, 2, math.nan, 1.0),
            (5, 2, -1.0, math.nan),
            (5, 2, -math.inf, 1.0),
            (5, 2, -math.inf, math.inf),
        ],
    )
    def test_rejects_invalid_arguments(
        self, objective, particle_count: int, dimensions: int, lower: float, upper: float
    ) -> None:
        """Zero counts and inverted, empty or non-finite bounds raise ConfigurationError."""
        with pytest.raises(ConfigurationError):
            Swarm.generate(particle_count, dimensions, lower, upper, objective)

    def test_invalid_arguments_never_call_objective(self) -> None:
        """Validation happens before any particle is evaluated."""
        calls: list[list[float]] = []

        def objective(x):
            calls.append(list(x))
            return 0.0

        with pytest.raises(ConfigurationError):
            Swarm.generate(3, 2, 5.0, -5.0, objective)
        assert calls == []


class TestUpdateBestPosition:
    """Tests for global best tracking."""

    def test_first_particle_wins_ties(self) -> None:
        """Equal personal bests resolve to the earliest particle."""
        particles = [
            Particle.create([3.0], [0.0], 9.0),
            Particle.create([1.0], [0.0], 1.0),
            Particle.create([-1.0], [0.0], 1.0),
        ]
        swarm = Swarm(particles=particles)
        assert swarm.global_best_position == [1.0]
        assert swarm.global_best_fitness == 1.0

    def test_equal_fitness_does_not_replace_global_best(self) -> None:
        """A later particle matching the global best does not displace it."""
        swarm = Swarm(particles=[Particle.create([2.0], [0.0], 4.0)])
        swarm.particles.append(Particle.create([-2.0], [0.0], 4.0))
        assert swarm.update_best_position() is False
        assert swarm.global_best_position == [2.0]

    def test_only_refreshed_by_update_best_position(self, objective, swarm: Swarm, rng) -> None:
        """Moving particles leaves the global best untouched until rescanned."""
        before = (list(swarm.global_best_position), swarm.global_best_fitness)
        swarm.update_velocities(0.5, 1.0, 3.0, rng=rng)
        swarm.update_positions(objective)
        assert (swarm.global_best_position, swarm.global_best_fitness) == before

        swarm.update_best_position(objective)
        assert swarm.global_best_fitness == min(p.best_fitness for p in swarm.particles)

    def test_maximize_tracks_highest(self, objective, rng: random.Random) -> None:
        """With MAXIMIZE the global best is the largest personal best."""
        swarm = Swarm.generate(
            6, 2, -3.0, 3.0, objective, rng=rng, direction=OptimizationDirection.MAXIMIZE
        )
        assert swarm.global_best_fitness == max(p.best_fitness for p in swarm.particles)

    def test_nan_objective_never_becomes_best(self, objective, rng: random.Random) -> None:
        """Particles reporting NaN do not displace a real global best."""
        swarm = Swarm.generate(5, 2, -3.0, 3.0, objective, rng=rng)
        best = swarm.global_best_fitness

        swarm.update_velocities(0.5, 1.0, 3.0, rng=rng)
        swarm.update_positions(lambda x: math.nan)
        swarm.update_best_position()

        assert swarm.global_best_fitness == best
        assert all(not math.isnan(p.best_fitness) for p in swarm.particles)


class TestIteration:
    """Tests for full update passes."""

    def test_global_best_is_monotonic(
        self, objective, swarm: Swarm, rng: random.Random
    ) -> None:
        """Global best fitness never gets worse between iterations."""
        history = [swarm.global_best_fitness, *_iterate(swarm, objective, rng, 60)]
        assert all(b <= a for a, b in zip(history, history[1:]))

    def test_dimensions_preserved(self, objective, swarm: Swarm, rng: random.Random) -> None:
        """Vectors keep their length through updates."""
        _iterate(swarm, objective, rng, 10)
        for particle in swarm.particles:
            assert len(particle.position) == len(particle.velocity) == 3

    def test_personal_best_matches_objective(
        self, objective, swarm: Swarm, rng: random.Random
    ) -> None:
        """best_fitness stays equal to the objective at best_position."""
        _iterate(swarm, objective, rng, 15)
        for particle in swarm.particles:
            assert particle.best_fitness == objective(particle.best_position)

    def test_clamped_positions_stay_in_bounds(
        self, objective, swarm: Swarm, rng: random.Random
    ) -> None:
        """Bounds passed to update_positions keep particles inside the box."""
        _iterate(swarm, objective, rng, 20, bounds=(-5.0, 5.0))
        for particle in swarm.particles:
            assert all(-5.0 <= x <= 5.0 for x in particle.position)

    def test_executor_matches_sequential(self, objective) -> None:
        """Parallel evaluation yields exactly the sequential result."""
        sequential = Swarm.generate(10, 4, -5.0, 5.0, objective, rng=random.Random(21))
        parallel = Swarm.generate(10, 4, -5.0, 5.0, objective, rng=random.Random(21))

        _iterate(sequential, objective, random.Random(22), 25)
        with ThreadPoolExecutor(max_workers=4) as executor:
            _iterate(parallel, objective, random.Random(22), 25, executor=executor)

        assert sequential.snapshot() == parallel.snapshot()


class TestSnapshot:
    """Tests for read-only swarm snapshots."""

    def test_snapshot_is_frozen(self, swarm: Swarm) -> None:
        """Snapshots reject attribute assignment."""
        snapshot = swarm.snapshot()
        with pytest.raises(dataclasses.FrozenInstanceError):
            snapshot.global_best_fitness = 0.0  # type: ignore[misc]
        with pytest.raises(dataclasses.FrozenInstanceError):
            snapshot.particles[0].fitness = 0.0  # type: ignore[misc]

    def test_snapshot_is_detached(self, objective, swarm: Swarm, rng: random.Random) -> None:
        """Later swarm updates do not leak into an earlier snapshot."""
        snapshot = swarm.snapshot()
        positions = [p.position for p in snapshot.particles]
        _iterate(swarm, objective, rng, 3)
        assert [p.position for p in snapshot.particles] == positions
        assert isinstance(snapshot.particles[0].position, tuple)

    def test_mean_fitness(self, swarm: Swarm) -> None:
        """mean_fitness averages the particles' current fitness."""
        snapshot = swarm.snapshot()
        expected = sum(p.fitness for p in swarm.particles) / len(swarm.particles)
        assert snapshot.mean_fitness == pytest.approx(expected)

    def test_snapshot_records_iteration(self, swarm: Swarm) -> None:
        """The completed-iteration count is carried on the snapshot."""
        assert swarm.snapshot().iteration == 0
        assert swarm.snapshot(25).iteration == 25
