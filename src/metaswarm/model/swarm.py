"""Swarm: the particle population and the PSO update algorithm."""

from __future__ import annotations

import logging
import math
import random
from dataclasses import dataclass, field
from typing import TYPE_CHECKING

from metaswarm.config import ObjectiveFunction, OptimizationDirection, VelocityInit
from metaswarm.errors import ConfigurationError
from metaswarm.model.particle import Particle, is_improvement

if TYPE_CHECKING:
    from concurrent.futures import Executor

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ParticleSnapshot:
    """Read-only copy of one particle's state."""

    position: tuple[float, ...]
    velocity: tuple[float, ...]
    fitness: float
    best_position: tuple[float, ...]
    best_fitness: float


@dataclass(frozen=True)
class SwarmSnapshot:
    """Read-only copy of the swarm handed to probes.

    ``iteration`` counts the iterations completed when the copy was taken.
    """

    particles: tuple[ParticleSnapshot, ...]
    global_best_position: tuple[float, ...]
    global_best_fitness: float
    direction: OptimizationDirection = OptimizationDirection.MINIMIZE
    iteration: int = 0

    @property
    def mean_fitness(self) -> float:
        return sum(p.fitness for p in self.particles) / len(self.particles)


@dataclass
class Swarm:
    """Ordered particle population plus the best solution any of them found.

    Particle order is fixed for the run and is the order used for tie-breaks
    and for display.
    """

    particles: list[Particle]
    global_best_position: list[float] = field(default_factory=list)
    global_best_fitness: float = float("nan")
    direction: OptimizationDirection = OptimizationDirection.MINIMIZE

    def __post_init__(self) -> None:
        if not self.global_best_position and self.particles:
            self.update_best_position()

    @classmethod
    def generate(
        cls,
        particle_count: int,
        dimensions: int,
        lower_bound: float,
        upper_bound: float,
        objective: ObjectiveFunction,
        *,
        rng: random.Random | None = None,
        direction: OptimizationDirection = OptimizationDirection.MINIMIZE,
        velocity_init: VelocityInit = VelocityInit.RANDOM,
    ) -> Swarm:
        """Create a swarm with particles spread uniformly over the bounds.

        Args:
            particle_count: Number of particles.
            dimensions: Length of every position vector.
            lower_bound: Lower bound of the initial area in every dimension.
            upper_bound: Upper bound of the initial area in every dimension.
            objective: Function evaluated at each starting position.
            rng: Random source. A fresh unseeded one is used if omitted.
            direction: Whether lower or higher fitness is better.
            velocity_init: Random velocities within the bound span, or zero.

        Returns:
            Swarm: New swarm with its global best already computed.

        Raises:
            ConfigurationError: If a count is zero or the bounds are inverted
                or not finite.
        """
        if particle_count <= 0:
            raise ConfigurationError(f"particle_count must be positive, got {particle_count}")
        if dimensions <= 0:
            raise ConfigurationError(f"dimensions must be positive, got {dimensions}")
        if not (math.isfinite(lower_bound) and math.isfinite(upper_bound)):
            raise ConfigurationError(
                f"bounds must be finite numbers, got [{lower_bound}, {upper_bound}]"
            )
        if lower_bound >= upper_bound:
            raise ConfigurationError(
                f"lower_bound ({lower_bound}) must be less than upper_bound ({upper_bound})"
            )

        if rng is None:
            rng = random.Random()
        span = upper_bound - lower_bound

        particles: list[Particle] = []
        for _ in range(particle_count):
            position = [rng.uniform(lower_bound, upper_bound) for _ in range(dimensions)]
            if velocity_init == VelocityInit.ZERO:
                velocity = [0.0] * dimensions
            else:
                velocity = [rng.uniform(-span, span) for _ in range(dimensions)]
            particles.append(Particle.create(position, velocity, objective(position)))

        swarm = cls(particles=particles, direction=direction)
        logger.debug(
            "Generated swarm of %d particles in %d dimensions, initial best %s",
            particle_count,
            dimensions,
            swarm.global_best_fitness,
        )
        return swarm

    def update_velocities(
        self,
        inertia: float,
        cognitive: float,
        social: float,
        *,
        rng: random.Random,
        velocity_clamp: float | None = None,
    ) -> None:
        """Recompute every particle's velocity against one global-best snapshot."""
        global_best = tuple(self.global_best_position)
        for particle in self.particles:
            particle.update_velocity(
                inertia, cognitive, social, global_best, rng, clamp=velocity_clamp
            )

    def update_positions(
        self,
        objective: ObjectiveFunction,
        *,
        bounds: tuple[float, float] | None = None,
        executor: Executor | None = None,
    ) -> None:
        """Move every particle, evaluate it and refresh its personal best.

        With an ``executor`` the objective calls run concurrently; results are
        written back by particle index, so the outcome matches sequential
        evaluation.
        """
        for particle in self.particles:
            particle.move(bounds)

        positions = [list(p.position) for p in self.particles]
        if executor is None:
            fitnesses = [objective(position) for position in positions]
        else:
            fitnesses = list(executor.map(objective, positions))

        for particle, fitness in zip(self.particles, fitnesses, strict=True):
            particle.record_fitness(fitness, self.direction)

    def update_best_position(self, objective: ObjectiveFunction | None = None) -> bool:
        """Promote the best personal best to global best if it improves on it.

        Scans particles in order with a strict comparison, so the first
        particle wins ties. ``objective`` is accepted for call symmetry with
        the other update steps; cached personal-best fitness is used.

        Returns:
            True if the global best changed.
        """
        best: Particle | None = None
        incumbent = self.global_best_fitness
        for particle in self.particles:
            if is_improvement(particle.best_fitness, incumbent, self.direction):
                best = particle
                incumbent = particle.best_fitness

        if best is None:
            if not self.global_best_position and self.particles:
                first = self.particles[0]
                self.global_best_position = list(first.best_position)
                self.global_best_fitness = first.best_fitness
            return False

        self.global_best_position = list(best.best_position)
        self.global_best_fitness = best.best_fitness
        return True

    def snapshot(self, iteration: int = 0) -> SwarmSnapshot:
        """Return an immutable copy of the current state.

        ``iteration`` is the number of completed iterations the copy reflects.
        """
        return SwarmSnapshot(
            particles=tuple(
                ParticleSnapshot(
                    position=tuple(p.position),
                    velocity=tuple(p.velocity),
                    fitness=p.fitness,
                    best_position=tuple(p.best_position),
                    best_fitness=p.best_fitness,
                )
                for p in self.particles
            ),
            global_best_position=tuple(self.global_best_position),
            global_best_fitness=self.global_best_fitness,
            direction=self.direction,
            iteration=iteration,
        )
