"""Particle dataclass: one candidate solution moving through the search space."""

from __future__ import annotations

import math
import random
from collections.abc import Sequence
from dataclasses import dataclass

from metaswarm.config import OptimizationDirection


def is_improvement(
    candidate: float,
    incumbent: float,
    direction: OptimizationDirection = OptimizationDirection.MINIMIZE,
) -> bool:
    """Return True if ``candidate`` is strictly better than ``incumbent``.

    A NaN candidate never improves anything. A NaN incumbent is replaced by
    any non-NaN candidate.
    """
    if math.isnan(candidate):
        return False
    if math.isnan(incumbent):
        return True
    if direction == OptimizationDirection.MAXIMIZE:
        return candidate > incumbent
    return candidate < incumbent


@dataclass
class Particle:
    """A candidate solution with its velocity and personal best.

    Invariants: ``position``, ``velocity`` and ``best_position`` share one
    length, and ``best_fitness`` is the objective value at ``best_position``.
    """

    position: list[float]
    velocity: list[float]
    fitness: float  # objective value at position
    best_position: list[float]
    best_fitness: float

    @classmethod
    def create(
        cls,
        position: Sequence[float],
        velocity: Sequence[float],
        fitness: float,
    ) -> Particle:
        """Create a particle whose personal best is its starting point."""
        return cls(
            position=list(position),
            velocity=list(velocity),
            fitness=fitness,
            best_position=list(position),
            best_fitness=fitness,
        )

    @property
    def dimensions(self) -> int:
        return len(self.position)

    def update_velocity(
        self,
        inertia: float,
        cognitive: float,
        social: float,
        global_best: Sequence[float],
        rng: random.Random,
        clamp: float | None = None,
    ) -> None:
        """Recompute velocity from inertia, personal best and global best.

        ``r1`` and ``r2`` are drawn once per call, so the random scaling is
        shared across dimensions of this particle.

        Args:
            inertia: Fraction of the previous velocity retained.
            cognitive: Pull toward this particle's best position.
            social: Pull toward the swarm's best position.
            global_best: Frozen global best for the current iteration.
            rng: Random source for the run.
            clamp: Optional per-dimension magnitude limit.
        """
        r1 = rng.random()
        r2 = rng.random()
        velocity = [
            inertia * v + cognitive * r1 * (pb - x) + social * r2 * (gb - x)
            for v, x, pb, gb in zip(
                self.velocity, self.position, self.best_position, global_best, strict=True
            )
        ]
        if clamp is not None:
            velocity = [max(-clamp, min(clamp, v)) for v in velocity]
        self.velocity = velocity

    def move(self, bounds: tuple[float, float] | None = None) -> None:
        """Add velocity to position; clamp into ``bounds`` only when given."""
        position = [x + v for x, v in zip(self.position, self.velocity, strict=True)]
        if bounds is not None:
            lower, upper = bounds
            position = [max(lower, min(upper, x)) for x in position]
        self.position = position

    def record_fitness(
        self,
        fitness: float,
        direction: OptimizationDirection = OptimizationDirection.MINIMIZE,
    ) -> bool:
        """Store fitness at the current position and update the personal best.

        Returns:
            True if the personal best was overwritten.
        """
        self.fitness = fitness
        if is_improvement(fitness, self.best_fitness, direction):
            self.best_position = list(self.position)
            self.best_fitness = fitness
            return True
        return False
