"""Run configuration for the particle swarm engine.

``PSOConfig`` is the validated, immutable description of one run.
``PSOSettings`` loads the numeric knobs from ``PSO_*`` environment variables
(or a .env file) and turns them into a ``PSOConfig`` once the caller supplies
the objective function and probe.
"""

from __future__ import annotations

import logging
import random
from collections.abc import Callable, Sequence
from enum import StrEnum
from functools import lru_cache
from typing import Any

from pydantic import (
    BaseModel,
    ConfigDict,
    Field,
    PositiveFloat,
    ValidationError,
    field_validator,
    model_validator,
)
from pydantic_settings import BaseSettings, SettingsConfigDict

from metaswarm.errors import ConfigurationError
from metaswarm.probes.base import Probe

logger = logging.getLogger(__name__)

ObjectiveFunction = Callable[[Sequence[float]], float]


class OptimizationDirection(StrEnum):
    """Whether lower or higher objective values are better."""

    MINIMIZE = "minimize"
    MAXIMIZE = "maximize"


class VelocityInit(StrEnum):
    """How particle velocities are seeded when a swarm is generated."""

    RANDOM = "random"  # U[-(upper - lower), upper - lower]
    ZERO = "zero"


class PSOConfig(BaseModel):
    """Immutable configuration of a single PSO run.

    Any invalid value raises ``ConfigurationError`` instead of pydantic's
    ``ValidationError``, so callers only deal with one error type.

    Example:
        >>> config = PSOConfig(objective_function=lambda x: sum(v * v for v in x))
        >>> config.particle_count
        30
    """

    model_config = ConfigDict(frozen=True, arbitrary_types_allowed=True)

    # Search space
    dimensions: int = Field(default=2, gt=0, description="Dimensionality of the domain")
    lower_bound: float = Field(
        default=-10.0, allow_inf_nan=False, description="Lower bound of the initial area"
    )
    upper_bound: float = Field(
        default=10.0, allow_inf_nan=False, description="Upper bound of the initial area"
    )

    # Swarm
    particle_count: int = Field(default=30, gt=0, description="Particles kept for the whole run")
    inertia_weight: float = Field(default=0.5, description="Velocity retained per iteration")
    cognitive_coefficient: float = Field(default=1.0, description="Pull toward personal best")
    social_coefficient: float = Field(default=3.0, description="Pull toward global best")

    # Run
    objective_function: ObjectiveFunction = Field(description="Function being optimized")
    iterations: int = Field(default=500, ge=0, description="Number of iterations to run")
    notification_interval: int = Field(
        default=10, gt=0, description="Iterations between on_new_generation calls"
    )
    probe: Any = Field(default=None, description="Probe notified of lifecycle events")

    # Behaviour knobs
    direction: OptimizationDirection = OptimizationDirection.MINIMIZE
    velocity_init: VelocityInit = VelocityInit.RANDOM
    velocity_clamp: PositiveFloat | None = Field(
        default=None, description="Per-dimension velocity magnitude limit"
    )
    clamp_positions: bool = Field(
        default=False, description="Keep positions inside [lower_bound, upper_bound]"
    )
    seed: int | None = Field(default=None, description="Seed for the run's random source")
    rng: random.Random | None = Field(default=None, description="Explicit random source")
    workers: int = Field(default=1, ge=1, description="Threads used for objective evaluation")

    def __init__(self, **data: Any) -> None:
        try:
            super().__init__(**data)
        except ValidationError as exc:
            raise ConfigurationError(f"Invalid PSO configuration: {exc}") from exc

    @field_validator("probe")
    @classmethod
    def check_probe(cls, v: Any) -> Any:
        if v is not None and not isinstance(v, Probe):
            raise ValueError(f"{type(v).__name__} does not implement the Probe protocol")
        return v

    @model_validator(mode="after")
    def check_bounds(self) -> PSOConfig:
        if self.lower_bound >= self.upper_bound:
            raise ValueError(
                f"lower_bound ({self.lower_bound}) must be less than "
                f"upper_bound ({self.upper_bound})"
            )
        return self

    def make_rng(self) -> random.Random:
        """Return the run's random source: ``rng`` if given, else seeded from ``seed``."""
        if self.rng is not None:
            return self.rng
        return random.Random(self.seed)

    @property
    def bounds(self) -> tuple[float, float]:
        return (self.lower_bound, self.upper_bound)


class PSOSettings(BaseSettings):
    """Numeric PSO parameters loaded from the environment.

    Environment Variables:
        PSO_DIMENSIONS, PSO_LOWER_BOUND, PSO_UPPER_BOUND, PSO_PARTICLE_COUNT,
        PSO_INERTIA_WEIGHT, PSO_COGNITIVE_COEFFICIENT, PSO_SOCIAL_COEFFICIENT,
        PSO_ITERATIONS, PSO_NOTIFICATION_INTERVAL, PSO_DIRECTION,
        PSO_VELOCITY_INIT, PSO_VELOCITY_CLAMP, PSO_CLAMP_POSITIONS, PSO_SEED,
        PSO_WORKERS

    Example:
        >>> settings = PSOSettings()
        >>> config = settings.to_config(sphere, probe=ConsoleProbe())
    """

    model_config = SettingsConfigDict(
        env_prefix="PSO_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    dimensions: int = 2
    lower_bound: float = -10.0
    upper_bound: float = 10.0
    particle_count: int = 30
    inertia_weight: float = 0.5
    cognitive_coefficient: float = 1.0
    social_coefficient: float = 3.0
    iterations: int = 500
    notification_interval: int = 10
    direction: OptimizationDirection = OptimizationDirection.MINIMIZE
    velocity_init: VelocityInit = VelocityInit.RANDOM
    velocity_clamp: float | None = None
    clamp_positions: bool = False
    seed: int | None = None
    workers: int = 1

    @field_validator("direction", "velocity_init", mode="before")
    @classmethod
    def normalize_enum(cls, v: Any) -> Any:
        """Accept enum values in any letter case."""
        if isinstance(v, str):
            return v.lower()
        return v

    def to_config(
        self,
        objective_function: ObjectiveFunction,
        probe: Probe | None = None,
        **overrides: Any,
    ) -> PSOConfig:
        """Build a validated ``PSOConfig`` from these settings.

        Raises:
            ConfigurationError: If the combined values are invalid.
        """
        values = self.model_dump()
        values.update(overrides)
        return PSOConfig(objective_function=objective_function, probe=probe, **values)


@lru_cache
def get_pso_settings() -> PSOSettings:
    """Load settings once; call ``get_pso_settings.cache_clear()`` to reload."""
    settings = PSOSettings()
    logger.info("Loaded PSO settings: %s", settings)
    return settings
