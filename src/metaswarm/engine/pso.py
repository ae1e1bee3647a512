"""Particle swarm optimization engine: drives the swarm and notifies probes."""

from __future__ import annotations

import logging
import time
from collections.abc import Callable
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass, field
from enum import StrEnum
from typing import TYPE_CHECKING

from metaswarm.errors import EngineStateError, ProbeDeliveryError
from metaswarm.model.swarm import Swarm
from metaswarm.probes.base import probe_name

if TYPE_CHECKING:
    import threading

    from metaswarm.config import PSOConfig
    from metaswarm.model.swarm import SwarmSnapshot
    from metaswarm.probes.base import Probe

logger = logging.getLogger(__name__)


class EngineState(StrEnum):
    """Lifecycle of a PSOAlgorithm instance."""

    CREATED = "created"
    RUNNING = "running"
    COMPLETED = "completed"
    FAILED = "failed"


@dataclass
class PSOResult:
    """Outcome of one engine run.

    Attributes:
        best_position: Global best position at the end of the run.
        best_fitness: Objective value at ``best_position``.
        iterations_run: Iterations actually performed.
        cancelled: True if the run was stopped early through ``stop_event``.
        probe_errors: Delivery failures reported by probes, in order.
        history: Global best fitness after each iteration.
        elapsed: Wall-clock duration of ``execute`` in seconds.
    """

    best_position: list[float]
    best_fitness: float
    iterations_run: int
    cancelled: bool = False
    probe_errors: list[ProbeDeliveryError] = field(default_factory=list)
    history: list[float] = field(default_factory=list)
    elapsed: float = 0.0


class PSOAlgorithm:
    """Runs particle swarm optimization for a fixed number of iterations.

    The swarm is generated on construction, so configuration problems surface
    before anything runs. ``execute`` may be called once.

    Each iteration updates all velocities against the previous iteration's
    global best, then moves and evaluates every particle, then refreshes the
    global best. Probes see a snapshot every ``notification_interval``
    iterations.

    Example:
        >>> config = PSOConfig(objective_function=sphere, seed=7, probe=ConsoleProbe())
        >>> result = PSOAlgorithm(config).execute()
        >>> result.best_fitness < 1e-3
        True
    """

    def __init__(self, config: PSOConfig) -> None:
        self.config = config
        self._rng = config.make_rng()
        self._state = EngineState.CREATED
        self.swarm = Swarm.generate(
            config.particle_count,
            config.dimensions,
            config.lower_bound,
            config.upper_bound,
            config.objective_function,
            rng=self._rng,
            direction=config.direction,
            velocity_init=config.velocity_init,
        )

    @property
    def state(self) -> EngineState:
        return self._state

    @property
    def probe(self) -> Probe | None:
        return self.config.probe

    def execute(self, stop_event: threading.Event | None = None) -> PSOResult:
        """Run the optimization loop.

        Args:
            stop_event: Optional event checked between iterations; when set
                the loop stops early and ``on_end`` is still delivered.

        Returns:
            PSOResult: Best solution found plus run metadata.

        Raises:
            EngineStateError: If the engine has already been executed.
        """
        if self._state != EngineState.CREATED:
            msg = f"execute() can only be called once (engine is {self._state})"
            raise EngineStateError(msg)
        self._state = EngineState.RUNNING

        config = self.config
        result = PSOResult(
            best_position=list(self.swarm.global_best_position),
            best_fitness=self.swarm.global_best_fitness,
            iterations_run=0,
        )
        started = time.perf_counter()
        logger.info(
            "Starting PSO: %d particles, %d dimensions, %d iterations",
            config.particle_count,
            config.dimensions,
            config.iterations,
        )

        try:
            self._notify("on_begin", lambda p, s: p.on_begin(s), result)
            self._run_iterations(result, stop_event)
            self._notify("on_end", lambda p, s: p.on_end(s), result)
        except Exception:
            self._state = EngineState.FAILED
            logger.exception("PSO run failed after %d iterations", result.iterations_run)
            raise

        result.best_position = list(self.swarm.global_best_position)
        result.best_fitness = self.swarm.global_best_fitness
        result.elapsed = time.perf_counter() - started
        self._state = EngineState.COMPLETED

        logger.info(
            "PSO finished: best fitness %s after %d iterations (%.3fs)%s",
            result.best_fitness,
            result.iterations_run,
            result.elapsed,
            " [cancelled]" if result.cancelled else "",
        )
        if result.probe_errors:
            logger.warning("%d probe delivery error(s) during run", len(result.probe_errors))
        return result

    def _run_iterations(self, result: PSOResult, stop_event: threading.Event | None) -> None:
        config = self.config
        bounds = config.bounds if config.clamp_positions else None
        executor = (
            ThreadPoolExecutor(max_workers=config.workers, thread_name_prefix="pso_eval")
            if config.workers > 1
            else None
        )

        try:
            for iteration in range(config.iterations):
                if stop_event is not None and stop_event.is_set():
                    result.cancelled = True
                    logger.info("Stop requested, halting after %d iterations", iteration)
                    break

                self.swarm.update_velocities(
                    config.inertia_weight,
                    config.cognitive_coefficient,
                    config.social_coefficient,
                    rng=self._rng,
                    velocity_clamp=config.velocity_clamp,
                )
                self.swarm.update_positions(
                    config.objective_function, bounds=bounds, executor=executor
                )
                self.swarm.update_best_position(config.objective_function)

                completed = iteration + 1
                result.iterations_run = completed
                result.history.append(self.swarm.global_best_fitness)

                if completed % config.notification_interval == 0:
                    logger.debug(
                        "Iteration complete",
                        extra={
                            "iteration": completed,
                            "best_fitness": self.swarm.global_best_fitness,
                        },
                    )
                    self._notify(
                        "on_new_generation",
                        lambda p, s, n=completed: p.on_new_generation(s, n),
                        result,
                    )
        finally:
            if executor is not None:
                executor.shutdown(wait=True)

    def _notify(
        self,
        event: str,
        deliver: Callable[[Probe, SwarmSnapshot], None],
        result: PSOResult,
    ) -> None:
        """Deliver one event to the probe, recording delivery failures."""
        probe = self.config.probe
        if probe is None:
            return
        try:
            deliver(probe, self.swarm.snapshot(result.iterations_run))
        except ProbeDeliveryError as exc:
            logger.warning("Probe delivery failed on %s: %s", event, exc)
            result.probe_errors.append(exc)
        except Exception as exc:
            name = probe_name(probe)
            logger.exception("Probe %s raised during %s", name, event)
            result.probe_errors.append(
                ProbeDeliveryError(f"{name} failed on {event}: {exc}", [(name, exc)])
            )
