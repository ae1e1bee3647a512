"""Probe that prints run progress to a text stream."""

from __future__ import annotations

import sys
from typing import TYPE_CHECKING, TextIO

if TYPE_CHECKING:
    from collections.abc import Sequence

    from metaswarm.model.swarm import SwarmSnapshot


def _format_vector(values: Sequence[float], precision: int) -> str:
    return "[" + ", ".join(f"{v:.{precision}f}" for v in values) + "]"


class ConsoleProbe:
    """Writes one human-readable line per lifecycle event.

    Args:
        stream: Destination stream. Defaults to stdout at call time, so
            pytest's capsys and redirected stdout are honoured.
        precision: Decimal places used for positions.
        show_particles: Also print every particle at begin and end.
    """

    name = "console"

    def __init__(
        self,
        stream: TextIO | None = None,
        precision: int = 6,
        show_particles: bool = False,
    ) -> None:
        self._stream = stream
        self.precision = precision
        self.show_particles = show_particles

    @property
    def stream(self) -> TextIO:
        return self._stream if self._stream is not None else sys.stdout

    def _write(self, line: str) -> None:
        self.stream.write(line + "\n")

    def _describe_best(self, snapshot: SwarmSnapshot) -> str:
        return (
            f"best fitness {snapshot.global_best_fitness:.6g} at "
            f"{_format_vector(snapshot.global_best_position, self.precision)}"
        )

    def _write_particles(self, snapshot: SwarmSnapshot) -> None:
        for index, particle in enumerate(snapshot.particles):
            self._write(
                f"  particle {index}: position "
                f"{_format_vector(particle.position, self.precision)} "
                f"fitness {particle.fitness:.6g}"
            )

    def on_begin(self, snapshot: SwarmSnapshot) -> None:
        self._write(
            f"Optimization started with {len(snapshot.particles)} particles, "
            f"{self._describe_best(snapshot)}"
        )
        if self.show_particles:
            self._write_particles(snapshot)

    def on_new_generation(self, snapshot: SwarmSnapshot, iteration: int) -> None:
        self._write(
            f"Iteration {iteration}: {self._describe_best(snapshot)}, "
            f"mean fitness {snapshot.mean_fitness:.6g}"
        )

    def on_end(self, snapshot: SwarmSnapshot) -> None:
        self._write(
            f"Optimization finished after {snapshot.iteration} iterations, "
            f"{self._describe_best(snapshot)}"
        )
        if self.show_particles:
            self._write_particles(snapshot)
        self.stream.flush()
