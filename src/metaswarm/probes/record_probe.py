"""Probes that collect structured records and persist them in one write.

Records accumulate in memory during the run; ``on_end`` performs a single
bulk write to the sink. Sink failures surface as ``ProbeDeliveryError``.
"""

from __future__ import annotations

import csv
import json
import logging
from abc import ABC, abstractmethod
from enum import StrEnum
from pathlib import Path
from typing import TYPE_CHECKING

from pydantic import BaseModel, Field

from metaswarm.errors import ProbeDeliveryError

if TYPE_CHECKING:
    from metaswarm.model.swarm import SwarmSnapshot

logger = logging.getLogger(__name__)


class RecordEvent(StrEnum):
    """Lifecycle event a record was captured on."""

    BEGIN = "begin"
    GENERATION = "generation"
    END = "end"


class ParticleRecord(BaseModel):
    """State of one particle at a recorded point of the run."""

    index: int = Field(description="Position of the particle in the swarm")
    position: list[float]
    velocity: list[float]
    fitness: float
    best_position: list[float]
    best_fitness: float


class GenerationRecord(BaseModel):
    """Swarm summary captured on a lifecycle event.

    Attributes:
        event: Which lifecycle event produced the record.
        iteration: Completed iterations (0 on begin).
        global_best_fitness: Best fitness found so far.
        global_best_position: Where that fitness was found.
        mean_fitness: Mean of the particles' current fitness.
        particles: Per-particle state, only kept when requested.
    """

    event: RecordEvent
    iteration: int = Field(ge=0)
    global_best_fitness: float
    global_best_position: list[float]
    mean_fitness: float
    particles: list[ParticleRecord] = Field(default_factory=list)

    @classmethod
    def from_snapshot(
        cls,
        snapshot: SwarmSnapshot,
        event: RecordEvent,
        iteration: int,
        include_particles: bool = False,
    ) -> GenerationRecord:
        particles = []
        if include_particles:
            particles = [
                ParticleRecord(
                    index=index,
                    position=list(p.position),
                    velocity=list(p.velocity),
                    fitness=p.fitness,
                    best_position=list(p.best_position),
                    best_fitness=p.best_fitness,
                )
                for index, p in enumerate(snapshot.particles)
            ]
        return cls(
            event=event,
            iteration=iteration,
            global_best_fitness=snapshot.global_best_fitness,
            global_best_position=list(snapshot.global_best_position),
            mean_fitness=snapshot.mean_fitness,
            particles=particles,
        )


class RecordProbe(ABC):
    """Base class for probes that buffer records and flush them at the end.

    Subclasses implement ``write``; any exception it raises is re-raised as
    ``ProbeDeliveryError`` so the fan-out and the engine treat it uniformly.
    """

    name = "records"
    include_particles = False

    def __init__(self) -> None:
        self.records: list[GenerationRecord] = []

    def _capture(self, snapshot: SwarmSnapshot, event: RecordEvent, iteration: int) -> None:
        self.records.append(
            GenerationRecord.from_snapshot(snapshot, event, iteration, self.include_particles)
        )

    def on_begin(self, snapshot: SwarmSnapshot) -> None:
        self.records = []
        self._capture(snapshot, RecordEvent.BEGIN, snapshot.iteration)

    def on_new_generation(self, snapshot: SwarmSnapshot, iteration: int) -> None:
        self._capture(snapshot, RecordEvent.GENERATION, iteration)

    def on_end(self, snapshot: SwarmSnapshot) -> None:
        self._capture(snapshot, RecordEvent.END, snapshot.iteration)
        self.flush()

    def flush(self) -> None:
        """Write all buffered records to the sink.

        Raises:
            ProbeDeliveryError: If the sink rejects the write.
        """
        try:
            self.write(self.records)
        except Exception as exc:
            raise ProbeDeliveryError(
                f"{self.name} probe could not persist {len(self.records)} records: {exc}",
                [(self.name, exc)],
            ) from exc
        logger.debug("%s probe wrote %d records", self.name, len(self.records))

    @abstractmethod
    def write(self, records: list[GenerationRecord]) -> None:
        """Persist ``records`` in one operation."""


class CsvProbe(RecordProbe):
    """Writes one CSV row per record: event, iteration, fitness and best position.

    Position coordinates get one column each, named ``x0`` to ``x{n-1}``.
    """

    name = "csv"

    def __init__(self, path: str | Path) -> None:
        super().__init__()
        self.path = Path(path)

    def write(self, records: list[GenerationRecord]) -> None:
        dimensions = len(records[0].global_best_position) if records else 0
        header = ["event", "iteration", "global_best_fitness", "mean_fitness"]
        header += [f"x{i}" for i in range(dimensions)]

        with self.path.open("w", newline="", encoding="utf-8") as f:
            writer = csv.writer(f)
            writer.writerow(header)
            for record in records:
                writer.writerow(
                    [
                        record.event.value,
                        record.iteration,
                        record.global_best_fitness,
                        record.mean_fitness,
                        *record.global_best_position,
                    ]
                )


class JsonProbe(RecordProbe):
    """Writes every record, including per-particle state, as one JSON document."""

    name = "json"
    include_particles = True

    def __init__(self, path: str | Path, indent: int | None = 2) -> None:
        super().__init__()
        self.path = Path(path)
        self.indent = indent

    def write(self, records: list[GenerationRecord]) -> None:
        document = {"records": [record.model_dump(mode="json") for record in records]}
        self.path.write_text(json.dumps(document, indent=self.indent), encoding="utf-8")
