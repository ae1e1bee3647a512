"""Probes: observers of optimization runs (console, structured records, fan-out)."""

from metaswarm.probes.base import Probe, probe_name
from metaswarm.probes.console_probe import ConsoleProbe
from metaswarm.probes.multi_probe import MultiProbe
from metaswarm.probes.record_probe import (
    CsvProbe,
    GenerationRecord,
    JsonProbe,
    ParticleRecord,
    RecordEvent,
    RecordProbe,
)

__all__ = [
    "ConsoleProbe",
    "CsvProbe",
    "GenerationRecord",
    "JsonProbe",
    "MultiProbe",
    "ParticleRecord",
    "Probe",
    "RecordEvent",
    "RecordProbe",
    "probe_name",
]
