"""metaswarm - population-based metaheuristic optimization with pluggable probes."""

from metaswarm.config import (
    OptimizationDirection,
    PSOConfig,
    PSOSettings,
    VelocityInit,
    get_pso_settings,
)
from metaswarm.engine import EngineState, PSOAlgorithm, PSOResult
from metaswarm.errors import ConfigurationError, EngineStateError, ProbeDeliveryError
from metaswarm.logging_config import configure_logging, get_logger
from metaswarm.model import Particle, Swarm, SwarmSnapshot
from metaswarm.probes import ConsoleProbe, CsvProbe, JsonProbe, MultiProbe, Probe

__version__ = "0.1.0"

__all__ = [
    "ConfigurationError",
    "ConsoleProbe",
    "CsvProbe",
    "EngineState",
    "EngineStateError",
    "JsonProbe",
    "MultiProbe",
    "OptimizationDirection",
    "PSOAlgorithm",
    "PSOConfig",
    "PSOResult",
    "PSOSettings",
    "Particle",
    "Probe",
    "ProbeDeliveryError",
    "Swarm",
    "SwarmSnapshot",
    "VelocityInit",
    "__version__",
    "configure_logging",
    "get_logger",
    "get_pso_settings",
]
