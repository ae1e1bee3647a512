"""Domain model: Particle, Swarm and their read-only snapshots."""

from metaswarm.model.particle import Particle, is_improvement
from metaswarm.model.swarm import ParticleSnapshot, Swarm, SwarmSnapshot

__all__ = [
    "Particle",
    "ParticleSnapshot",
    "Swarm",
    "SwarmSnapshot",
    "is_improvement",
]
