"""Optimization engines: the PSO iteration driver and its result types."""

from metaswarm.engine.pso import EngineState, PSOAlgorithm, PSOResult

__all__ = ["EngineState", "PSOAlgorithm", "PSOResult"]
