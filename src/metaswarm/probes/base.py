"""Probe protocol: observers of an optimization run's lifecycle."""

from __future__ import annotations

from typing import TYPE_CHECKING, Protocol, runtime_checkable

if TYPE_CHECKING:
    from metaswarm.model.swarm import SwarmSnapshot


@runtime_checkable
class Probe(Protocol):
    """Observer notified of engine lifecycle events.

    Calls are synchronous and made from the engine's thread. Snapshots are
    read-only; a probe must not block indefinitely.
    """

    def on_begin(self, snapshot: SwarmSnapshot) -> None:
        """Called once, before the first iteration."""
        ...

    def on_new_generation(self, snapshot: SwarmSnapshot, iteration: int) -> None:
        """Called every ``notification_interval`` iterations.

        ``iteration`` is the number of completed iterations.
        """
        ...

    def on_end(self, snapshot: SwarmSnapshot) -> None:
        """Called once, after the last iteration."""
        ...


def probe_name(probe: Probe) -> str:
    """Label used for a probe in logs and delivery errors."""
    name = getattr(probe, "name", None)
    return name if isinstance(name, str) and name else type(probe).__name__
