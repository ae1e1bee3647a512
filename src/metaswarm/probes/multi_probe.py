"""Fan-out probe that relays every event to an ordered list of probes."""

from __future__ import annotations

import logging
from collections.abc import Callable, Iterable
from typing import TYPE_CHECKING

from metaswarm.errors import ProbeDeliveryError
from metaswarm.probes.base import Probe, probe_name

if TYPE_CHECKING:
    from metaswarm.model.swarm import SwarmSnapshot

logger = logging.getLogger(__name__)


class MultiProbe:
    """Broadcasts lifecycle events to inner probes in registration order.

    A probe that raises does not stop the broadcast. Failures are logged,
    kept in ``errors``, and reported together as one ``ProbeDeliveryError``
    once every inner probe has been called.

    Example:
        >>> probe = MultiProbe([ConsoleProbe(), CsvProbe("run.csv")])
        >>> PSOAlgorithm(PSOConfig(objective_function=f, probe=probe)).execute()
    """

    def __init__(self, probes: Iterable[Probe] = ()) -> None:
        self._probes: list[Probe] = list(probes)
        self.errors: list[ProbeDeliveryError] = []

    @property
    def probes(self) -> tuple[Probe, ...]:
        return tuple(self._probes)

    def add(self, probe: Probe) -> None:
        """Register another probe; it is notified after existing ones."""
        self._probes.append(probe)

    def __len__(self) -> int:
        return len(self._probes)

    def on_begin(self, snapshot: SwarmSnapshot) -> None:
        self._broadcast("on_begin", lambda p: p.on_begin(snapshot))

    def on_new_generation(self, snapshot: SwarmSnapshot, iteration: int) -> None:
        self._broadcast(
            "on_new_generation", lambda p: p.on_new_generation(snapshot, iteration)
        )

    def on_end(self, snapshot: SwarmSnapshot) -> None:
        self._broadcast("on_end", lambda p: p.on_end(snapshot))

    def _broadcast(self, event: str, deliver: Callable[[Probe], None]) -> None:
        failures: list[tuple[str, BaseException]] = []
        for probe in self._probes:
            name = probe_name(probe)
            try:
                deliver(probe)
            except ProbeDeliveryError as exc:
                logger.warning("Probe %s failed on %s: %s", name, event, exc)
                failures.extend(exc.failures or [(name, exc)])
            except Exception as exc:
                logger.exception("Probe %s raised during %s", name, event)
                failures.append((name, exc))

        if failures:
            names = ", ".join(name for name, _ in failures)
            error = ProbeDeliveryError(
                f"{len(failures)} probe(s) failed on {event}: {names}", failures
            )
            self.errors.append(error)
            raise error
