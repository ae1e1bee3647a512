"""Exception types raised by the optimization engine and its probes."""

from __future__ import annotations


class ConfigurationError(ValueError):
    """Raised when run parameters are invalid. No swarm is created."""

    pass


class ProbeDeliveryError(Exception):
    """Raised when one or more probes fail to handle a lifecycle event.

    Attributes:
        failures: (probe name, cause) pairs, in notification order.
    """

    def __init__(
        self,
        message: str,
        failures: list[tuple[str, BaseException]] | None = None,
    ) -> None:
        super().__init__(message)
        self.failures: list[tuple[str, BaseException]] = failures or []


class EngineStateError(RuntimeError):
    """Raised when an engine operation is invalid for its current state."""

    pass
