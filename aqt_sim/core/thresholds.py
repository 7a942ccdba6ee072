"""Termination predicates for AQT simulation.

A threshold is polled twice per round, after injection and after forwarding, and decides
whether the simulation stops.
"""

from abc import ABC, abstractmethod
from typing import Any, Dict

from aqt_sim.core.enums import ThresholdType
from aqt_sim.core.errors import ConfigError
from aqt_sim.core.network import BufferNetwork

THRESHOLD_NAME_KEY = "threshold_name"
MAX_RDS_KEY = "max_rds"
MAX_LOAD_KEY = "max_load"


class Threshold(ABC):
    """Abstract base class for termination predicates."""

    threshold_type: ThresholdType

    @abstractmethod
    def should_stop(self, rd: int, network: BufferNetwork) -> bool:
        """Check whether the simulation should terminate.

        Args:
            rd: Current round number.
            network: Network state at the time of the check.

        Returns:
            True if the simulation should stop.
        """
        pass

    @abstractmethod
    def to_config(self) -> Dict[str, Any]:
        pass


class TimedThreshold(Threshold):
    """Stops a simulation once a number of rounds has elapsed."""

    threshold_type = ThresholdType.TIMED

    def __init__(self, max_rds: int):
        self.max_rds = max_rds

    def should_stop(self, rd: int, network: BufferNetwork) -> bool:
        return rd >= self.max_rds

    def to_config(self) -> Dict[str, Any]:
        return {THRESHOLD_NAME_KEY: self.threshold_type.value, MAX_RDS_KEY: self.max_rds}

    def __repr__(self) -> str:
        return f"TimedThreshold(max_rds={self.max_rds})"


class TotalLoadThreshold(Threshold):
    """Stops a simulation once the buffers hold a total number of packets."""

    threshold_type = ThresholdType.TOTAL_LOAD

    def __init__(self, max_load: int):
        self.max_load = max_load

    def should_stop(self, rd: int, network: BufferNetwork) -> bool:
        return network.total_load() >= self.max_load

    def to_config(self) -> Dict[str, Any]:
        return {THRESHOLD_NAME_KEY: self.threshold_type.value, MAX_LOAD_KEY: self.max_load}

    def __repr__(self) -> str:
        return f"TotalLoadThreshold(max_load={self.max_load})"


def _get_count(config: Dict[str, Any], key: str) -> int:
    value = config.get(key)
    if not isinstance(value, int) or isinstance(value, bool) or value < 0:
        raise ConfigError(f"Threshold config needs a non-negative integer {key!r}.")
    return value


def threshold_factory(config: Dict[str, Any]) -> Threshold:
    """Create a threshold from its tagged config.

    Args:
        config: {"threshold_name": "timed", "max_rds": ...} or
            {"threshold_name": "total_load", "max_load": ...}.

    Returns:
        The configured threshold.
    """
    if not isinstance(config, dict):
        raise ConfigError("Threshold config must be a json object.")
    try:
        threshold_type = ThresholdType(config.get(THRESHOLD_NAME_KEY))
    except ValueError:
        raise ConfigError(
            f"Unknown threshold name: {config.get(THRESHOLD_NAME_KEY)!r}"
        ) from None

    if threshold_type == ThresholdType.TIMED:
        return TimedThreshold(_get_count(config, MAX_RDS_KEY))
    else:
        return TotalLoadThreshold(_get_count(config, MAX_LOAD_KEY))
