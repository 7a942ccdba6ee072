"""Adversaries for AQT simulation.

This module provides the injection policies that create the packets entering the network
each round. Every adversary owns its own PacketFactory, so packet ids are unique within
one adversary's stream.
"""

import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Any, Dict, List, Optional, Sequence

from aqt_sim.core.enums import AdversaryType
from aqt_sim.core.errors import ConfigError, TopologyError
from aqt_sim.core.network import BufferNetwork
from aqt_sim.core.packet import Packet, PacketFactory, PacketPath
from aqt_sim.utils.rng import SimRng

logger = logging.getLogger(__name__)

ADVERSARY_NAME_KEY = "adversary_name"
SEED_KEY = "seed"
BURST_SIZE_KEY = "burst_size"
PERIOD_KEY = "period"
INJECTIONS_KEY = "injections"
PATH_KEY = "path"
PATH_IDX_KEY = "path_idx"


class Adversary(ABC):
    """Abstract base class for injection policies."""

    adversary_type: AdversaryType

    def __init__(self) -> None:
        self.factory = PacketFactory()

    @abstractmethod
    def next_packets(self, network: BufferNetwork, rd: int) -> List[Packet]:
        """Create the packets to inject this round.

        Args:
            network: Current network state.
            rd: Current round number; it becomes the packets' injection round.

        Returns:
            Packets to hand to the protocol, possibly none.
        """
        pass

    @abstractmethod
    def to_config(self) -> Dict[str, Any]:
        pass


class PathRandomAdversary(Adversary):
    """Single-destination path adversary.

    Injects one packet per round, destined for the last node of a path network, into a
    buffer chosen uniformly among all but the last one.
    """

    adversary_type = AdversaryType.PATH_RANDOM

    def __init__(self, seed: Optional[int] = None):
        super().__init__()
        self.rng = SimRng(seed)

    def _random_start(self, network: BufferNetwork) -> int:
        dest_id = network.num_nodes - 1
        if dest_id < 2:
            raise TopologyError("Path random injection needs a path of at least 2 buffers.")
        return self.rng.rand_int(dest_id - 1)

    def _path_packet(self, network: BufferNetwork, rd: int, start: int) -> Packet:
        path = list(range(network.num_nodes))
        return self.factory.create(path, rd, start)

    def next_packets(self, network: BufferNetwork, rd: int) -> List[Packet]:
        start = self._random_start(network)
        logger.debug("Round %d: injecting into buffer %d", rd, start)
        return [self._path_packet(network, rd, start)]

    def to_config(self) -> Dict[str, Any]:
        return {ADVERSARY_NAME_KEY: self.adversary_type.value, SEED_KEY: self.rng.seed}


class BurstyPathAdversary(PathRandomAdversary):
    """Path adversary that injects bursts of packets into one random buffer.

    Every period rounds, starting with round 1, burst_size packets are injected into the
    same randomly chosen buffer; nothing is injected in between.
    """

    adversary_type = AdversaryType.BURSTY_PATH

    def __init__(self, burst_size: int, period: int, seed: Optional[int] = None):
        if burst_size < 1 or period < 1:
            raise ValueError("Burst size and period must be at least 1.")
        super().__init__(seed)
        self.burst_size = burst_size
        self.period = period

    def next_packets(self, network: BufferNetwork, rd: int) -> List[Packet]:
        if (rd - 1) % self.period != 0:
            return []
        start = self._random_start(network)
        logger.debug(
            "Round %d: injecting burst of %d into buffer %d", rd, self.burst_size, start
        )
        return [self._path_packet(network, rd, start) for _ in range(self.burst_size)]

    def to_config(self) -> Dict[str, Any]:
        config = super().to_config()
        config[BURST_SIZE_KEY] = self.burst_size
        config[PERIOD_KEY] = self.period
        return config


@dataclass
class InjectionConfig:
    """Path and starting cursor of one scripted packet."""

    path: PacketPath
    path_idx: int = 0

    def to_config(self) -> Dict[str, Any]:
        return {PATH_KEY: list(self.path), PATH_IDX_KEY: self.path_idx}


class PresetAdversary(Adversary):
    """Adversary that replays a fixed script of injections.

    The k-th call to next_packets injects the packets of injections[k], stamped with the
    round it is called for. Once the script is exhausted no more packets are injected.
    """

    adversary_type = AdversaryType.PRESET

    def __init__(self, injections: Sequence[Sequence[InjectionConfig]]):
        super().__init__()
        self.injections = [list(rd_injections) for rd_injections in injections]
        self.next_index = 0

    @property
    def rds(self) -> int:
        """Number of scripted rounds."""
        return len(self.injections)

    def next_packets(self, network: BufferNetwork, rd: int) -> List[Packet]:
        if self.next_index >= len(self.injections):
            return []
        rd_injections = self.injections[self.next_index]
        self.next_index += 1
        return [self.factory.create(cfg.path, rd, cfg.path_idx) for cfg in rd_injections]

    def to_config(self) -> Dict[str, Any]:
        return {
            ADVERSARY_NAME_KEY: self.adversary_type.value,
            INJECTIONS_KEY: [
                [cfg.to_config() for cfg in rd_injections]
                for rd_injections in self.injections
            ],
        }


def _parse_injections(raw: Any) -> List[List[InjectionConfig]]:
    if not isinstance(raw, list):
        raise ConfigError("Preset adversary needs a list of per-round injections.")
    injections = []
    for rd_raw in raw:
        if not isinstance(rd_raw, list):
            raise ConfigError("Each round of preset injections must be a list.")
        rd_injections = []
        for item in rd_raw:
            if not isinstance(item, dict) or not isinstance(item.get(PATH_KEY), list):
                raise ConfigError("Each injection needs a 'path' list.")
            rd_injections.append(InjectionConfig(item[PATH_KEY], item.get(PATH_IDX_KEY, 0)))
        injections.append(rd_injections)
    return injections


def adversary_factory(config: Dict[str, Any]) -> Adversary:
    """Create an adversary from its tagged config.

    Args:
        config: Record with an "adversary_name" tag and the adversary's parameters.

    Returns:
        The configured adversary.
    """
    if not isinstance(config, dict):
        raise ConfigError("Adversary config must be a json object.")
    try:
        adversary_type = AdversaryType(config.get(ADVERSARY_NAME_KEY))
    except ValueError:
        raise ConfigError(
            f"Unknown adversary name: {config.get(ADVERSARY_NAME_KEY)!r}"
        ) from None

    if adversary_type == AdversaryType.PRESET:
        return PresetAdversary(_parse_injections(config.get(INJECTIONS_KEY)))

    seed = config.get(SEED_KEY)
    if seed is not None and not isinstance(seed, int):
        raise ConfigError(f"Adversary seed must be an integer or null, got {seed!r}.")

    if adversary_type == AdversaryType.BURSTY_PATH:
        burst_size = config.get(BURST_SIZE_KEY)
        period = config.get(PERIOD_KEY)
        if not all(isinstance(v, int) and v >= 1 for v in (burst_size, period)):
            raise ConfigError("Bursty adversary needs positive integer 'burst_size' and 'period'.")
        return BurstyPathAdversary(burst_size, period, seed)
    else:
        return PathRandomAdversary(seed)
