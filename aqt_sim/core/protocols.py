"""Forwarding protocols for AQT simulation.

A protocol decides, once per round, which packets leave which buffers and in which
direction. Every decision in a round is made from the network state as it stood at the
start of the round: packets are first removed from their buffers, and only after all
buffers have been scanned are the moved packets re-inserted or reported as absorbed.
"""

import logging
from abc import ABC, abstractmethod
from typing import Any, Dict, List, Optional, Tuple

from aqt_sim.core.enums import ProtocolType
from aqt_sim.core.errors import ConfigError, PacketStateError, TopologyError
from aqt_sim.core.network import BufferNetwork
from aqt_sim.core.packet import Packet
from aqt_sim.core.priority import (
    earliest_injected_index,
    lis_higher_priority,
    oldest_index,
    youngest_index,
)

logger = logging.getLogger(__name__)

PROTOCOL_NAME_KEY = "protocol_name"
CAPACITY_KEY = "capacity"


class ForwardingProtocol(ABC):
    """Abstract base class for forwarding protocols."""

    protocol_type: ProtocolType

    def __init__(self, capacity: int = 1):
        """
        Initialize the protocol

        Args:
            capacity: Maximum number of packets a buffer forwards per round
        """
        if capacity < 1:
            raise ValueError(f"Protocol capacity must be at least 1, got {capacity}.")
        self.capacity = capacity

    @property
    def name(self) -> str:
        return self.protocol_type.value

    def add_packet(self, packet: Packet, network: BufferNetwork) -> None:
        """
        Add a packet to the back of the buffer it is about to traverse

        Args:
            packet: Packet to be added; it must not be absorbed
            network: Network holding the buffer
        """
        source, destination = packet.current_node(), packet.next_node()
        if source is None or destination is None:
            raise PacketStateError(f"{packet} has no outgoing edge left on its path.")
        network.push(packet, source, destination)

    @abstractmethod
    def forward_packets(self, network: BufferNetwork) -> List[Packet]:
        """
        Forward packets for one round

        Args:
            network: Network to forward packets on

        Returns:
            Packets absorbed during this round
        """
        pass

    def _settle(self, moved: List[Packet], network: BufferNetwork) -> List[Packet]:
        """Re-insert moved packets, or absorb those that reached their destination."""
        absorbed = []
        for packet in moved:
            if packet.next_node() is None:
                packet.advance()
                absorbed.append(packet)
            else:
                self.add_packet(packet, network)
        return absorbed

    def to_config(self) -> Dict[str, Any]:
        return {PROTOCOL_NAME_KEY: self.name, CAPACITY_KEY: self.capacity}

    def __repr__(self) -> str:
        return f"{type(self).__name__}(capacity={self.capacity})"


class GreedyFIFO(ForwardingProtocol):
    """Forwards up to capacity packets from the front of every buffer."""

    protocol_type = ProtocolType.GREEDY_FIFO

    def _select_index(self, buffer) -> Optional[int]:
        return 0 if buffer else None

    def forward_packets(self, network: BufferNetwork) -> List[Packet]:
        to_forward: List[Packet] = []
        for source, destination in network.edges():
            buffer = network.peek_mut(source, destination)
            for _ in range(min(self.capacity, len(buffer))):
                index = self._select_index(buffer)
                packet = buffer[index]
                del buffer[index]
                packet.advance()
                to_forward.append(packet)

        absorbed = self._settle(to_forward, network)
        logger.debug(
            "%s moved %d packets, absorbed %d", self.name, len(to_forward), len(absorbed)
        )
        return absorbed


class GreedyLIS(GreedyFIFO):
    """Forwards up to capacity of the earliest injected packets from every buffer."""

    protocol_type = ProtocolType.GREEDY_LIS

    def _select_index(self, buffer) -> Optional[int]:
        return earliest_injected_index(buffer)


class OEDWithSwap(ForwardingProtocol):
    """Odd-even downhill forwarding with backward swaps on a path network.

    Buffer x forwards its oldest packet if x and x+1 meet the OED criterion or the oldest
    packet in x is older than the youngest in x+1. Buffer x sends its youngest packet
    backward if x-1 is non-empty, x-1 and x fail the OED criterion, and the youngest
    packet in x is younger than the oldest in x-1. A packet whose path starts at x is
    never sent backward. The last buffer always forwards when it holds a packet.
    """

    protocol_type = ProtocolType.OED_WITH_SWAP

    def __init__(self, capacity: int = 1):
        if capacity != 1:
            raise ValueError("OED with swap has a fixed capacity of 1.")
        super().__init__(1)

    @staticmethod
    def path_edges(network: BufferNetwork) -> List[Tuple[int, int]]:
        """Get the path edges (i, i + 1), checking that all of them exist."""
        if network.num_nodes < 2:
            raise TopologyError("OED with swap needs a path network with at least one buffer.")
        edges = [(i, i + 1) for i in range(network.num_nodes - 1)]
        for source, destination in edges:
            if not network.has_edge(source, destination):
                raise TopologyError(
                    f"OED with swap needs a path network; no buffer {source} -> {destination}."
                )
        return edges

    @staticmethod
    def oed_criterion(this_load: int, next_load: int) -> bool:
        return this_load > next_load or (this_load == next_load and this_load % 2 == 1)

    def get_should_forward_or_backward(
        self, network: BufferNetwork
    ) -> List[Tuple[bool, bool]]:
        """Decide, per path buffer, whether to forward and whether to send backward.

        Every decision reads the same snapshot of loads and extreme packets.
        """
        edges = self.path_edges(network)
        num_buffers = len(edges)
        loads = [network.load(*edge) for edge in edges]

        oed = [
            self.oed_criterion(loads[i], loads[i + 1]) for i in range(num_buffers - 1)
        ]
        oed.append(loads[-1] > 0)

        extremes: List[Optional[Tuple[Packet, Packet]]] = []
        for edge in edges:
            buffer = network.peek_mut(*edge)
            if buffer:
                extremes.append((buffer[oldest_index(buffer)], buffer[youngest_index(buffer)]))
            else:
                extremes.append(None)

        result = []
        for i in range(num_buffers):
            if extremes[i] is None:
                result.append((False, False))
                continue
            oldest, youngest = extremes[i]

            if i == num_buffers - 1:
                should_fwd = True
            else:
                following = extremes[i + 1]
                should_fwd = oed[i] or (
                    following is not None and lis_higher_priority(oldest, following[1])
                )

            should_bwd = False
            if i > 0:
                previous = extremes[i - 1]
                should_bwd = (
                    previous is not None
                    and not oed[i - 1]
                    and lis_higher_priority(previous[0], youngest)
                    and youngest.cursor > 0
                )

            result.append((should_fwd, should_bwd))
        return result

    def forward_packets(self, network: BufferNetwork) -> List[Packet]:
        decisions = self.get_should_forward_or_backward(network)

        moved: List[Packet] = []
        for (source, destination), (forward, backward) in zip(
            self.path_edges(network), decisions
        ):
            buffer = network.peek_mut(source, destination)
            if forward:
                index = oldest_index(buffer)
                packet = buffer[index]
                del buffer[index]
                packet.advance()
                moved.append(packet)
            # A lone packet that was just forwarded cannot also be sent back.
            if backward and buffer:
                index = youngest_index(buffer)
                packet = buffer[index]
                del buffer[index]
                packet.retreat()
                moved.append(packet)

        absorbed = self._settle(moved, network)
        logger.debug(
            "%s moved %d packets, absorbed %d", self.name, len(moved), len(absorbed)
        )
        return absorbed


def protocol_factory(config: Dict[str, Any]) -> ForwardingProtocol:
    """
    Factory function to create the appropriate protocol

    Args:
        config: Tagged record {"protocol_name": ..., "capacity": ...}; capacity
            defaults to 1

    Returns:
        An instance of the selected forwarding protocol
    """
    if not isinstance(config, dict):
        raise ConfigError("Protocol config must be a json object.")
    try:
        protocol_type = ProtocolType(config.get(PROTOCOL_NAME_KEY))
    except ValueError:
        raise ConfigError(
            f"Unknown protocol name: {config.get(PROTOCOL_NAME_KEY)!r}"
        ) from None
    if protocol_type == ProtocolType.OED_WITH_SWAP:
        return OEDWithSwap()

    capacity = config.get(CAPACITY_KEY, 1)
    if not isinstance(capacity, int) or isinstance(capacity, bool) or capacity < 1:
        raise ConfigError(f"Protocol capacity must be a positive integer, got {capacity!r}.")

    if protocol_type == ProtocolType.GREEDY_FIFO:
        return GreedyFIFO(capacity)
    else:
        return GreedyLIS(capacity)
