"""Packet class for AQT simulation.

This module defines the Packet class, which represents a packet following a fixed
path through the buffer network, and the PacketFactory that hands out packet ids.
"""

from dataclasses import dataclass, field
from typing import List, Optional

from aqt_sim.core.errors import PacketStateError

PacketPath = List[int]


@dataclass(eq=False)
class Packet:
    """Represents a packet in the AQT model.

    Packets compare equal only when their ids match. Create them through a
    PacketFactory so that ids stay unique.

    Attributes:
        id: Unique identifier within the issuing factory.
        path: Node IDs the packet must traverse, in order.
        cursor: Index into path marking the node the packet currently occupies.
        injection_round: Round on which the packet entered the network.
    """

    id: int
    path: PacketPath = field(default_factory=list)
    cursor: int = 0
    injection_round: int = 0

    def advance(self) -> None:
        """Move the cursor one node forward along the path.

        Raises:
            PacketStateError: If the packet has already been absorbed.
        """
        if self.is_absorbed():
            raise PacketStateError(f"Packet {self.id} has already been absorbed.")
        self.cursor += 1

    def retreat(self) -> None:
        """Move the cursor one node backward along the path.

        Raises:
            PacketStateError: If the packet is at the start of its path.
        """
        if self.cursor == 0:
            raise PacketStateError(
                f"Packet {self.id} is already at the beginning of its path."
            )
        self.cursor -= 1

    def is_absorbed(self) -> bool:
        """Check whether the packet has left the network."""
        return self.cursor == len(self.path)

    def will_absorb_next(self) -> bool:
        """Check whether the next advance absorbs the packet."""
        return self.cursor == len(self.path) - 1

    def current_node(self) -> Optional[int]:
        """Get the node the packet occupies, or None once absorbed."""
        if self.cursor < len(self.path):
            return self.path[self.cursor]
        return None

    def next_node(self) -> Optional[int]:
        """Get the next node on the path.

        Returns:
            The next node ID, or None if the packet is absorbed or about to be.
        """
        if self.cursor + 1 < len(self.path):
            return self.path[self.cursor + 1]
        return None

    def dist_to_go(self) -> int:
        """Get the number of forward steps left, including the absorption step."""
        return len(self.path) - self.cursor

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Packet):
            return NotImplemented
        return self.id == other.id

    def __hash__(self) -> int:
        return hash(self.id)

    def __repr__(self) -> str:
        return (
            f"Packet(id={self.id}, cur_node={self.current_node()}, "
            f"injection_rd={self.injection_round})"
        )


class PacketFactory:
    """Issues packets with strictly increasing ids.

    Each adversary owns its own factory; ids are unique within one factory only.
    """

    def __init__(self) -> None:
        self.cur_id = 0

    def create(
        self, path: PacketPath, injection_round: int, cursor: int = 0
    ) -> Packet:
        """Create a new packet.

        Args:
            path: Node IDs the packet must traverse.
            injection_round: Round on which the packet is injected.
            cursor: Starting index into the path.

        Returns:
            The created Packet object.

        Raises:
            PacketStateError: If cursor lies outside the path.
        """
        if not 0 <= cursor <= len(path):
            raise PacketStateError(
                f"Cursor {cursor} is outside a path of length {len(path)}."
            )
        packet = Packet(self.cur_id, list(path), cursor, injection_round)
        self.cur_id += 1
        return packet
