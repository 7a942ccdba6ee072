"""Packet priority comparisons.

A packet has higher priority than another if it was injected earlier, with the packet id
breaking ties. "Oldest" means highest priority and "youngest" lowest.
"""

from typing import Optional, Sequence, Tuple

from aqt_sim.core.packet import Packet


def priority_key(packet: Packet) -> Tuple[int, int]:
    """Sort key that orders packets from highest to lowest priority."""
    return (packet.injection_round, packet.id)


def lis_higher_priority(p: Packet, q: Packet) -> bool:
    """Return whether p has strictly higher priority than q under LIS."""
    return priority_key(p) < priority_key(q)


def oldest_index(buffer: Sequence[Packet]) -> Optional[int]:
    """Get the index of the highest priority packet, or None for an empty buffer."""
    if not buffer:
        return None
    return min(range(len(buffer)), key=lambda i: priority_key(buffer[i]))


def youngest_index(buffer: Sequence[Packet]) -> Optional[int]:
    """Get the index of the lowest priority packet, or None for an empty buffer."""
    if not buffer:
        return None
    return max(range(len(buffer)), key=lambda i: priority_key(buffer[i]))


def earliest_injected_index(buffer: Sequence[Packet]) -> Optional[int]:
    """Get the index of the first packet with the smallest injection round.

    Ties are broken by position only; packet ids are not consulted.
    """
    if not buffer:
        return None
    return min(range(len(buffer)), key=lambda i: buffer[i].injection_round)
