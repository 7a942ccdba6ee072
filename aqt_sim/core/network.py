"""Buffer network for AQT simulation.

This module defines the BufferNetwork class, which wraps a NetworkX directed graph whose
edges each own a queue ("buffer") of packets. Nodes are dense integer IDs assigned in
creation order and buffers are addressed by (from, to) pairs of node IDs; there are no
references between nodes.
"""

from collections import deque
from typing import Deque, Dict, List, Mapping, Optional, Sequence, Set, Tuple, Union

import networkx as nx

from aqt_sim.core.errors import TopologyError
from aqt_sim.core.packet import Packet

Edge = Tuple[int, int]
Buffer = Deque[Packet]


class BufferNetwork:
    """Directed graph of nodes whose edges hold packet buffers.

    The canonical edge order groups edges by from-node in ascending ID order, then by
    the order in which that node's edges were added. Protocols iterate edges in this
    order, so it must not change between calls.

    Attributes:
        graph: NetworkX directed graph. Each edge carries a "buffer" attribute.
    """

    def __init__(self) -> None:
        """Initialize an empty network."""
        self.graph = nx.DiGraph()

    @property
    def num_nodes(self) -> int:
        return self.graph.number_of_nodes()

    @property
    def num_edges(self) -> int:
        return self.graph.number_of_edges()

    def add_node(self) -> int:
        """Add a node to the network.

        Returns:
            The dense ID of the new node.
        """
        node_id = self.graph.number_of_nodes()
        self.graph.add_node(node_id)
        return node_id

    def add_edge(self, source: int, destination: int) -> None:
        """Add an empty buffer between two existing nodes.

        Args:
            source: From-node ID.
            destination: To-node ID.

        Raises:
            TopologyError: If a node does not exist or the buffer already exists.
        """
        self._check_node_id(source)
        self._check_node_id(destination)
        if self.graph.has_edge(source, destination):
            raise TopologyError(
                f"There is already an EdgeBuffer between nodes {source} and {destination}"
            )
        self.graph.add_edge(source, destination, buffer=deque())

    def has_edge(self, source: int, destination: int) -> bool:
        return self.graph.has_edge(source, destination)

    def neighbors(self, node_id: int) -> Set[int]:
        """Get the IDs of all nodes reachable over one outgoing edge.

        Raises:
            TopologyError: If the node does not exist.
        """
        self._check_node_id(node_id)
        return set(self.graph.successors(node_id))

    def nodes(self) -> List[int]:
        return list(range(self.graph.number_of_nodes()))

    def edges(self) -> List[Edge]:
        """Get all (from, to) pairs in canonical order."""
        return [
            (source, destination)
            for source in range(self.graph.number_of_nodes())
            for destination in self.graph.succ[source]
        ]

    def push(self, packet: Packet, source: int, destination: int) -> None:
        """Append a packet to the back of a buffer.

        Raises:
            TopologyError: If there is no buffer between the nodes.
        """
        buffer = self.peek_mut(source, destination)
        if buffer is None:
            raise TopologyError(f"No EdgeBuffer between Nodes {source} and {destination}.")
        buffer.append(packet)

    def peek(self, source: int, destination: int) -> Optional[Tuple[Packet, ...]]:
        """Get a read-only snapshot of a buffer.

        Returns:
            The packets front to back, an empty tuple for an empty buffer, or None if
            there is no such edge.
        """
        buffer = self.peek_mut(source, destination)
        if buffer is None:
            return None
        return tuple(buffer)

    def peek_mut(self, source: int, destination: int) -> Optional[Buffer]:
        """Get the live buffer between two nodes, or None if there is no such edge."""
        if not self.graph.has_edge(source, destination):
            return None
        return self.graph[source][destination]["buffer"]

    def drain(self, source: int, destination: int) -> Optional[List[Packet]]:
        """Take every packet out of a buffer, leaving it empty.

        Returns:
            The removed packets front to back, or None if there is no such edge.
        """
        if not self.graph.has_edge(source, destination):
            return None
        data = self.graph[source][destination]
        packets = list(data["buffer"])
        data["buffer"] = deque()
        return packets

    def load(self, source: int, destination: int) -> int:
        """Get the number of packets in a buffer (0 if there is no such edge)."""
        buffer = self.peek_mut(source, destination)
        return len(buffer) if buffer is not None else 0

    def loads(self) -> Dict[Edge, int]:
        """Get the load of every buffer, keyed in canonical edge order."""
        return {edge: self.load(*edge) for edge in self.edges()}

    def total_load(self) -> int:
        return sum(len(data["buffer"]) for _, _, data in self.graph.edges(data=True))

    def to_adjacency(self) -> Dict[str, List[int]]:
        """Dump the topology as node ID -> successor IDs in edge-addition order.

        Keys are strings so the result can be written to JSON directly.
        """
        return {
            str(node_id): list(self.graph.succ[node_id]) for node_id in self.nodes()
        }

    @classmethod
    def from_adjacency(
        cls, adjacency: Mapping[Union[str, int], Sequence[int]]
    ) -> "BufferNetwork":
        """Build a network from an adjacency mapping.

        Every node must appear as a key, including nodes without outgoing edges, and the
        keys must be exactly 0..n-1.

        Args:
            adjacency: Mapping from node ID (int or decimal string) to successor IDs.

        Returns:
            The constructed network with empty buffers.

        Raises:
            TopologyError: If the keys are not dense or an edge is invalid.
        """
        try:
            keyed = {int(key): list(value) for key, value in adjacency.items()}
        except (TypeError, ValueError) as exc:
            raise TopologyError(f"Invalid adjacency: {exc}") from exc
        if sorted(keyed) != list(range(len(keyed))):
            raise TopologyError("Adjacency keys must be the node IDs 0..n-1.")

        network = cls()
        for _ in range(len(keyed)):
            network.add_node()
        for source in range(len(keyed)):
            for destination in keyed[source]:
                network.add_edge(source, int(destination))
        return network

    def _check_node_id(self, node_id: int) -> None:
        if not self.graph.has_node(node_id):
            raise TopologyError(f"No Node with ID {node_id} in this network.")

    def __str__(self) -> str:
        lines = []
        for source, destination in self.edges():
            packets = list(self.graph[source][destination]["buffer"])
            lines.append(f"{source}, {destination}: {packets}")
        return "\n".join(lines)

    def __repr__(self) -> str:
        return f"BufferNetwork({self.num_nodes} nodes, {self.num_edges} buffers)"


def construct_path(num_buffers: int) -> BufferNetwork:
    """Construct a path network with the given number of buffers.

    Args:
        num_buffers: Number of edges; the network gets num_buffers + 1 nodes.

    Returns:
        Network with edges (i, i + 1) for every i < num_buffers.
    """
    network = BufferNetwork()
    for _ in range(num_buffers + 1):
        network.add_node()
    for buffer_id in range(num_buffers):
        network.add_edge(buffer_id, buffer_id + 1)
    return network
