import sys
from pathlib import Path

# Ensure package import for tests
ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

import matplotlib

matplotlib.use("Agg")

import pytest

from aqt_sim.core.network import BufferNetwork, construct_path
from aqt_sim.core.packet import PacketFactory


@pytest.fixture
def factory() -> PacketFactory:
    return PacketFactory()


@pytest.fixture
def path10() -> BufferNetwork:
    """Path network with 10 buffers (nodes 0..10)."""
    return construct_path(10)


@pytest.fixture
def diamond() -> BufferNetwork:
    """Four nodes with edges added out of from-node order."""
    network = BufferNetwork()
    a, b, c, d = (network.add_node() for _ in range(4))
    network.add_edge(a, b)
    network.add_edge(a, c)
    network.add_edge(c, b)
    network.add_edge(b, c)
    network.add_edge(a, d)
    network.add_edge(b, d)
    return network
