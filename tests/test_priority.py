import itertools

from aqt_sim.core.packet import Packet
from aqt_sim.core.priority import (
    earliest_injected_index,
    lis_higher_priority,
    oldest_index,
    youngest_index,
)


def _packets():
    # (id, injection round), covering equal rounds and inverted id order
    ids_and_rounds = [(0, 2), (1, 0), (2, 1), (3, 0), (4, 2), (5, 1)]
    return [Packet(pid, [0, 1], 0, rd) for pid, rd in ids_and_rounds]


def test_earlier_round_wins():
    old, new = Packet(9, [0, 1], 0, 0), Packet(1, [0, 1], 0, 1)
    assert lis_higher_priority(old, new)
    assert not lis_higher_priority(new, old)


def test_id_breaks_ties():
    p, q = Packet(1, [0, 1], 0, 3), Packet(2, [0, 1], 0, 3)
    assert lis_higher_priority(p, q)
    assert not lis_higher_priority(q, p)


def test_strict_total_order():
    packets = _packets()
    for p in packets:
        assert not lis_higher_priority(p, p)
    for p, q in itertools.permutations(packets, 2):
        assert lis_higher_priority(p, q) != lis_higher_priority(q, p)
    for p, q, r in itertools.permutations(packets, 3):
        if lis_higher_priority(p, q) and lis_higher_priority(q, r):
            assert lis_higher_priority(p, r)


def test_oldest_and_youngest():
    packets = _packets()
    assert packets[oldest_index(packets)].id == 1
    assert packets[youngest_index(packets)].id == 4
    assert oldest_index([]) is None
    assert youngest_index([]) is None


def test_earliest_injected_uses_scan_order():
    packets = [Packet(5, [0, 1], 0, 1), Packet(3, [0, 1], 0, 0), Packet(1, [0, 1], 0, 0)]
    assert earliest_injected_index(packets) == 1
    assert earliest_injected_index([]) is None
