import pytest

from aqt_sim.core.errors import PacketStateError
from aqt_sim.core.packet import Packet, PacketFactory


def test_factory_ids_strictly_increase(factory):
    ids = [factory.create([0, 1], 0).id for _ in range(5)]
    assert ids == [0, 1, 2, 3, 4]


def test_factories_are_independent():
    first, second = PacketFactory(), PacketFactory()
    first.create([0, 1], 0)
    assert second.create([0, 1], 0).id == 0


def test_iter_through_path(factory):
    p = factory.create([1, 4, 9, 16], 0, 0)
    assert p.cursor == 0
    assert p.current_node() == 1
    assert p.next_node() == 4
    assert p.dist_to_go() == 4

    p.advance()
    assert p.cursor == 1
    assert p.current_node() == 4
    assert p.next_node() == 9

    p.advance()
    p.advance()
    assert p.will_absorb_next()
    assert p.current_node() == 16
    assert p.next_node() is None
    assert p.dist_to_go() == 1

    p.advance()
    assert p.is_absorbed()
    assert p.dist_to_go() == 0
    assert p.current_node() is None
    assert p.next_node() is None

    with pytest.raises(PacketStateError):
        p.advance()


def test_retreat_at_origin_fails(factory):
    p = factory.create([0, 1, 2], 3, 1)
    p.retreat()
    assert p.cursor == 0
    assert p.current_node() == 0
    with pytest.raises(PacketStateError):
        p.retreat()


def test_create_rejects_cursor_outside_path(factory):
    with pytest.raises(PacketStateError):
        factory.create([0, 1], 0, 3)


def test_equality_is_by_id_only():
    p = Packet(7, [0, 1, 2], 0, 0)
    q = Packet(7, [5, 6], 1, 9)
    r = Packet(8, [0, 1, 2], 0, 0)
    assert p == q
    assert p != r
    assert len({p, q, r}) == 2
