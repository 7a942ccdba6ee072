import pytest

from aqt_sim.core.errors import ConfigError, TopologyError
from aqt_sim.core.network import construct_path
from aqt_sim.traffic.adversaries import (
    BurstyPathAdversary,
    InjectionConfig,
    PathRandomAdversary,
    PresetAdversary,
    adversary_factory,
)


def test_path_random_injects_one_packet_per_round(path10):
    adversary = PathRandomAdversary(seed=7)
    for rd in range(1, 50):
        (packet,) = adversary.next_packets(path10, rd)
        assert packet.injection_round == rd
        assert packet.path == list(range(11))
        assert 0 <= packet.cursor <= 8
        assert packet.id == rd - 1


def test_seeded_path_random_is_reproducible(path10):
    first, second = PathRandomAdversary(seed=32), PathRandomAdversary(seed=32)
    starts_first = [first.next_packets(path10, rd)[0].cursor for rd in range(1, 30)]
    starts_second = [second.next_packets(path10, rd)[0].cursor for rd in range(1, 30)]
    assert starts_first == starts_second
    assert len(set(starts_first)) > 1


def test_path_random_needs_two_buffers():
    with pytest.raises(TopologyError):
        PathRandomAdversary(seed=1).next_packets(construct_path(1), 1)


def test_bursty_injects_every_period(path10):
    adversary = BurstyPathAdversary(burst_size=3, period=4, seed=5)
    counts = [len(adversary.next_packets(path10, rd)) for rd in range(1, 10)]
    assert counts == [3, 0, 0, 0, 3, 0, 0, 0, 3]


def test_bursty_packets_share_a_buffer(path10):
    burst = BurstyPathAdversary(burst_size=4, period=1, seed=3).next_packets(path10, 1)
    assert len({p.cursor for p in burst}) == 1
    assert len({p.id for p in burst}) == 4


def test_preset_replays_script():
    network = construct_path(2)
    adversary = PresetAdversary(
        [
            [InjectionConfig([0, 1, 2], 0)],
            [],
            [InjectionConfig([0, 1, 2], 1), InjectionConfig([1, 2], 0)],
        ]
    )
    assert adversary.rds == 3

    batches = [adversary.next_packets(network, rd) for rd in range(1, 5)]
    assert [len(batch) for batch in batches] == [1, 0, 2, 0]
    assert [p.injection_round for p in batches[2]] == [3, 3]
    assert [p.cursor for p in batches[2]] == [1, 0]
    assert [p.id for p in batches[0] + batches[2]] == [0, 1, 2]


def test_adversary_config_round_trip():
    for adversary in [
        PathRandomAdversary(seed=11),
        BurstyPathAdversary(2, 3, seed=None),
        PresetAdversary([[InjectionConfig([0, 1], 0)], []]),
    ]:
        config = adversary.to_config()
        rebuilt = adversary_factory(config)
        assert type(rebuilt) is type(adversary)
        assert rebuilt.to_config() == config


@pytest.mark.parametrize(
    "config",
    [
        {"adversary_name": "flood"},
        {"adversary_name": "sd_path_random", "seed": "abc"},
        {"adversary_name": "bursty_path", "burst_size": 0, "period": 2},
        {"adversary_name": "preset", "injections": [[{"path_idx": 0}]]},
        {"adversary_name": "preset"},
    ],
)
def test_adversary_factory_rejects_bad_config(config):
    with pytest.raises(ConfigError):
        adversary_factory(config)
