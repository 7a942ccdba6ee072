import json

import pytest
import simpy

from aqt_sim.core.errors import TopologyError
from aqt_sim.core.network import construct_path
from aqt_sim.core.protocols import GreedyFIFO, OEDWithSwap
from aqt_sim.core.simulator import SIM_CONFIG_FILENAME, Simulation
from aqt_sim.core.thresholds import TimedThreshold, TotalLoadThreshold
from aqt_sim.traffic.adversaries import InjectionConfig, PresetAdversary
from aqt_sim.utils.recorders import Recorder
from main import example_config


class ListRecorder(Recorder):
    """Keeps every observation in memory."""

    def __init__(self):
        self.calls = []
        self.finalized = 0

    def observe(self, rd, is_post_forward, network, absorbed=None):
        self.calls.append(
            (rd, is_post_forward, network.total_load(), None if absorbed is None else list(absorbed))
        )

    def finalize(self):
        self.finalized += 1

    def to_config(self):
        return {"recorder_name": "list"}


def test_observation_order_and_absorption():
    adversary = PresetAdversary([[InjectionConfig([0, 1, 2, 3], 0)]])
    recorder = ListRecorder()
    sim = Simulation(
        construct_path(3), GreedyFIFO(), adversary, TimedThreshold(4), [recorder]
    )

    result = sim.run()

    (packet,) = recorder.calls[-2][3]
    assert recorder.calls == [
        (1, False, 1, None),
        (1, True, 1, []),
        (2, False, 1, None),
        (2, True, 1, []),
        (3, False, 1, None),
        (3, True, 0, [packet]),
        (4, False, 0, None),
    ]
    assert recorder.finalized == 1
    assert packet.is_absorbed()
    assert result.rounds == 4
    assert result.total_absorbed == 1
    assert result.final_load == 0
    assert result.max_load == 1


def test_stops_after_injection_on_load():
    batch = [InjectionConfig([0, 1, 2, 3], 0), InjectionConfig([0, 1, 2, 3], 0)]
    adversary = PresetAdversary([batch, batch, batch])
    recorder = ListRecorder()
    sim = Simulation(
        construct_path(3), GreedyFIFO(1), adversary, TotalLoadThreshold(3), [recorder]
    )

    result = sim.run()

    assert result.rounds == 2
    assert result.final_load == 4
    assert recorder.calls[-1][:2] == (2, False)


def test_one_round_per_time_unit():
    env = simpy.Environment()
    adversary = PresetAdversary([])
    sim = Simulation(construct_path(2), GreedyFIFO(), adversary, TimedThreshold(5), env=env)

    assert sim.run().rounds == 5
    assert env.now == 4


def test_threshold_at_first_round():
    sim = Simulation(construct_path(2), GreedyFIFO(), PresetAdversary([]), TimedThreshold(0))
    assert sim.run().rounds == 1


def test_from_config_saves_results(tmp_path):
    output = tmp_path / "oed"
    cfg = example_config(str(output)).sim_configs[0]

    sim = Simulation.from_config(cfg)
    assert isinstance(sim.protocol, OEDWithSwap)
    with open(output / SIM_CONFIG_FILENAME) as f:
        saved = json.load(f)
    assert saved["graph_adjacency"] == cfg.graph_adjacency
    assert saved["protocol"] == cfg.protocol_cfg
    assert saved["adversary"] == cfg.adversary_cfg
    assert saved["threshold"] == cfg.threshold_cfg
    assert saved["output_path"] == str(output)

    result = sim.run()
    assert result.rounds == 10
    assert result.output_path == str(output)
    assert (output / "buffer_loads.csv").exists()
    assert (output / "absorptions.csv").exists()


def test_seeded_runs_repeat(tmp_path):
    first = Simulation.from_config(example_config(str(tmp_path / "a")).sim_configs[0]).run()
    second = Simulation.from_config(example_config(str(tmp_path / "b")).sim_configs[0]).run()
    assert (first.total_absorbed, first.final_load, first.max_load) == (
        second.total_absorbed,
        second.final_load,
        second.max_load,
    )


def test_errors_propagate(diamond):
    recorder = ListRecorder()
    adversary = PresetAdversary([[InjectionConfig([0, 1, 3], 0)]])
    sim = Simulation(diamond, OEDWithSwap(), adversary, TimedThreshold(3), [recorder])

    with pytest.raises(TopologyError):
        sim.run()
    assert recorder.finalized == 0
