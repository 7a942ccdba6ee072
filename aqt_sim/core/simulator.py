"""Simulation driver for AQT simulation.

This module defines the Simulation class, which wires a BufferNetwork, a forwarding
protocol, an adversary, a threshold and recorders together and runs rounds until the
threshold fires. The round clock is a SimPy environment: one round takes one unit of
simulated time.
"""

import json
import logging
import os
from dataclasses import dataclass
from typing import Any, Generator, List, Optional, Sequence

import simpy

from aqt_sim.config import SimConfig
from aqt_sim.core.network import BufferNetwork
from aqt_sim.core.protocols import ForwardingProtocol, protocol_factory
from aqt_sim.core.thresholds import Threshold, threshold_factory
from aqt_sim.traffic.adversaries import Adversary, adversary_factory
from aqt_sim.utils.recorders import Recorder, recorder_factory

logger = logging.getLogger(__name__)

SIM_CONFIG_FILENAME = "sim_config.json"


@dataclass
class SimulationResult:
    """Summary of a finished simulation.

    Attributes:
        rounds: Number of the round in which the threshold fired.
        total_absorbed: Number of packets absorbed over the whole run.
        final_load: Total number of packets left in the buffers.
        max_load: Largest total load seen at any observation.
        output_path: Directory results were written to, if any.
    """

    rounds: int
    total_absorbed: int
    final_load: int
    max_load: int
    output_path: Optional[str] = None


class Simulation:
    """AQT simulation environment.

    Attributes:
        env: SimPy environment driving the rounds.
        network: Buffer network being simulated.
        protocol: Forwarding protocol.
        adversary: Injection policy.
        threshold: Termination predicate.
        recorders: Result sinks.
        output_path: Directory for the saved config and recorder files.
    """

    def __init__(
        self,
        network: BufferNetwork,
        protocol: ForwardingProtocol,
        adversary: Adversary,
        threshold: Threshold,
        recorders: Sequence[Recorder] = (),
        output_path: Optional[str] = None,
        env: Optional[simpy.Environment] = None,
    ):
        """Initialize the simulation.

        Saves the simulation config to output_path, if given, and points every
        recorder at it.

        Args:
            network: Buffer network with its topology already built.
            protocol: Forwarding protocol.
            adversary: Injection policy.
            threshold: Termination predicate.
            recorders: Result sinks.
            output_path: Directory for results, or None to keep recorder defaults.
            env: SimPy environment; a new one is created if not given.
        """
        self.env = env if env is not None else simpy.Environment()
        self.network = network
        self.protocol = protocol
        self.adversary = adversary
        self.threshold = threshold
        self.recorders: List[Recorder] = list(recorders)
        self.output_path = output_path
        self.total_absorbed = 0
        self.max_load = 0

        if output_path is not None:
            self.save_config(output_path)
            for recorder in self.recorders:
                recorder.set_output_path(output_path)

    @classmethod
    def from_config(cls, cfg: SimConfig) -> "Simulation":
        """Create a simulation from a SimConfig."""
        return cls(
            BufferNetwork.from_adjacency(cfg.graph_adjacency),
            protocol_factory(cfg.protocol_cfg),
            adversary_factory(cfg.adversary_cfg),
            threshold_factory(cfg.threshold_cfg),
            [recorder_factory(c) for c in cfg.recorder_cfgs],
            cfg.output_path,
        )

    def to_config(self) -> SimConfig:
        return SimConfig(
            graph_adjacency=self.network.to_adjacency(),
            protocol_cfg=self.protocol.to_config(),
            adversary_cfg=self.adversary.to_config(),
            threshold_cfg=self.threshold.to_config(),
            recorder_cfgs=[r.to_config() for r in self.recorders],
            output_path=self.output_path,
        )

    def save_config(self, output_path: str) -> None:
        os.makedirs(output_path, exist_ok=True)
        file_path = os.path.join(output_path, SIM_CONFIG_FILENAME)
        with open(file_path, "w") as f:
            json.dump(self.to_config().to_val(), f, indent=2)

    def _observe(self, rd: int, is_post_forward: bool, absorbed=None) -> None:
        self.max_load = max(self.max_load, self.network.total_load())
        for recorder in self.recorders:
            recorder.observe(rd, is_post_forward, self.network, absorbed)

    def _rounds(self) -> Generator[Any, Any, int]:
        """Run rounds until the threshold fires.

        Returns:
            The round in which the simulation stopped.
        """
        rd = 1
        while True:
            packets = self.adversary.next_packets(self.network, rd)
            for packet in packets:
                self.protocol.add_packet(packet, self.network)
            self._observe(rd, False)
            if self.threshold.should_stop(rd, self.network):
                return rd

            absorbed = self.protocol.forward_packets(self.network)
            self.total_absorbed += len(absorbed)
            self._observe(rd, True, absorbed)
            logger.debug(
                "Round %d: injected %d, absorbed %d, load %d",
                rd,
                len(packets),
                len(absorbed),
                self.network.total_load(),
            )
            if self.threshold.should_stop(rd, self.network):
                return rd

            rd += 1
            yield self.env.timeout(1)

    def run(self) -> SimulationResult:
        """Run the simulation until its threshold fires.

        Returns:
            Summary of the run.
        """
        logger.info(
            "Starting simulation: %r, %s, %r",
            self.network,
            self.protocol.name,
            self.threshold,
        )
        rounds = self.env.run(until=self.env.process(self._rounds()))

        for recorder in self.recorders:
            recorder.finalize()

        result = SimulationResult(
            rounds=rounds,
            total_absorbed=self.total_absorbed,
            final_load=self.network.total_load(),
            max_load=self.max_load,
            output_path=self.output_path,
        )
        logger.info("Simulation finished: %s", result)
        return result
