"""Recorders for AQT simulation.

This module provides the result sinks that take snapshots of a running simulation.
Each recorder is called after injection and after forwarding in every round, and is
finalized once when the simulation ends.
"""

import csv
import os
from abc import ABC, abstractmethod
from typing import Any, Dict, List, Optional, Sequence

from aqt_sim.core.enums import RecorderType
from aqt_sim.core.errors import ConfigError
from aqt_sim.core.network import BufferNetwork
from aqt_sim.core.packet import Packet

RECORDER_NAME_KEY = "recorder_name"
LINE_LIMIT_KEY = "line_limit"

DEFAULT_OUTPUT_DIR = "results"
DEFAULT_LOCAL_LINE_LIMIT = 5000

BUFFER_LOAD_FILENAME = "buffer_loads.csv"
BUFFER_LOAD_CSV_HEADER = ["rd", "prime", "buffer_from", "buffer_to", "load"]
ABSORPTION_FILENAME = "absorptions.csv"
ABSORPTION_CSV_HEADER = ["rd", "packet_id", "injection_rd", "path_len"]


class Recorder(ABC):
    """Abstract base class for result sinks."""

    recorder_type: RecorderType

    def set_output_path(self, output_dir: str) -> None:
        """Set the directory file-based recorders write to."""
        pass

    @abstractmethod
    def observe(
        self,
        rd: int,
        is_post_forward: bool,
        network: BufferNetwork,
        absorbed: Optional[Sequence[Packet]] = None,
    ) -> None:
        """Record one snapshot of the simulation.

        Args:
            rd: Current round number.
            is_post_forward: False after injection, True after forwarding.
            network: Network state at this point of the round.
            absorbed: Packets absorbed by the forwarding step, None after injection.
        """
        pass

    @abstractmethod
    def finalize(self) -> None:
        pass

    def to_config(self) -> Dict[str, Any]:
        return {RECORDER_NAME_KEY: self.recorder_type.value}


class DebugPrintRecorder(Recorder):
    """Prints the whole network to the console."""

    recorder_type = RecorderType.DEBUG_PRINT

    def observe(self, rd, is_post_forward, network, absorbed=None):
        print(f"{rd}':" if is_post_forward else f"{rd}:")
        print(network)
        if absorbed:
            print(f"Absorbed: {list(absorbed)}")
        print()

    def finalize(self):
        print("Simulation finished.")


class CSVRecorder(Recorder):
    """Base class for recorders that append rows to a CSV file.

    Rows are kept in memory and written out whenever line_limit rows have accumulated,
    and once more when the recorder is finalized.

    Attributes:
        line_limit: Number of rows to hold before writing them to file.
        rows: Rows not yet written.
        output_dir: Directory holding the CSV file.
    """

    filename: str
    header: List[str]

    def __init__(self, line_limit: int = DEFAULT_LOCAL_LINE_LIMIT):
        if line_limit < 1:
            raise ValueError("Line limit must be at least 1.")
        self.line_limit = line_limit
        self.rows: List[List[Any]] = []
        self.output_dir = DEFAULT_OUTPUT_DIR
        self._header_written = False

    @property
    def output_filepath(self) -> str:
        return os.path.join(self.output_dir, self.filename)

    def set_output_path(self, output_dir: str) -> None:
        self.output_dir = output_dir
        self._header_written = False

    def write(self, row: List[Any]) -> None:
        if len(self.rows) >= self.line_limit:
            self.save()
        self.rows.append(row)

    def save(self) -> None:
        """Write the buffered rows to file, starting a new file on the first save."""
        os.makedirs(self.output_dir, exist_ok=True)
        mode = "a" if self._header_written else "w"
        with open(self.output_filepath, mode, newline="") as f:
            writer = csv.writer(f)
            if not self._header_written:
                writer.writerow(self.header)
                self._header_written = True
            writer.writerows(self.rows)
        self.rows = []

    def finalize(self) -> None:
        self.save()

    def to_config(self) -> Dict[str, Any]:
        config = super().to_config()
        config[LINE_LIMIT_KEY] = self.line_limit
        return config


class BufferLoadRecorder(CSVRecorder):
    """Records the load of every buffer at every observation."""

    recorder_type = RecorderType.BUFFER_LOAD_CSV
    filename = BUFFER_LOAD_FILENAME
    header = BUFFER_LOAD_CSV_HEADER

    def observe(self, rd, is_post_forward, network, absorbed=None):
        prime_flag = 1 if is_post_forward else 0
        for (source, destination), load in network.loads().items():
            self.write([rd, prime_flag, source, destination, load])


class AbsorptionRecorder(CSVRecorder):
    """Records every absorbed packet."""

    recorder_type = RecorderType.ABSORPTION_CSV
    filename = ABSORPTION_FILENAME
    header = ABSORPTION_CSV_HEADER

    def observe(self, rd, is_post_forward, network, absorbed=None):
        if not is_post_forward or not absorbed:
            return
        for packet in absorbed:
            self.write([rd, packet.id, packet.injection_round, len(packet.path)])


def recorder_factory(config: Dict[str, Any]) -> Recorder:
    """Create a recorder from its tagged config.

    Args:
        config: Record with a "recorder_name" tag and, for CSV recorders, an optional
            "line_limit".

    Returns:
        The configured recorder.
    """
    if not isinstance(config, dict):
        raise ConfigError("Recorder config must be a json object.")
    try:
        recorder_type = RecorderType(config.get(RECORDER_NAME_KEY))
    except ValueError:
        raise ConfigError(
            f"Unknown recorder name: {config.get(RECORDER_NAME_KEY)!r}"
        ) from None

    if recorder_type == RecorderType.DEBUG_PRINT:
        return DebugPrintRecorder()

    line_limit = config.get(LINE_LIMIT_KEY, DEFAULT_LOCAL_LINE_LIMIT)
    if not isinstance(line_limit, int) or line_limit < 1:
        raise ConfigError(f"Recorder line limit must be a positive integer, got {line_limit!r}.")
    if recorder_type == RecorderType.BUFFER_LOAD_CSV:
        return BufferLoadRecorder(line_limit)
    else:
        return AbsorptionRecorder(line_limit)
