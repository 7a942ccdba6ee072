"""Enumerations for AQT simulation.

This module defines the name tags used to select and serialize protocols, adversaries,
thresholds and recorders. The values are the strings stored in configuration files.
"""

from enum import Enum


class ProtocolType(Enum):
    """Enum for the forwarding protocols.

    Attributes:
        GREEDY_FIFO: Forward from the front of each buffer.
        GREEDY_LIS: Forward the longest-in-system packets of each buffer.
        OED_WITH_SWAP: Odd-even downhill forwarding with backward swaps.
    """

    GREEDY_FIFO = "greedy_fifo"
    GREEDY_LIS = "greedy_lis"
    OED_WITH_SWAP = "oed_with_swap"


class AdversaryType(Enum):
    """Enum for the injection policies."""

    PATH_RANDOM = "sd_path_random"
    BURSTY_PATH = "bursty_path"
    PRESET = "preset"


class ThresholdType(Enum):
    """Enum for the termination predicates."""

    TIMED = "timed"
    TOTAL_LOAD = "total_load"


class RecorderType(Enum):
    """Enum for the result sinks."""

    DEBUG_PRINT = "debug_print"
    BUFFER_LOAD_CSV = "buffer_load_csv"
    ABSORPTION_CSV = "absorption_csv"
