"""Exceptions raised by the simulator.

Configuration problems are detected while a simulation is being built; topology
problems when a buffer is missing or a protocol cannot run on the network shape.
Packet state errors signal a bug in a forwarding protocol and are never caught inside
the package.
"""


class TopologyError(ValueError):
    """Raised for unknown node ids, duplicate edges and unusable network shapes."""


class PacketStateError(AssertionError):
    """Raised when a packet is moved past absorption or behind its path start."""


class ConfigError(ValueError):
    """Raised when a configuration value is missing or has the wrong shape."""
