"""Core components for AQT simulation.

This module contains the fundamental classes and functions for the simulation,
including Packet, BufferNetwork, the forwarding protocols, thresholds and the
Simulation driver.
"""
