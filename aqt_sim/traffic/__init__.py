"""Packet injection for AQT simulation.

This module provides the adversaries that decide which packets enter the network each
round: random single-destination injection, bursty injection and preset scripts.
"""
