"""Utilities for AQT simulation.

This module provides random number helpers, result recorders and plotting functions.
"""
