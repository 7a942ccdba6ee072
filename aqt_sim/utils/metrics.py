"""Metrics utilities for AQT simulation.

This module provides functions for saving the summaries of finished simulations.
"""

import csv
import json
import os
from dataclasses import asdict
from typing import Any, Dict, List, Sequence

from aqt_sim.core.simulator import Simulation, SimulationResult

SUMMARY_CSV_HEADER = [
    "Simulation",
    "Protocol",
    "Rounds",
    "Total Absorbed",
    "Final Load",
    "Max Load",
    "Output Path",
]


def summarize(simulation: Simulation, result: SimulationResult) -> Dict[str, Any]:
    """Combine a simulation's protocol name with its result.

    Args:
        simulation: The simulation that produced the result.
        result: Summary returned by Simulation.run.

    Returns:
        Dictionary of summary values.
    """
    summary = {"protocol": simulation.protocol.name}
    summary.update(asdict(result))
    return summary


def save_results_to_json(
    summaries: List[Dict[str, Any]], filename: str = "results/summary.json"
) -> None:
    """Save simulation summaries to a JSON file.

    Args:
        summaries: Summaries produced by summarize.
        filename: Output filename.
    """
    directory = os.path.dirname(filename)
    if directory:
        os.makedirs(directory, exist_ok=True)

    with open(filename, "w") as f:
        json.dump(summaries, f, indent=2)


def save_results_to_csv(
    summaries: Sequence[Dict[str, Any]], filename: str = "results/summary.csv"
) -> None:
    """Save a comparison of simulation summaries to a CSV file.

    Args:
        summaries: Summaries produced by summarize.
        filename: Output filename.
    """
    directory = os.path.dirname(filename)
    if directory:
        os.makedirs(directory, exist_ok=True)

    with open(filename, "w", newline="") as f:
        writer = csv.writer(f)
        writer.writerow(SUMMARY_CSV_HEADER)
        for i, summary in enumerate(summaries):
            writer.writerow(
                [
                    i,
                    summary["protocol"],
                    summary["rounds"],
                    summary["total_absorbed"],
                    summary["final_load"],
                    summary["max_load"],
                    summary["output_path"],
                ]
            )
