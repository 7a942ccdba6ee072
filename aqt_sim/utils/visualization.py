"""Visualization utilities for AQT simulation.

This module provides functions for plotting recorded buffer loads and for drawing the
buffer network with its current loads.
"""

import csv
import os
from collections import defaultdict
from typing import Dict, List, Optional, Tuple

import matplotlib.pyplot as plt
import networkx as nx
import numpy as np

from aqt_sim.core.network import BufferNetwork


def read_buffer_loads(
    csv_path: str, post_forward: bool = True
) -> Tuple[List[int], Dict[Tuple[int, int], List[int]]]:
    """Read a buffer-load CSV into per-buffer load series.

    Args:
        csv_path: File written by BufferLoadRecorder.
        post_forward: Use the snapshots taken after forwarding (True) or after
            injection (False).

    Returns:
        The sorted round numbers and, for each buffer, its load in each of those rounds.
    """
    per_round: Dict[Tuple[int, int], Dict[int, int]] = defaultdict(dict)
    with open(csv_path, newline="") as f:
        for row in csv.DictReader(f):
            if int(row["prime"]) != int(post_forward):
                continue
            edge = (int(row["buffer_from"]), int(row["buffer_to"]))
            per_round[edge][int(row["rd"])] = int(row["load"])

    rounds = sorted({rd for loads in per_round.values() for rd in loads})
    series = {
        edge: [loads.get(rd, 0) for rd in rounds]
        for edge, loads in sorted(per_round.items())
    }
    return rounds, series


def plot_buffer_loads(
    csv_path: str,
    output_dir: Optional[str] = None,
    filename: str = "buffer_loads",
    show: bool = False,
) -> None:
    """Plot the load of every buffer over time, with the total load below.

    Args:
        csv_path: File written by BufferLoadRecorder.
        output_dir: Directory to save the plot in, or None.
        filename: The filename for the file, without extension.
        show: Whether to display the plot when it is not saved.
    """
    rounds, series = read_buffer_loads(csv_path)
    fig, axes = plt.subplots(2, 1, figsize=(12, 10), sharex=True)

    for (source, destination), loads in series.items():
        axes[0].plot(rounds, loads, label=f"{source}->{destination}")
    axes[0].set_title("Buffer Load Over Time")
    axes[0].set_ylabel("Packets")
    axes[0].grid(True, linestyle="--", alpha=0.7)
    if len(series) <= 20:
        axes[0].legend(fontsize=8, ncol=2)

    total = np.sum(np.array(list(series.values())), axis=0) if series else []
    axes[1].plot(rounds, total, color="black")
    axes[1].set_title("Total Load Over Time")
    axes[1].set_xlabel("Round")
    axes[1].set_ylabel("Packets")
    axes[1].grid(True, linestyle="--", alpha=0.7)

    plt.tight_layout()

    if output_dir:
        os.makedirs(output_dir, exist_ok=True)
        fig.savefig(os.path.join(output_dir, f"{filename}.png"))
        plt.close(fig)
    elif show:
        plt.show()
    else:
        plt.close(fig)


def save_network_visualization(
    network: BufferNetwork,
    filename: Optional[str] = None,
    figsize: Tuple[int, int] = (10, 8),
    seed: int = 42,
) -> None:
    """Draw the network with each buffer labelled by its load.

    Args:
        network: BufferNetwork instance.
        filename: Output filename, or None to show it immediately.
        figsize: Figure size as (width, height) in inches.
        seed: Seed for the spring layout.
    """
    fig = plt.figure(figsize=figsize)

    graph = network.graph
    pos = nx.spring_layout(graph, seed=seed)

    nx.draw_networkx_nodes(graph, pos, node_size=500, node_color="lightblue")
    nx.draw_networkx_edges(graph, pos, edge_color="gray", arrows=True, arrowsize=20)
    nx.draw_networkx_labels(graph, pos, font_size=14)

    edge_labels = {edge: str(load) for edge, load in network.loads().items()}
    nx.draw_networkx_edge_labels(
        graph,
        pos,
        edge_labels=edge_labels,
        font_size=12,
        rotate=False,
        bbox=dict(facecolor="white", edgecolor="none", alpha=0.7),
    )

    plt.axis("off")
    plt.tight_layout()

    if filename:
        directory = os.path.dirname(filename)
        if directory:
            os.makedirs(directory, exist_ok=True)
        fig.savefig(filename)
        plt.close(fig)
    else:
        plt.show()
