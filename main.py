import argparse
import logging
import os
import sys
from concurrent.futures import ThreadPoolExecutor
from typing import Any, Dict, List, Optional

from aqt_sim.config import Config, SimConfig
from aqt_sim.core.network import construct_path
from aqt_sim.core.simulator import Simulation
from aqt_sim.utils.metrics import save_results_to_csv, save_results_to_json, summarize
from aqt_sim.utils.recorders import BUFFER_LOAD_FILENAME

logger = logging.getLogger(__name__)

NUM_BUFFERS = 10
NUM_RDS = 10
SEED = 32


def example_config(output_path: str = "results/oed_path") -> Config:
    """
    Build a config for a single OED-with-swap run on a path network

    Args:
        output_path: Directory the simulation writes its results to

    Returns:
        Program config holding one simulation
    """
    sim_config = SimConfig(
        graph_adjacency=construct_path(NUM_BUFFERS).to_adjacency(),
        protocol_cfg={"protocol_name": "oed_with_swap", "capacity": 1},
        adversary_cfg={"adversary_name": "sd_path_random", "seed": SEED},
        threshold_cfg={"threshold_name": "timed", "max_rds": NUM_RDS},
        recorder_cfgs=[
            {"recorder_name": "buffer_load_csv"},
            {"recorder_name": "absorption_csv"},
        ],
        output_path=output_path,
    )
    return Config([sim_config], parallel=False)


def run_simulation(sim_config: SimConfig) -> Dict[str, Any]:
    """Build and run one simulation, returning its summary"""
    simulation = Simulation.from_config(sim_config)
    result = simulation.run()
    return summarize(simulation, result)


def run_all(config: Config, parallel: Optional[bool] = None) -> List[Dict[str, Any]]:
    """
    Run every simulation in the config

    Args:
        config: Program config
        parallel: Override for the config's parallel flag

    Returns:
        Summaries in config order
    """
    if parallel is None:
        parallel = config.parallel

    if not parallel:
        return [run_simulation(cfg) for cfg in config.sim_configs]

    with ThreadPoolExecutor() as executor:
        futures = [executor.submit(run_simulation, cfg) for cfg in config.sim_configs]
        summaries = []
        for i, future in enumerate(futures):
            try:
                summaries.append(future.result())
            except Exception:
                logger.exception("Simulation %d failed", i)
                raise
        return summaries


def plot_results(summaries: List[Dict[str, Any]]) -> None:
    """Plot the buffer loads of every simulation that recorded them"""
    from aqt_sim.utils.visualization import plot_buffer_loads

    for summary in summaries:
        output_path = summary["output_path"]
        if output_path is None:
            continue
        csv_path = os.path.join(output_path, BUFFER_LOAD_FILENAME)
        if os.path.exists(csv_path):
            plot_buffer_loads(csv_path, output_dir=output_path)


def main(argv: Optional[List[str]] = None) -> int:
    """Main function to run simulations"""
    parser = argparse.ArgumentParser(description="Adversarial Queueing Theory Simulator")
    parser.add_argument("config", nargs="?", help="Path to a json config file")
    parser.add_argument(
        "--example", metavar="PATH", help="Write an example config to PATH and exit"
    )
    mode = parser.add_mutually_exclusive_group()
    mode.add_argument(
        "--parallel", dest="parallel", action="store_true", default=None,
        help="Run simulations in parallel threads",
    )
    mode.add_argument(
        "--sequential", dest="parallel", action="store_false",
        help="Run simulations one after another",
    )
    parser.add_argument("--plot", action="store_true", help="Plot recorded buffer loads")
    parser.add_argument(
        "--summary", default="results/summary", help="Path prefix for summary files"
    )
    parser.add_argument("--log-level", default="INFO", help="Logging level")

    args = parser.parse_args(argv)

    logging.basicConfig(
        level=args.log_level.upper(),
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
    )

    if args.example:
        directory = os.path.dirname(args.example)
        if directory:
            os.makedirs(directory, exist_ok=True)
        with open(args.example, "w") as f:
            f.write(example_config().to_string())
        print(f"Example config written to {args.example}")
        return 0

    if not args.config:
        parser.print_help()
        return 1

    config = Config.from_file(args.config)
    summaries = run_all(config, args.parallel)

    save_results_to_json(summaries, f"{args.summary}.json")
    save_results_to_csv(summaries, f"{args.summary}.csv")

    for i, summary in enumerate(summaries):
        print(
            f"Simulation {i} ({summary['protocol']}): {summary['rounds']} rounds, "
            f"{summary['total_absorbed']} absorbed, final load {summary['final_load']}, "
            f"max load {summary['max_load']}"
        )

    if args.plot:
        plot_results(summaries)

    return 0


if __name__ == "__main__":
    sys.exit(main())
