"""JSON configuration for AQT simulation.

A program config holds a list of simulation configs and a flag saying whether they run
in parallel. A simulation config holds the network adjacency and the tagged configs of
the protocol, adversary, threshold and recorders.
"""

import json
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

from aqt_sim.core.errors import ConfigError

ADJACENCY_KEY = "graph_adjacency"
PROTOCOL_KEY = "protocol"
ADVERSARY_KEY = "adversary"
THRESHOLD_KEY = "threshold"
RECORDERS_KEY = "recorders"
OUTPUT_PATH_KEY = "output_path"

SIMS_KEY = "simulations"
PARALLEL_KEY = "parallel"


def _get_key(obj: Dict[str, Any], key: str, kind: type, err_msg: str) -> Any:
    value = obj.get(key)
    if not isinstance(value, kind):
        raise ConfigError(f"{err_msg} Expected a {kind.__name__} under {key!r}.")
    return value


@dataclass
class SimConfig:
    """Configuration for one simulation run."""

    graph_adjacency: Dict[str, List[int]]
    protocol_cfg: Dict[str, Any]
    adversary_cfg: Dict[str, Any]
    threshold_cfg: Dict[str, Any]
    recorder_cfgs: List[Dict[str, Any]] = field(default_factory=list)
    output_path: Optional[str] = None

    @classmethod
    def from_val(cls, config: Any) -> "SimConfig":
        """Get a SimConfig from a parsed JSON value.

        Raises:
            ConfigError: If a key is missing or has the wrong type.
        """
        if not isinstance(config, dict):
            raise ConfigError("Simulation config must be a json object.")

        if OUTPUT_PATH_KEY not in config:
            raise ConfigError(f"No output path found under {OUTPUT_PATH_KEY!r}.")
        output_path = config[OUTPUT_PATH_KEY]
        if output_path is not None and not isinstance(output_path, str):
            raise ConfigError(f"Output path must be a string or null, got {output_path!r}.")

        return cls(
            graph_adjacency=_get_key(config, ADJACENCY_KEY, dict, "No graph adjacency found."),
            protocol_cfg=_get_key(config, PROTOCOL_KEY, dict, "No protocol configuration found."),
            adversary_cfg=_get_key(config, ADVERSARY_KEY, dict, "No adversary config found."),
            threshold_cfg=_get_key(config, THRESHOLD_KEY, dict, "No threshold config found."),
            recorder_cfgs=_get_key(config, RECORDERS_KEY, list, "No recorder configs found."),
            output_path=output_path,
        )

    def to_val(self) -> Dict[str, Any]:
        return {
            ADJACENCY_KEY: self.graph_adjacency,
            PROTOCOL_KEY: self.protocol_cfg,
            ADVERSARY_KEY: self.adversary_cfg,
            THRESHOLD_KEY: self.threshold_cfg,
            RECORDERS_KEY: self.recorder_cfgs,
            OUTPUT_PATH_KEY: self.output_path,
        }


@dataclass
class Config:
    """Configuration for the whole program."""

    sim_configs: List[SimConfig]
    parallel: bool = False

    @classmethod
    def from_string(cls, data: str) -> "Config":
        """Parse a JSON string into a Config.

        Raises:
            ConfigError: If the string is not valid JSON or a key is malformed.
        """
        try:
            parsed = json.loads(data)
        except json.JSONDecodeError as exc:
            raise ConfigError(f"Config is not valid json: {exc}") from exc
        if not isinstance(parsed, dict):
            raise ConfigError("Config must be a json object.")

        parallel = _get_key(
            parsed, PARALLEL_KEY, bool, 'Must provide "parallel" boolean field in config.'
        )
        sims = _get_key(
            parsed, SIMS_KEY, list, 'Must provide "simulations" array field in config.'
        )
        return cls([SimConfig.from_val(sim) for sim in sims], parallel)

    @classmethod
    def from_file(cls, path: str) -> "Config":
        with open(path) as f:
            return cls.from_string(f.read())

    def to_string(self) -> str:
        return json.dumps(
            {
                PARALLEL_KEY: self.parallel,
                SIMS_KEY: [cfg.to_val() for cfg in self.sim_configs],
            },
            indent=2,
        )
