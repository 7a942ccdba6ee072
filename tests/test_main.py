import json

from aqt_sim.config import Config
from main import example_config, main, run_all


def _write_config(tmp_path, parallel=False):
    config = example_config(str(tmp_path / "oed"))
    fifo = example_config(str(tmp_path / "fifo")).sim_configs[0]
    fifo.protocol_cfg = {"protocol_name": "greedy_fifo", "capacity": 1}
    config.sim_configs.append(fifo)
    config.parallel = parallel
    path = tmp_path / "config.json"
    path.write_text(config.to_string())
    return path


def test_example_written(tmp_path):
    path = tmp_path / "configs" / "example.json"
    assert main(["--example", str(path), "--log-level", "warning"]) == 0
    config = Config.from_file(str(path))
    assert config.sim_configs[0].protocol_cfg["protocol_name"] == "oed_with_swap"


def test_no_config_prints_help(capsys):
    assert main(["--log-level", "warning"]) == 1
    assert "usage" in capsys.readouterr().out


def test_runs_config(tmp_path, capsys):
    config_path = _write_config(tmp_path)
    summary = tmp_path / "out" / "summary"

    assert main([str(config_path), "--summary", str(summary), "--log-level", "warning"]) == 0

    with open(f"{summary}.json") as f:
        summaries = json.load(f)
    assert [s["protocol"] for s in summaries] == ["oed_with_swap", "greedy_fifo"]
    assert all(s["rounds"] == 10 for s in summaries)
    assert (tmp_path / "out" / "summary.csv").exists()

    out = capsys.readouterr().out
    assert "Simulation 0 (oed_with_swap): 10 rounds" in out
    assert "Simulation 1 (greedy_fifo): 10 rounds" in out


def test_plot_flag(tmp_path):
    config_path = _write_config(tmp_path, parallel=True)
    summary = tmp_path / "summary"
    args = [str(config_path), "--summary", str(summary), "--plot", "--log-level", "warning"]

    assert main(args) == 0
    assert (tmp_path / "oed" / "buffer_loads.png").exists()
    assert (tmp_path / "fifo" / "buffer_loads.png").exists()


def test_parallel_matches_sequential(tmp_path):
    config = Config.from_file(str(_write_config(tmp_path)))
    keys = ["protocol", "rounds", "total_absorbed", "final_load", "max_load"]

    sequential = run_all(config, parallel=False)
    parallel = run_all(config, parallel=True)

    assert [[s[k] for k in keys] for s in sequential] == [[s[k] for k in keys] for s in parallel]
