import json

import pytest
import yaml

from tests.fakes import FakeBuilder
from wasmbench import run_benchmark
from wasmbench.consts.ExitCode import ExitCode
from wasmbench.service.comparator.comparator import Comparator

CONFIG = {
    "iterations": 100,
    "output_cwd": None,
    "variants": [
        {"name": "wasm3", "backend": "interpreter"},
        {"name": "wasmtime", "backend": "aot_no_cache"},
        {"name": "wasmtime-cached", "backend": "aot_cached"},
    ],
}


@pytest.fixture
def config_dir(tmp_path):
    directory = tmp_path / "config"
    directory.mkdir()
    data = {**CONFIG, "output_cwd": str(tmp_path / "results")}
    (directory / "config.yaml").write_text(yaml.safe_dump(data), encoding="utf-8")
    return directory


@pytest.fixture
def fake_comparator(monkeypatch):
    builder = FakeBuilder(default_value=7)

    def make(config):
        return Comparator(config, engine_builder=builder, track_memory=False)

    monkeypatch.setattr(run_benchmark, "Comparator", make)
    return builder


def test_missing_module_path_is_configuration_error(config_dir):
    assert run_benchmark.main(["--config-dir", str(config_dir)]) == ExitCode.CONFIGURATION_ERROR


def test_unreadable_module_is_configuration_error(config_dir, tmp_path):
    code = run_benchmark.main(["-f", str(tmp_path / "missing.wasm"), "--config-dir", str(config_dir)])
    assert code == ExitCode.CONFIGURATION_ERROR


def test_zero_iterations_is_configuration_error(config_dir, module_file, fake_comparator):
    code = run_benchmark.main(["-f", str(module_file), "--config-dir", str(config_dir), "-n", "0"])
    assert code == ExitCode.CONFIGURATION_ERROR
    assert fake_comparator.engines == []


def test_missing_cache_dir_aborts_before_any_variant(config_dir, module_file, fake_comparator, tmp_path):
    code = run_benchmark.main(["-f", str(module_file), "--config-dir", str(config_dir),
                               "--cache-dir", str(tmp_path / "nope")])
    assert code == ExitCode.CONFIGURATION_ERROR
    assert fake_comparator.engines == []


def test_scenario_every_variant_returns_7(config_dir, module_file, fake_comparator, capsys, tmp_path):
    code = run_benchmark.main(["-f", str(module_file), "--config-dir", str(config_dir),
                               "--out", "report.json", "--csv", "report.csv"])
    out = capsys.readouterr().out

    assert code == ExitCode.OK
    assert "All succeeded: True" in out
    assert "Values agree:  True" in out

    data = json.loads((tmp_path / "results" / "report.json").read_text())
    assert [r["return_value"] for r in data["results"]] == [7, 7, 7]
    assert all(r["error_message"] == "" for r in data["results"])
    assert all(r["iterations"] == 100 for r in data["results"])
    assert (tmp_path / "results" / "report.csv").is_file()


def test_engine_subset_and_rounds(config_dir, module_file, fake_comparator, tmp_path):
    code = run_benchmark.main(["-f", str(module_file), "--config-dir", str(config_dir),
                               "--engines", "interpreter", "--rounds", "2", "--out", "rounds.json"])
    assert code == ExitCode.OK
    data = json.loads((tmp_path / "results" / "rounds.json").read_text())
    assert [r["round"] for r in data["rounds"]] == [1, 2]
    assert len(fake_comparator.engines) == 2


def test_exit_codes(monkeypatch, config_dir, module_file):
    builder = FakeBuilder({"wasmtime": {"value": 8}})
    monkeypatch.setattr(run_benchmark, "Comparator",
                        lambda config: Comparator(config, engine_builder=builder, track_memory=False))
    assert run_benchmark.main(["-f", str(module_file), "--config-dir", str(config_dir)]) == ExitCode.DIVERGENCE

    builder = FakeBuilder({"wasmtime": {"fail_at": "compile"}})
    assert run_benchmark.main(["-f", str(module_file), "--config-dir", str(config_dir)]) == ExitCode.VARIANT_FAILED
