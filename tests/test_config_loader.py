from pathlib import Path

import pytest
import yaml

from wasmbench.config.config_loader import DEFAULT_CONFIG_DIR, ConfigLoader
from wasmbench.consts.BackendKind import BackendKind
from wasmbench.service.engine.errors import ConfigurationError


def write_config(directory: Path, data: dict, env: str = None) -> Path:
    name = f"config_{env}.yaml" if env else "config.yaml"
    (directory / name).write_text(yaml.safe_dump(data), encoding="utf-8")
    return directory


BASE = {
    "iterations": 500,
    "variants": [
        {"name": "wasm3", "backend": "interpreter", "options": {"stack_size": 4096}},
        {"name": "wasmtime", "backend": "aot_no_cache"},
        {"name": "off", "backend": "aot_cached", "enabled": False},
    ],
}


def test_packaged_config_loads():
    config = ConfigLoader(DEFAULT_CONFIG_DIR).config_data
    assert config.iterations == 10000
    assert config.memory_limit_pages == 62
    assert config.compilation_cache_dir is None
    assert {v.backend_kind for v in config.variants} == set(BackendKind)


def test_defaults_and_disabled_variants(tmp_path):
    config = ConfigLoader(write_config(tmp_path, BASE)).config_data
    assert config.iterations == 500
    assert config.rounds == 1
    assert [v.name for v in config.variants] == ["wasm3", "wasmtime"]
    wasm3 = config.variants[0]
    assert wasm3.option("stack_size") == 4096
    assert wasm3.option("memory_limit_pages") == 62
    assert config.iterations_for(wasm3) == 500


def test_env_override_replaces_top_level_keys(tmp_path):
    write_config(tmp_path, BASE)
    write_config(tmp_path, {"iterations": 5, "rounds": 3}, env="dev")
    config = ConfigLoader(tmp_path, env="dev").config_data
    assert config.iterations == 5
    assert config.rounds == 3
    assert len(config.variants) == 2


def test_variant_configuration_is_frozen(tmp_path):
    variant = ConfigLoader(write_config(tmp_path, BASE)).config_data.variants[0]
    with pytest.raises(TypeError):
        variant.configuration["stack_size"] = 1


@pytest.mark.parametrize("data, message", [
    ({**BASE, "iterations": 0}, "'iterations' must be >= 1"),
    ({**BASE, "rounds": -1}, "'rounds' must be >= 1"),
    ({**BASE, "iterations": "many"}, "must be an integer"),
    ({"variants": [{"backend": "quickjs"}]}, "Unknown backend 'quickjs'"),
    ({"variants": [{"name": "x"}]}, "needs a 'backend'"),
    ({"variants": [{"backend": "interpreter"}, {"backend": "interpreter"}]}, "Duplicate variant name"),
    ({"variants": [{"backend": "interpreter", "options": {"iterations": 0}}]}, "interpreter.iterations"),
])
def test_invalid_configuration(tmp_path, data, message):
    with pytest.raises(ConfigurationError, match=message):
        ConfigLoader(write_config(tmp_path, data))


def test_missing_config_file(tmp_path):
    with pytest.raises(ConfigurationError, match="not found"):
        ConfigLoader(tmp_path)


def test_overrides(tmp_path):
    loader = ConfigLoader(write_config(tmp_path, BASE))
    config = loader.apply_overrides(iterations=3, rounds=2, backends=["aot_no_cache"])
    assert config.iterations == 3
    assert config.rounds == 2
    assert [v.name for v in config.variants] == ["wasmtime"]
    assert config.iterations_for(config.variants[0]) == 3


def test_override_rejects_zero_iterations(tmp_path):
    loader = ConfigLoader(write_config(tmp_path, BASE))
    with pytest.raises(ConfigurationError):
        loader.apply_overrides(iterations=0)


def test_validate_requires_variants(tmp_path):
    loader = ConfigLoader(write_config(tmp_path, BASE))
    loader.apply_overrides(backends=["third_party_b"])
    with pytest.raises(ConfigurationError, match="No engine variants enabled"):
        loader.validate()


def test_validate_checks_cache_dir(tmp_path):
    loader = ConfigLoader(write_config(tmp_path, BASE))
    loader.apply_overrides(cache_dir=tmp_path / "missing")
    with pytest.raises(ConfigurationError, match="does not exist"):
        loader.validate()

    not_a_dir = tmp_path / "file"
    not_a_dir.write_text("x")
    loader.apply_overrides(cache_dir=not_a_dir)
    with pytest.raises(ConfigurationError, match="not a directory"):
        loader.validate()

    cache_dir = tmp_path / "cache"
    cache_dir.mkdir()
    loader.apply_overrides(cache_dir=cache_dir)
    assert loader.validate().compilation_cache_dir == cache_dir.resolve()
