import subprocess
from pathlib import Path

import pytest

from tests.fakes import variant
from tests.wasm_modules import build_module
from wasmbench.consts.BackendKind import BackendKind
from wasmbench.consts.RunState import RunState
from wasmbench.service.engine import wasmer_cli_engine
from wasmbench.service.engine.engine_factory import build_engine
from wasmbench.service.engine.errors import (
    CallFailure,
    CompileFailure,
    EngineUnavailable,
    ExportNotFound,
    InstantiationFailure,
)
from wasmbench.service.engine.wasmer_cli_engine import WasmerCliEngine, parse_cli_output
from wasmbench.service.runner.benchmark_runner import BenchmarkRunner


class FakeWasmer:
    """Stands in for subprocess.run when the command is the wasmer executable"""

    def __init__(self, stdout="7\n", run_code=0, compile_code=0):
        self.stdout = stdout
        self.run_code = run_code
        self.compile_code = compile_code
        self.commands = []

    def __call__(self, args, **kwargs):
        self.commands.append(args)
        if args[1] == "compile":
            if self.compile_code == 0:
                Path(args[-1]).write_bytes(b"artifact")
            return subprocess.CompletedProcess(args, self.compile_code, "", "error: invalid module")
        return subprocess.CompletedProcess(args, self.run_code, self.stdout, "RuntimeError: unreachable")


@pytest.fixture
def fake_wasmer(monkeypatch):
    fake = FakeWasmer()
    monkeypatch.setattr(wasmer_cli_engine, "resolve_cmd", lambda cmd: "/usr/local/bin/wasmer")
    monkeypatch.setattr(wasmer_cli_engine.subprocess, "run", fake)
    return fake


def wasmer_variant(**options):
    return variant("wasmer", BackendKind.THIRD_PARTY_B, **options)


@pytest.mark.parametrize("stdout, expected", [
    ("7\n", 7),
    ("warning: something\n42\n", 42),
    ("", None),
    ("  \n", None),
    ("2.5\n", 2.5),
])
def test_parse_cli_output(stdout, expected):
    assert parse_cli_output(stdout) == expected


def test_parse_cli_output_rejects_text():
    with pytest.raises(CallFailure, match="unexpected wasmer output"):
        parse_cli_output("hello")


def test_full_run(fake_wasmer):
    engine = None

    def factory(v):
        nonlocal engine
        engine = build_engine(v)
        return engine

    result = BenchmarkRunner(wasmer_variant(), 3, engine_factory=factory).run(build_module(value=7))

    assert result.final_state == RunState.COMPLETED
    assert result.program_return.return_value == 7
    assert fake_wasmer.commands[0][1] == "compile"
    run_commands = [c for c in fake_wasmer.commands if c[1] == "run"]
    assert len(run_commands) == 4
    assert run_commands[0][2:4] == ["--invoke", "program"]
    assert engine.workdir is None


def test_unsigned_i32_output_is_reinterpreted(fake_wasmer):
    fake_wasmer.stdout = "4294967295\n"
    engine = WasmerCliEngine(wasmer_variant())
    artifact = engine.compile(build_module(value=-1))
    instance = engine.instantiate(artifact)
    try:
        assert engine.call(engine.lookup_export(instance)) == -1
    finally:
        engine.release(instance, artifact)


def test_compile_failure_cleans_up(fake_wasmer):
    fake_wasmer.compile_code = 1
    engine = WasmerCliEngine(wasmer_variant())
    with pytest.raises(CompileFailure, match="invalid module"):
        engine.compile(build_module())
    workdir = engine.workdir
    engine.release(None, None)
    assert not workdir.exists()


def test_call_failure(fake_wasmer):
    fake_wasmer.run_code = 1
    engine = WasmerCliEngine(wasmer_variant())
    artifact = engine.compile(build_module())
    instance = engine.instantiate(artifact)
    try:
        with pytest.raises(CallFailure, match="unreachable"):
            engine.call(engine.lookup_export(instance))
    finally:
        engine.release(instance, artifact)


def test_lookup_and_instantiate_use_module_info(fake_wasmer):
    engine = WasmerCliEngine(wasmer_variant())
    artifact = engine.compile(build_module(export_name="main"))
    instance = engine.instantiate(artifact)
    with pytest.raises(ExportNotFound):
        engine.lookup_export(instance)
    engine.release(instance, artifact)

    engine = WasmerCliEngine(wasmer_variant())
    artifact = engine.compile(build_module(import_function=True))
    with pytest.raises(InstantiationFailure):
        engine.instantiate(artifact)
    engine.release(None, artifact)


def test_missing_executable_is_unavailable(monkeypatch):
    def missing(cmd):
        raise FileNotFoundError(f"Executable '{cmd}' not found.")

    monkeypatch.setattr(wasmer_cli_engine, "resolve_cmd", missing)
    with pytest.raises(EngineUnavailable, match="not found"):
        build_engine(wasmer_variant(cmd="no-such-wasmer"))
