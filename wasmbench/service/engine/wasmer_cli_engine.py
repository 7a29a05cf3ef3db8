"""
wasmer adapter driving the `wasmer` command-line runtime.

compile runs `wasmer compile` into a private temporary directory; every call
is a separate `wasmer run --invoke` process whose last stdout line is the
result. Call timings therefore include process start-up, which is the point
of comparing an out-of-process engine.
"""
import subprocess
import tempfile
from pathlib import Path
from typing import List, Optional

from wasmbench.config.engine_variant import EngineVariant
from wasmbench.service.engine.engine import (
    BoundFunction,
    CompiledArtifact,
    ExecutionInstance,
    WasmEngine,
    normalize_result,
)
from wasmbench.service.engine.errors import (
    DEFAULT_FUNCTION_NAME,
    CallFailure,
    CompileFailure,
    EngineUnavailable,
)
from wasmbench.util.file_utils import delete_file, resolve_cmd
from wasmbench.util.log_config import setup_logger
from wasmbench.util.module_info import parse_module_info

logger = setup_logger(__name__)

DEFAULT_CMD = "wasmer"
ARTIFACT_NAME = "module.wasmu"


def parse_cli_output(stdout: str):
    """
    Parse the value printed by `wasmer run --invoke`.

    Returns:
        int or float for the last non-empty line, None when nothing was printed
    """
    lines = [line.strip() for line in stdout.splitlines() if line.strip()]
    if not lines:
        return None
    text = lines[-1]
    try:
        return int(text)
    except ValueError:
        pass
    try:
        return float(text)
    except ValueError as e:
        raise CallFailure(f"unexpected wasmer output: {text!r}") from e


class WasmerCliEngine(WasmEngine):

    def __init__(self, variant: EngineVariant):
        super().__init__(variant)
        try:
            self.cmd = resolve_cmd(variant.option("cmd", DEFAULT_CMD))
        except FileNotFoundError as e:
            raise EngineUnavailable(str(e)) from e
        self.workdir: Optional[Path] = None

    def _run(self, args: List[str]) -> subprocess.CompletedProcess:
        logger.debug(f"Running: {' '.join([self.cmd, *args])}")
        return subprocess.run([self.cmd, *args], capture_output=True, text=True, check=False)

    def compile(self, module_bytes: bytes) -> CompiledArtifact:
        try:
            info = parse_module_info(module_bytes)
        except ValueError as e:
            raise CompileFailure(str(e)) from e

        self.workdir = Path(tempfile.mkdtemp(prefix="wasmbench-wasmer-"))
        source = self.workdir / "module.wasm"
        target = self.workdir / ARTIFACT_NAME
        source.write_bytes(module_bytes)

        try:
            result = self._run(["compile", str(source), "-o", str(target)])
        except OSError as e:
            raise CompileFailure(f"cannot start {self.cmd}: {e}") from e
        if result.returncode != 0 or not target.is_file():
            raise CompileFailure(result.stderr.strip() or f"wasmer compile exited with {result.returncode}")
        return CompiledArtifact(target, info=info)

    def instantiate(self, artifact: CompiledArtifact) -> ExecutionInstance:
        info = artifact.extra["info"]
        self.check_no_imports(info)
        self.check_memory_limit(info)
        return ExecutionInstance(artifact.handle, info=info)

    def lookup_export(self, instance: ExecutionInstance, name: str = DEFAULT_FUNCTION_NAME) -> BoundFunction:
        signature = self.checked_signature(instance.extra["info"], name)
        args = ["run", "--invoke", name, str(instance.handle)]
        return BoundFunction(lambda: self._run(args), self.result_type(signature), name)

    def call(self, function: BoundFunction) -> int:
        try:
            result = function()
        except OSError as e:
            raise CallFailure(f"cannot start {self.cmd}: {e}") from e
        if result.returncode != 0:
            raise CallFailure(result.stderr.strip() or f"wasmer run exited with {result.returncode}")
        return normalize_result(parse_cli_output(result.stdout), function.result_type)

    def close(self) -> None:
        if self.workdir is not None:
            delete_file(self.workdir)
            self.workdir = None
        self.closed = True
