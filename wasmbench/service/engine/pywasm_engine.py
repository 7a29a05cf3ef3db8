"""
pywasm adapter: a pure-Python interpreter.

pywasm only loads modules from a file path, so compile writes the bytes to a
private temporary file and validates the sections the harness relies on.
Decoding by pywasm itself happens at instantiation.
"""
import os
import tempfile
from pathlib import Path

import pywasm

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
    InstantiationFailure,
)
from wasmbench.util.file_utils import delete_file
from wasmbench.util.module_info import parse_module_info


class PywasmEngine(WasmEngine):

    def __init__(self, variant: EngineVariant):
        super().__init__(variant)
        self.runtime = None

    def compile(self, module_bytes: bytes) -> CompiledArtifact:
        try:
            info = parse_module_info(module_bytes)
        except ValueError as e:
            raise CompileFailure(str(e)) from e

        fd, name = tempfile.mkstemp(prefix="wasmbench-", suffix=".wasm")
        path = Path(name)
        try:
            with os.fdopen(fd, "wb") as f:
                f.write(module_bytes)
        except OSError as e:
            delete_file(path)
            raise CompileFailure(f"cannot stage module for pywasm: {e}") from e
        return CompiledArtifact(path, on_release=lambda: delete_file(path), info=info)

    def instantiate(self, artifact: CompiledArtifact) -> ExecutionInstance:
        info = artifact.extra["info"]
        self.check_no_imports(info)
        self.check_memory_limit(info)
        self.runtime = pywasm.core.Runtime()
        try:
            module = self.runtime.instance_from_file(str(artifact.handle))
        except Exception as e:
            # pywasm reports decode and link errors as plain exceptions or assertions
            raise InstantiationFailure(f"{type(e).__name__}: {e}") from e
        return ExecutionInstance(module, info=info)

    def lookup_export(self, instance: ExecutionInstance, name: str = DEFAULT_FUNCTION_NAME) -> BoundFunction:
        signature = self.checked_signature(instance.extra["info"], name)
        runtime = self.runtime
        module = instance.handle
        return BoundFunction(lambda: runtime.invocate(module, name, []), self.result_type(signature), name)

    def call(self, function: BoundFunction) -> int:
        try:
            raw = function()
        except Exception as e:
            raise CallFailure(f"{type(e).__name__}: {e}") from e
        return normalize_result(raw, function.result_type)

    def close(self) -> None:
        self.runtime = None
        self.closed = True
