"""
wasm3 interpreter adapter.

wasm3 links a parsed module into exactly one runtime, so every run parses the
bytes afresh. The interpreter has no memory cap of its own; the configured
page limit is checked against the module's declared initial memory instead.
"""
from typing import Optional

import wasm3

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
    ExportNotFound,
    InstantiationFailure,
)
from wasmbench.util.module_info import parse_module_info

DEFAULT_STACK_SIZE = 64 * 1024


class Wasm3Engine(WasmEngine):

    def __init__(self, variant: EngineVariant):
        super().__init__(variant)
        self.stack_size: int = variant.option("stack_size", DEFAULT_STACK_SIZE)
        self.environment: Optional[wasm3.Environment] = None

    def compile(self, module_bytes: bytes) -> CompiledArtifact:
        try:
            info = parse_module_info(module_bytes)
        except ValueError as e:
            raise CompileFailure(str(e)) from e

        self.environment = wasm3.Environment()
        try:
            module = self.environment.parse_module(module_bytes)
        except RuntimeError as e:
            raise CompileFailure(str(e)) from e
        return CompiledArtifact(module, info=info)

    def instantiate(self, artifact: CompiledArtifact) -> ExecutionInstance:
        info = artifact.extra["info"]
        # wasm3 links imports lazily, so a missing one would otherwise surface as a call failure
        self.check_no_imports(info)
        self.check_memory_limit(info)
        try:
            runtime = self.environment.new_runtime(self.stack_size)
            runtime.load(artifact.handle)
        except RuntimeError as e:
            raise InstantiationFailure(str(e)) from e
        return ExecutionInstance(runtime, info=info)

    def lookup_export(self, instance: ExecutionInstance, name: str = DEFAULT_FUNCTION_NAME) -> BoundFunction:
        signature = self.checked_signature(instance.extra["info"], name)
        try:
            function = instance.handle.find_function(name)
        except RuntimeError as e:
            raise ExportNotFound(name=name) from e
        return BoundFunction(function, self.result_type(signature), name)

    def call(self, function: BoundFunction) -> int:
        try:
            raw = function()
        except RuntimeError as e:
            raise CallFailure(str(e)) from e
        return normalize_result(raw, function.result_type)

    def close(self) -> None:
        self.environment = None
        self.closed = True
