"""
wasmtime adapter (Cranelift AOT compilation), with or without a compilation cache.
"""
import functools
from importlib import metadata
from typing import Optional

import wasmtime

from wasmbench.config.engine_variant import EngineVariant
from wasmbench.service.engine.compilation_cache import CompilationCache
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
from wasmbench.util.log_config import setup_logger
from wasmbench.util.module_info import WASM_PAGE_SIZE

logger = setup_logger(__name__)


@functools.lru_cache(maxsize=1)
def wasmtime_fingerprint() -> str:
    try:
        return f"wasmtime-{metadata.version('wasmtime')}"
    except metadata.PackageNotFoundError:
        return "wasmtime-unknown"


class WasmtimeEngine(WasmEngine):

    def __init__(self, variant: EngineVariant, cache: Optional[CompilationCache] = None):
        super().__init__(variant)
        self.cache = cache
        self.engine: Optional[wasmtime.Engine] = None
        self.cache_hit: Optional[bool] = None

    def _new_engine(self) -> wasmtime.Engine:
        config = wasmtime.Config()
        config.cranelift_opt_level = self.variant.option("opt_level", "speed")
        return wasmtime.Engine(config)

    def compile(self, module_bytes: bytes) -> CompiledArtifact:
        self.engine = self._new_engine()
        try:
            if self.cache is None:
                module = wasmtime.Module(self.engine, module_bytes)
            else:
                module = self._compile_cached(module_bytes)
        except wasmtime.WasmtimeError as e:
            raise CompileFailure(str(e)) from e
        return CompiledArtifact(module)

    def _compile_cached(self, module_bytes: bytes) -> wasmtime.Module:
        key = CompilationCache.key_for(module_bytes, wasmtime_fingerprint())
        try:
            serialized = self.cache.get(key)
        except OSError as e:
            logger.warning(f"Compilation cache unreadable, compiling without it: {e}")
            serialized = None

        if serialized is not None:
            try:
                module = wasmtime.Module.deserialize(self.engine, serialized)
                self.cache_hit = True
                return module
            except wasmtime.WasmtimeError as e:
                logger.warning(f"Discarding unusable cached artifact {key[:12]}: {e}")
                try:
                    self.cache.evict(key)
                except OSError as evict_error:
                    logger.warning(f"Cannot remove cached artifact {key[:12]}: {evict_error}")

        module = wasmtime.Module(self.engine, module_bytes)
        self.cache_hit = False
        try:
            self.cache.put(key, module.serialize())
        except OSError as e:
            # The compiled module is still usable for this run
            logger.warning(f"Cannot store compiled artifact {key[:12]}: {e}")
        return module

    def instantiate(self, artifact: CompiledArtifact) -> ExecutionInstance:
        store = wasmtime.Store(self.engine)
        store.set_limits(memory_size=self.memory_limit_pages * WASM_PAGE_SIZE)
        try:
            instance = wasmtime.Instance(store, artifact.handle, [])
        except (wasmtime.WasmtimeError, wasmtime.Trap) as e:
            raise InstantiationFailure(str(e)) from e
        return ExecutionInstance(instance, store=store)

    def lookup_export(self, instance: ExecutionInstance, name: str = DEFAULT_FUNCTION_NAME) -> BoundFunction:
        store = instance.extra["store"]
        try:
            extern = instance.handle.exports(store)[name]
        except KeyError:
            raise ExportNotFound(name=name)
        if not isinstance(extern, wasmtime.Func):
            raise ExportNotFound(name=name)

        func_type = extern.type(store)
        if func_type.params:
            raise ExportNotFound(
                f"the {name} wasm function takes {len(func_type.params)} parameters, expected none",
                name=name,
            )
        result_type = str(func_type.results[0]) if func_type.results else None

        return BoundFunction(functools.partial(extern, store), result_type, name)

    def call(self, function: BoundFunction) -> int:
        try:
            raw = function()
        except (wasmtime.Trap, wasmtime.WasmtimeError) as e:
            raise CallFailure(str(e)) from e
        return normalize_result(raw, function.result_type)

    def close(self) -> None:
        self.engine = None
        self.closed = True
