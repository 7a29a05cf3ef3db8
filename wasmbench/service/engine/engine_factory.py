"""
Build a fresh WasmEngine for an EngineVariant.

Backend modules are imported lazily so that a missing library only disables
the variants that need it.
"""
import importlib
from typing import Optional

from wasmbench.config.engine_variant import EngineVariant
from wasmbench.consts.BackendKind import BackendKind
from wasmbench.service.engine.compilation_cache import CompilationCache
from wasmbench.service.engine.engine import WasmEngine
from wasmbench.service.engine.errors import EngineUnavailable

# backend -> (module, class, distribution to install)
ENGINE_CLASSES = {
    BackendKind.INTERPRETER: ("wasmbench.service.engine.wasm3_engine", "Wasm3Engine", "pywasm3"),
    BackendKind.AOT_NO_CACHE: ("wasmbench.service.engine.wasmtime_engine", "WasmtimeEngine", "wasmtime"),
    BackendKind.AOT_CACHED: ("wasmbench.service.engine.wasmtime_engine", "WasmtimeEngine", "wasmtime"),
    BackendKind.THIRD_PARTY_A: ("wasmbench.service.engine.pywasm_engine", "PywasmEngine", "pywasm"),
    BackendKind.THIRD_PARTY_B: ("wasmbench.service.engine.wasmer_cli_engine", "WasmerCliEngine", None),
}


def build_engine(variant: EngineVariant, cache: Optional[CompilationCache] = None) -> WasmEngine:
    """
    Create the adapter for a variant.

    Args:
        variant: The benchmarking target
        cache: Compilation cache, only used by the cached AOT backend

    Raises:
        EngineUnavailable: If the backend's library or executable is missing
    """
    module_name, class_name, distribution = ENGINE_CLASSES[variant.backend_kind]
    try:
        module = importlib.import_module(module_name)
    except ImportError as e:
        hint = f" (pip install {distribution})" if distribution else ""
        raise EngineUnavailable(f"{variant.backend_kind.value} backend is not installed{hint}: {e}") from e

    engine_class = getattr(module, class_name)
    if variant.backend_kind == BackendKind.AOT_CACHED:
        return engine_class(variant, cache=cache if cache is not None else CompilationCache())
    return engine_class(variant)
