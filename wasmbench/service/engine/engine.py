"""
Common interface for WebAssembly execution engines.

Every backend is wrapped by a WasmEngine subclass that maps its native API
onto the same five operations: compile, instantiate, lookup_export, call and
release. Engine-native exceptions and result shapes never leave the adapter.
"""
import math
from abc import ABC, abstractmethod
from typing import Any, Callable, Optional

from wasmbench.config.engine_variant import EngineVariant
from wasmbench.service.engine.errors import (
    DEFAULT_FUNCTION_NAME,
    CallFailure,
    ExportNotFound,
    InstantiationFailure,
)
from wasmbench.util.module_info import WASM_PAGE_SIZE, FuncSignature, ModuleInfo


INT64_MIN = -(1 << 63)
UINT64_MASK = (1 << 64) - 1
UINT32_MASK = (1 << 32) - 1


def to_int64(value: int) -> int:
    """Wrap an arbitrary Python int into the signed 64-bit range."""
    value &= UINT64_MASK
    return value - (1 << 64) if value >= (1 << 63) else value


def to_int32(value: int) -> int:
    value &= UINT32_MASK
    return value - (1 << 32) if value >= (1 << 31) else value


def normalize_result(raw: Any, result_type: Optional[str] = None) -> int:
    """
    Turn an engine-native call result into a signed 64-bit integer.

    Args:
        raw: None, a scalar, a boxed value with `.value`, or a sequence of those
        result_type: Declared wasm type of the first result ("i32", "i64", ...)

    Returns:
        The first result as int64, or 0 when the function returned nothing
    """
    if raw is None:
        return 0
    if isinstance(raw, (list, tuple)):
        return normalize_result(raw[0], result_type) if raw else 0
    if hasattr(raw, "value") and not isinstance(raw, (int, float)):
        raw = raw.value
    if isinstance(raw, bool):
        raw = int(raw)
    if isinstance(raw, float):
        if not math.isfinite(raw):
            raise CallFailure(f"program returned a non-finite value: {raw}")
        return to_int64(int(raw))
    if not isinstance(raw, int):
        raise CallFailure(f"program returned an unsupported value: {raw!r}")
    if result_type == "i32":
        return to_int32(raw)
    return to_int64(raw)


class Resource:
    """
    An engine-held object with an explicit, idempotent release.

    `handle` is the engine-native object. `on_release`, when given, frees
    anything the handle alone does not (temporary files, runtimes).
    """

    def __init__(self, handle: Any, on_release: Optional[Callable[[], None]] = None, **extra: Any):
        self.handle = handle
        self.extra = extra
        self._on_release = on_release
        self.released = False

    def release(self) -> None:
        if self.released:
            return
        self.released = True
        try:
            if self._on_release is not None:
                self._on_release()
        finally:
            self.handle = None
            self.extra = {}


class CompiledArtifact(Resource):
    """Backend-internal representation of a compiled module"""


class ExecutionInstance(Resource):
    """Live instantiation of a CompiledArtifact"""


class BoundFunction:
    """A resolved export: a zero-argument callable plus its declared result type"""
    __slots__ = ("target", "result_type", "name")

    def __init__(self, target: Callable[[], Any], result_type: Optional[str] = None,
                 name: str = DEFAULT_FUNCTION_NAME):
        self.target = target
        self.result_type = result_type
        self.name = name

    def __call__(self) -> Any:
        return self.target()


class WasmEngine(ABC):
    """Abstract base for one backend.

    A fresh engine is built for every run; nothing is shared between runs
    except an explicitly injected compilation cache.
    """

    def __init__(self, variant: EngineVariant) -> None:
        self.variant = variant
        self.memory_limit_pages: int = variant.option("memory_limit_pages", 62)
        self.closed = False

    @abstractmethod
    def compile(self, module_bytes: bytes) -> CompiledArtifact:
        """Translate raw bytes into a backend representation (CompileFailure)."""

    @abstractmethod
    def instantiate(self, artifact: CompiledArtifact) -> ExecutionInstance:
        """Link and initialise memory (InstantiationFailure)."""

    @abstractmethod
    def lookup_export(self, instance: ExecutionInstance, name: str = DEFAULT_FUNCTION_NAME) -> BoundFunction:
        """Resolve a zero-argument exported function (ExportNotFound)."""

    @abstractmethod
    def call(self, function: BoundFunction) -> int:
        """Invoke the function once and return its first result as int64 (CallFailure)."""

    def close(self) -> None:
        """Free the engine itself. Subclasses holding a runtime override this."""
        self.closed = True

    def release(self, instance: Optional[ExecutionInstance], artifact: Optional[CompiledArtifact]) -> None:
        """
        Tear down in reverse acquisition order: instance, artifact, engine.

        Safe to call more than once and with either resource missing.
        """
        try:
            if instance is not None:
                instance.release()
        finally:
            try:
                if artifact is not None:
                    artifact.release()
            finally:
                if not self.closed:
                    self.close()
                    self.closed = True

    def check_memory_limit(self, info: ModuleInfo) -> None:
        pages = info.initial_memory_pages
        if pages > self.memory_limit_pages:
            raise InstantiationFailure(
                f"initial memory of {pages} pages ({pages * WASM_PAGE_SIZE} bytes) "
                f"exceeds the limit of {self.memory_limit_pages} pages"
            )

    @staticmethod
    def check_no_imports(info: ModuleInfo) -> None:
        """The harness links no host functions, so any import is unresolvable."""
        if info.imports:
            missing = ", ".join(f"{module}.{name}" for module, name in info.imports)
            raise InstantiationFailure(f"unresolved imports: {missing}")

    @staticmethod
    def checked_signature(info: ModuleInfo, name: str) -> FuncSignature:
        """Signature of the export `name`, which must exist and take no parameters."""
        signature = info.function_signature(name)
        if signature is None:
            raise ExportNotFound(name=name)
        if signature.params:
            raise ExportNotFound(
                f"the {name} wasm function takes {len(signature.params)} parameters, expected none",
                name=name,
            )
        return signature

    @staticmethod
    def result_type(signature: FuncSignature) -> Optional[str]:
        return signature.results[0] if signature.results else None

    def __repr__(self) -> str:
        return f"{type(self).__name__}({self.variant.name!r})"
