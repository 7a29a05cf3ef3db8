"""
Error taxonomy for the benchmark harness.

Per-run failures derive from EngineError and are attached to the variant's
ProgramReturn. ConfigurationError aborts the whole invocation before any
variant runs.
"""

DEFAULT_FUNCTION_NAME = "program"


class HarnessError(Exception):
    """Base class for every error raised by the harness"""
    kind = "HarnessError"


class ConfigurationError(HarnessError):
    kind = "ConfigurationError"


class EngineError(HarnessError):
    """Failure of one phase of one variant's run"""
    kind = "EngineError"


class CompileFailure(EngineError):
    kind = "CompileFailure"


class InstantiationFailure(EngineError):
    kind = "InstantiationFailure"


class ExportNotFound(EngineError):
    kind = "ExportNotFound"

    def __init__(self, message: str = None, name: str = DEFAULT_FUNCTION_NAME):
        self.name = name
        super().__init__(message or f"the {name} wasm function is not found")


class CallFailure(EngineError):
    kind = "CallFailure"


class EngineUnavailable(EngineError):
    """The backend's library or executable is not installed"""
    kind = "EngineUnavailable"
